"""Resident endpoints."""

from fastapi import APIRouter, Depends, Query, status

from api.core.context import ServiceContext
from api.core.dependencies import get_service_context
from api.repositories.care_repos import HouseRepository, ResidentRepository
from api.schemas.care import ResidentCreate, ResidentResponse, ResidentUpdate
from api.schemas.common import ApiResponse, ok
from api.shared.exceptions import BadRequestError, NotFoundError

router = APIRouter(prefix="/api/v1/residents", tags=["Residents"])


async def _check_house(ctx: ServiceContext, house_id: int | None) -> None:
    if house_id is not None and not await HouseRepository(ctx.session).get_by_id(house_id, ctx.organization_id):
        raise NotFoundError("House", house_id)


@router.get("", response_model=ApiResponse[list[ResidentResponse]])
async def list_residents(
    status_filter: str | None = Query(None, alias="status"),
    ctx: ServiceContext = Depends(get_service_context),
):
    residents = await ResidentRepository(ctx.session).list(
        ctx.organization_id, status_filter.lower() if status_filter else None
    )
    return ok([ResidentResponse.model_validate(r) for r in residents])


@router.post("", response_model=ApiResponse[ResidentResponse], status_code=status.HTTP_201_CREATED)
async def create_resident(data: ResidentCreate, ctx: ServiceContext = Depends(get_service_context)):
    await _check_house(ctx, data.house_id)
    resident = await ResidentRepository(ctx.session).create(data.model_dump(), ctx.organization_id)
    return ok(ResidentResponse.model_validate(resident))


@router.get("/{resident_id}", response_model=ApiResponse[ResidentResponse])
async def get_resident(resident_id: int, ctx: ServiceContext = Depends(get_service_context)):
    resident = await ResidentRepository(ctx.session).get_by_id(resident_id, ctx.organization_id)
    if not resident:
        raise NotFoundError("Resident", resident_id)
    return ok(ResidentResponse.model_validate(resident))


@router.patch("/{resident_id}", response_model=ApiResponse[ResidentResponse])
async def update_resident(
    resident_id: int,
    data: ResidentUpdate,
    ctx: ServiceContext = Depends(get_service_context),
):
    repo = ResidentRepository(ctx.session)
    resident = await repo.get_by_id(resident_id, ctx.organization_id)
    if not resident:
        raise NotFoundError("Resident", resident_id)

    updates = data.model_dump(exclude_unset=True)
    if not updates:
        raise BadRequestError("No fields to update")
    await _check_house(ctx, updates.get("house_id"))

    resident = await repo.update(resident, updates)
    return ok(ResidentResponse.model_validate(resident))

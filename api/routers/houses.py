"""House endpoints."""

from fastapi import APIRouter, Depends, status

from api.core.context import ServiceContext
from api.core.dependencies import get_service_context
from api.repositories.care_repos import HouseRepository
from api.schemas.care import HouseCreate, HouseResponse
from api.schemas.common import ApiResponse, ok
from api.shared.exceptions import NotFoundError

router = APIRouter(prefix="/api/v1/houses", tags=["Houses"])


@router.get("", response_model=ApiResponse[list[HouseResponse]])
async def list_houses(ctx: ServiceContext = Depends(get_service_context)):
    houses = await HouseRepository(ctx.session).list(ctx.organization_id)
    return ok([HouseResponse.model_validate(h) for h in houses])


@router.post("", response_model=ApiResponse[HouseResponse], status_code=status.HTTP_201_CREATED)
async def create_house(data: HouseCreate, ctx: ServiceContext = Depends(get_service_context)):
    house = await HouseRepository(ctx.session).create(data.model_dump(), ctx.organization_id)
    return ok(HouseResponse.model_validate(house))


@router.get("/{house_id}", response_model=ApiResponse[HouseResponse])
async def get_house(house_id: int, ctx: ServiceContext = Depends(get_service_context)):
    house = await HouseRepository(ctx.session).get_by_id(house_id, ctx.organization_id)
    if not house:
        raise NotFoundError("House", house_id)
    return ok(HouseResponse.model_validate(house))

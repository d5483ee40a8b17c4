"""Funding contract endpoints."""

from fastapi import APIRouter, Depends, Query, status

from api.core.context import ServiceContext
from api.core.dependencies import get_service_context
from api.repositories.care_repos import ContractRepository
from api.schemas.care import ContractCreate, ContractResponse, ContractUpdate
from api.schemas.common import ApiResponse, ok
from api.services.contract_service import ContractService

router = APIRouter(prefix="/api/v1/contracts", tags=["Contracts"])


@router.get("", response_model=ApiResponse[list[ContractResponse]])
async def list_contracts(
    status_filter: str | None = Query(None, alias="status"),
    resident_id: int | None = Query(None, alias="residentId"),
    ctx: ServiceContext = Depends(get_service_context),
):
    contracts = await ContractRepository(ctx.session).list(
        ctx.organization_id,
        status=status_filter.lower() if status_filter else None,
        resident_id=resident_id,
    )
    return ok([ContractResponse.model_validate(c) for c in contracts])


@router.post("", response_model=ApiResponse[ContractResponse], status_code=status.HTTP_201_CREATED)
async def create_contract(data: ContractCreate, ctx: ServiceContext = Depends(get_service_context)):
    contract = await ContractService(ctx).create(data)
    return ok(ContractResponse.model_validate(contract))


@router.get("/{contract_id}", response_model=ApiResponse[ContractResponse])
async def get_contract(contract_id: int, ctx: ServiceContext = Depends(get_service_context)):
    contract = await ContractService(ctx).get(contract_id)
    return ok(ContractResponse.model_validate(contract))


@router.patch("/{contract_id}", response_model=ApiResponse[ContractResponse])
async def update_contract(
    contract_id: int,
    data: ContractUpdate,
    ctx: ServiceContext = Depends(get_service_context),
):
    contract = await ContractService(ctx).update(contract_id, data)
    return ok(ContractResponse.model_validate(contract))

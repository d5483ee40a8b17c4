"""Organization-level automation endpoints: settings, eligibility, rates and preview."""

from fastapi import APIRouter, Depends, Query

from api.core.context import ServiceContext
from api.core.dependencies import get_service_context
from api.schemas.automation import (
    AutomationSettingsResponse,
    AutomationSettingsUpdate,
    CalculateRatesRequest,
    CalculateRatesResponse,
    EligibleContractResponse,
    PreviewDay,
)
from api.schemas.common import ApiResponse, ok
from api.services.automation_settings_service import AutomationSettingsService
from api.services.contract_eligibility import ContractEligibilityService
from api.services.contract_service import ContractService

router = APIRouter(prefix="/api/v1/automation", tags=["Automation"])


@router.get("/settings", response_model=ApiResponse[AutomationSettingsResponse])
async def get_settings(ctx: ServiceContext = Depends(get_service_context)):
    service = AutomationSettingsService(ctx.session, ctx.organization_id)
    model = await service.get()
    await ctx.session.commit()
    return ok(AutomationSettingsResponse.from_model(model))


@router.put("/settings", response_model=ApiResponse[AutomationSettingsResponse])
async def update_settings(data: AutomationSettingsUpdate, ctx: ServiceContext = Depends(get_service_context)):
    """Update organization automation settings. Omitted fields keep their values."""
    model = await AutomationSettingsService(ctx.session, ctx.organization_id).update(data)
    return ok(AutomationSettingsResponse.from_model(model))


@router.get("/eligible-contracts", response_model=ApiResponse[list[EligibleContractResponse]])
async def list_eligible_contracts(
    include_ineligible: bool = Query(False, alias="includeIneligible"),
    ctx: ServiceContext = Depends(get_service_context),
):
    """Contracts that would be billed today; optionally every contract with its blocking reasons."""
    service = ContractEligibilityService(ctx.session, ctx.organization_id)
    results = await service.evaluate_all() if include_ineligible else await service.eligible_contracts()
    return ok([item.to_response() for item in results])


@router.get("/eligible-contracts/{contract_id}", response_model=ApiResponse[EligibleContractResponse])
async def get_contract_eligibility(contract_id: int, ctx: ServiceContext = Depends(get_service_context)):
    result = await ContractEligibilityService(ctx.session, ctx.organization_id).evaluate(contract_id)
    return ok(result.to_response())


@router.post("/calculate-rates", response_model=ApiResponse[CalculateRatesResponse])
async def calculate_rates(request: CalculateRatesRequest, ctx: ServiceContext = Depends(get_service_context)):
    return ok(await ContractService(ctx).calculate_rates(request))


@router.get("/preview", response_model=ApiResponse[list[PreviewDay]])
async def preview_billing(
    days: int = Query(3, ge=1, le=31),
    ctx: ServiceContext = Depends(get_service_context),
):
    """Contracts expected to be billed on each of the next `days` days."""
    preview = await ContractEligibilityService(ctx.session, ctx.organization_id).preview(days)
    return ok(
        [
            PreviewDay(
                day=day,
                contracts=[c.to_response() for c in contracts],
                total_amount=float(sum(c.run_amount for c in contracts)),
            )
            for day, contracts in preview
        ]
    )

"""API endpoints for automations: CRUD, run history, run-now and the scheduler hook."""

import secrets

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from api.config import get_settings
from api.core.context import ServiceContext
from api.core.dependencies import get_service_context
from api.dependencies import get_db_session
from api.schemas.automation import (
    AutomationCreate,
    AutomationResponse,
    AutomationRunResponse,
    AutomationUpdate,
    PreflightResult,
    RunNowResult,
    SchedulerTickResult,
)
from api.schemas.common import ApiResponse, ok
from api.services.automation_run_service import AutomationRunService
from api.services.automation_scheduler import AutomationScheduler
from api.services.automation_service import AutomationService
from api.shared.exceptions import UnauthorizedError

router = APIRouter(prefix="/api/v1/automations", tags=["Automations"])

cron_security = HTTPBearer(auto_error=False)


def verify_cron_secret(credentials: HTTPAuthorizationCredentials | None = Depends(cron_security)) -> None:
    """The scheduler endpoint is called by an external cron with a shared secret."""
    expected = get_settings().cron_secret
    if not expected or credentials is None or not secrets.compare_digest(credentials.credentials, expected):
        raise UnauthorizedError()


@router.get("", response_model=ApiResponse[list[AutomationResponse]])
async def list_automations(ctx: ServiceContext = Depends(get_service_context)):
    """List the organization's automations, newest first."""
    automations = await AutomationService(ctx).list()
    return ok([AutomationResponse.from_model(a) for a in automations])


@router.post("", response_model=ApiResponse[AutomationResponse], status_code=status.HTTP_201_CREATED)
async def create_automation(data: AutomationCreate, ctx: ServiceContext = Depends(get_service_context)):
    automation = await AutomationService(ctx).create(data)
    return ok(AutomationResponse.from_model(automation))


@router.post("/scheduler", response_model=ApiResponse[SchedulerTickResult], dependencies=[Depends(verify_cron_secret)])
async def run_scheduler(session: AsyncSession = Depends(get_db_session)):
    """Execute every enabled automation whose next run time has passed."""
    return ok(await AutomationScheduler(session).run_due())


@router.get("/runs", response_model=ApiResponse[list[AutomationRunResponse]])
async def list_organization_runs(
    limit: int = Query(50, ge=1, le=200),
    ctx: ServiceContext = Depends(get_service_context),
):
    """Recent runs across all automations of the organization."""
    runs = await AutomationService(ctx).organization_runs(limit)
    return ok([AutomationRunResponse.model_validate(r) for r in runs])


@router.get("/{automation_id}", response_model=ApiResponse[AutomationResponse])
async def get_automation(automation_id: int, ctx: ServiceContext = Depends(get_service_context)):
    automation = await AutomationService(ctx).get(automation_id)
    return ok(AutomationResponse.from_model(automation))


@router.patch("/{automation_id}", response_model=ApiResponse[AutomationResponse])
async def update_automation(
    automation_id: int,
    data: AutomationUpdate,
    ctx: ServiceContext = Depends(get_service_context),
):
    """Partial update. Schedule fields are merged over the stored schedule."""
    automation = await AutomationService(ctx).update(automation_id, data)
    return ok(AutomationResponse.from_model(automation))


@router.delete("/{automation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_automation(automation_id: int, ctx: ServiceContext = Depends(get_service_context)):
    """Delete an automation together with its run history."""
    await AutomationService(ctx).delete(automation_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{automation_id}/toggle", response_model=ApiResponse[AutomationResponse])
async def toggle_automation(automation_id: int, ctx: ServiceContext = Depends(get_service_context)):
    automation = await AutomationService(ctx).toggle(automation_id)
    return ok(AutomationResponse.from_model(automation))


@router.get("/{automation_id}/runs", response_model=ApiResponse[list[AutomationRunResponse]])
async def list_automation_runs(
    automation_id: int,
    limit: int = Query(20, ge=1, le=200),
    ctx: ServiceContext = Depends(get_service_context),
):
    runs = await AutomationService(ctx).runs(automation_id, limit)
    return ok([AutomationRunResponse.model_validate(r) for r in runs])


@router.get("/{automation_id}/run-now", response_model=ApiResponse[PreflightResult])
async def preflight_automation(automation_id: int, ctx: ServiceContext = Depends(get_service_context)):
    """Whether the automation could run right now, and why not."""
    return ok(await AutomationRunService(ctx).preflight(automation_id))


@router.post("/{automation_id}/run-now", response_model=ApiResponse[RunNowResult])
async def run_automation_now(automation_id: int, ctx: ServiceContext = Depends(get_service_context)):
    """
    Run the automation immediately.

    Responds 422 with the preflight result when the automation may not run;
    no run record is created in that case.
    """
    return ok(await AutomationRunService(ctx).run_now(automation_id))

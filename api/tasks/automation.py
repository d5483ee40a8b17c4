"""Celery tasks for automations."""

import asyncio

from api.celery_app import celery_app
from api.core.context import ServiceContext
from api.services.automation_run_service import AutomationRunService
from api.services.automation_scheduler import AutomationScheduler
from api.shared.enums import RunTrigger
from api.shared.exceptions import NotFoundError, PreconditionFailedError
from api.tasks.base import AutomationTask
from database.config import DatabaseConfig
from database.manager import DatabaseManager
from logger import format_log, get_logger

logger = get_logger("api.tasks.automation")


async def _run_due() -> dict:
    db_manager = DatabaseManager(DatabaseConfig.from_env())
    try:
        async with db_manager.async_session() as session:
            result = await AutomationScheduler(session).run_due()
            return result.model_dump(by_alias=True)
    finally:
        await db_manager.close()


async def _run_single(automation_id: int, organization_id: int) -> dict:
    db_manager = DatabaseManager(DatabaseConfig.from_env())
    try:
        async with db_manager.async_session() as session:
            ctx = ServiceContext.create(session, organization_id)
            service = AutomationRunService(ctx)
            automation = await service.automation_repo.get_by_id(automation_id, organization_id)
            if automation is None:
                raise NotFoundError("Automation", automation_id)
            outcome = await service.execute(automation, RunTrigger.SCHEDULER)
            return outcome.model_dump(by_alias=True)
    finally:
        await db_manager.close()


@celery_app.task(bind=True, base=AutomationTask, name="automation.run_due")
def run_due_automations_task(self):
    """Execute every enabled automation whose next run time has passed."""
    result = asyncio.run(_run_due())
    return self.build_result(None, **result)


@celery_app.task(bind=True, base=AutomationTask, name="automation.run_single")
def run_single_automation_task(self, automation_id: int, organization_id: int):
    """Execute one automation outside its schedule (e.g. queued from the UI)."""
    try:
        result = asyncio.run(_run_single(automation_id, organization_id))
    except (NotFoundError, PreconditionFailedError) as e:
        logger.warning(format_log("Automation not run", automation_id=automation_id, reason=e.detail))
        return self.build_result(organization_id, status="skipped", automation_id=automation_id, reason=e.detail)
    return self.build_result(organization_id, automation_id=automation_id, **result)

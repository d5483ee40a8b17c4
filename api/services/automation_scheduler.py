"""Executes every automation whose scheduled slot has arrived."""

from sqlalchemy.ext.asyncio import AsyncSession

from api.core.context import ServiceContext
from api.helpers.schedule_converter import calculate_next_run_at
from api.repositories.automation_repos import AutomationRepository
from api.schemas.automation import SchedulerTickResult
from api.services.automation_run_service import AutomationRunService
from api.services.preflight import ALREADY_RUNNING
from api.shared.enums import RunTrigger
from api.shared.exceptions import PreconditionFailedError
from config.settings import settings
from logger import format_log, get_logger
from utils.date_utils import utcnow

logger = get_logger("api.scheduler")


class AutomationScheduler:
    """
    One scheduler tick across all organizations.

    Invoked by the cron endpoint and the Celery beat task; there is no
    in-process loop. A slot whose preflight fails is skipped and the schedule
    advanced, except while the automation is still running, in which case the
    active run advances it when it finishes.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = AutomationRepository(session)

    async def run_due(self) -> SchedulerTickResult:
        now = utcnow()
        due = await self.repo.get_due(now, settings.automation.scheduler_batch_size)
        result = SchedulerTickResult(due=len(due), executed=0, skipped=0, failed=0, runs=[])

        for automation in due:
            automation_id = automation.id
            ctx = ServiceContext.create(self.session, automation.organization_id)
            try:
                outcome = await AutomationRunService(ctx).execute(automation, RunTrigger.SCHEDULER)
            except PreconditionFailedError as e:
                result.skipped += 1
                result.runs.append({"automationId": automation_id, "skipped": True, "reason": e.detail})
                await self._skip_slot(automation, e.detail)
                continue

            result.executed += 1
            if not outcome.success:
                result.failed += 1
            result.runs.append({"automationId": automation_id, "runId": outcome.run_id, "success": outcome.success})

        if due:
            logger.info(
                format_log(
                    "Scheduler tick",
                    due=result.due,
                    executed=result.executed,
                    skipped=result.skipped,
                    failed=result.failed,
                )
            )
        return result

    async def _skip_slot(self, automation, reason: str) -> None:
        if reason == ALREADY_RUNNING:
            return
        try:
            next_run_at = calculate_next_run_at(automation.schedule, automation.next_run_at)
        except ValueError:
            # Unparseable schedule: park it until the schedule is fixed
            next_run_at = None
        await self.repo.skip_slot(automation, next_run_at)
        logger.info(
            format_log("Scheduled slot skipped", automation_id=automation.id, reason=reason, next_run_at=next_run_at)
        )

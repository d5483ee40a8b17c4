"""
The run pipeline: preflight, claim, run record, runner, ledger bookkeeping.

Used by the run-now endpoint, the scheduler endpoint and the Celery tasks.
"""

from datetime import timedelta

from api.core.context import ServiceContext
from api.helpers.schedule_converter import calculate_next_run_at
from api.repositories.automation_repos import AutomationRepository, AutomationRunRepository
from api.schemas.automation import PreflightResult, RunNowResult
from api.services.notification_service import NotificationService
from api.services.preflight import ALREADY_RUNNING, PreflightService
from api.services.runners import RunnerResult, execute_runner
from api.shared.enums import RunStatus, RunTrigger
from api.shared.exceptions import NotFoundError, PreconditionFailedError
from config.settings import settings
from database.automation_models import AutomationModel
from logger import format_log, get_logger

logger = get_logger("api.automation_runs")


class AutomationRunService:
    def __init__(self, ctx: ServiceContext):
        self.ctx = ctx
        self.session = ctx.session
        self.automation_repo = AutomationRepository(ctx.session)
        self.run_repo = AutomationRunRepository(ctx.session)

    async def _get_automation(self, automation_id: int) -> AutomationModel:
        automation = await self.automation_repo.get_by_id(automation_id, self.ctx.organization_id)
        if automation is None:
            raise NotFoundError("Automation", automation_id)
        return automation

    async def preflight(self, automation_id: int) -> PreflightResult:
        automation = await self._get_automation(automation_id)
        return await PreflightService(self.session, self.ctx.organization_id).check(automation)

    async def run_now(self, automation_id: int) -> RunNowResult:
        automation = await self._get_automation(automation_id)
        return await self.execute(automation, RunTrigger.MANUAL)

    async def execute(self, automation: AutomationModel, trigger: RunTrigger) -> RunNowResult:
        """
        Run an automation end to end.

        Raises:
            PreconditionFailedError: Preflight rejected the run or the claim was lost;
                no run record is created in that case
        """
        preflight = await PreflightService(self.session, self.ctx.organization_id).check(automation)
        if not preflight.can_run:
            raise PreconditionFailedError(preflight.reason, preflight.model_dump(by_alias=True))

        stale_after = timedelta(minutes=settings.automation.claim_timeout_minutes)
        if not await self.automation_repo.claim(automation, stale_after):
            logger.warning(format_log("Run claim lost", automation_id=automation.id, trigger=trigger.value))
            rejected = PreflightResult.rejected(ALREADY_RUNNING)
            raise PreconditionFailedError(ALREADY_RUNNING, rejected.model_dump(by_alias=True))

        automation_id, claimed_at = automation.id, automation.running_since
        run_id = None
        try:
            run = await self.run_repo.start(automation, trigger.value)
            run_id = run.id
            logger.info(
                format_log(
                    "Automation run started",
                    automation_id=automation_id,
                    run_id=run_id,
                    type=automation.type,
                    trigger=trigger.value,
                )
            )

            result = await self._run_safely(automation, run)
            status = RunStatus.SUCCESS if result.success else RunStatus.FAILED
            error = {"message": result.error} if result.error else None
            await self.run_repo.finish(run, status, result.summary, result.metrics, error)
            await self.automation_repo.record_outcome(
                automation, status, calculate_next_run_at(automation.schedule, automation.next_run_at)
            )
        except Exception as e:
            logger.opt(exception=e).error(format_log("Automation run aborted", automation_id=automation_id, run_id=run_id))
            await self.session.rollback()
            if run_id is not None:
                await self.run_repo.abandon(run_id, f"Run aborted: {e}")
            await self.automation_repo.release(automation_id, claimed_at)
            raise

        logger.info(
            format_log(
                "Automation run finished",
                automation_id=automation.id,
                run_id=run.id,
                status=status.value,
                processed=result.metrics.get("processed"),
                failed=result.metrics.get("failed"),
            )
        )

        await NotificationService(self.session, self.ctx.organization_id).run_finished(automation, run.id, result)
        return RunNowResult(
            run_id=run.id,
            success=result.success,
            summary=result.summary,
            metrics=result.metrics,
            error=result.error,
        )

    async def _run_safely(self, automation: AutomationModel, run) -> RunnerResult:
        """Execute the runner; any exception becomes a failed result so the run record is always closed."""
        automation_id, run_id = automation.id, run.id
        try:
            return await execute_runner(self.ctx, automation, run_id)
        except Exception as e:
            logger.opt(exception=e).error(
                format_log("Automation runner crashed", automation_id=automation_id, run_id=run_id)
            )
            await self.session.rollback()
            await self.session.refresh(automation)
            await self.session.refresh(run)
            return RunnerResult.failure(f"Runner error: {e}")

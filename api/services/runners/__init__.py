"""Automation runners and the dispatcher that picks one by automation type."""

from api.core.context import ServiceContext
from api.schemas.automation import parse_parameters
from api.services.automation_settings_service import AutomationSettingsService
from api.shared.enums import AutomationType
from api.shared.exceptions import UnknownAutomationTypeError

from .base import AutomationRunner, RunnerResult
from .billing import ContractBillingRunner
from .digest import DailyDigestRunner
from .recurring import RecurringTransactionRunner

RUNNERS: dict[AutomationType, type[AutomationRunner]] = {
    AutomationType.CONTRACT_BILLING_RUN: ContractBillingRunner,
    AutomationType.RECURRING_TRANSACTION: RecurringTransactionRunner,
    AutomationType.DAILY_DIGEST: DailyDigestRunner,
}


def get_runner_class(automation_type: str) -> type[AutomationRunner]:
    try:
        return RUNNERS[AutomationType(automation_type)]
    except ValueError as e:
        raise UnknownAutomationTypeError(automation_type) from e


async def execute_runner(ctx: ServiceContext, automation, run_id: int) -> RunnerResult:
    """
    Run the automation's type-specific runner.

    The organization's error handling policy applies, overridden by
    `parameters.errorHandling` of the automation.
    """
    runner_class = get_runner_class(automation.type)
    policy = await AutomationSettingsService(ctx.session, automation.organization_id).error_policy()
    policy = policy.override(parse_parameters(automation.type, automation.parameters).error_handling)

    runner = runner_class(ctx, automation, run_id, policy)
    return await runner.run()


__all__ = [
    "RUNNERS",
    "AutomationRunner",
    "ContractBillingRunner",
    "DailyDigestRunner",
    "RecurringTransactionRunner",
    "RunnerResult",
    "execute_runner",
    "get_runner_class",
]

"""Preflight checks deciding whether an automation may run right now."""

from datetime import timedelta

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from api.helpers.schedule_converter import parse_schedule
from api.repositories.automation_repos import AutomationRunRepository
from api.repositories.transaction_repos import TransactionRepository
from api.schemas.automation import PreflightResult, parse_parameters
from api.services.automation_settings_service import AutomationSettingsService
from api.services.contract_eligibility import ContractEligibilityService
from api.shared.enums import AutomationType
from config.settings import settings
from utils.date_utils import utcnow

DISABLED = "automation disabled"
ALREADY_RUNNING = "automation already running"
NO_ELIGIBLE_CONTRACTS = "no eligible contracts"
TEMPLATE_NOT_FOUND = "template transaction not found"
NO_DIGEST_RECIPIENTS = "no digest recipients configured"


def _first_error(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "__root__")
    return f"{location}: {first['msg']}" if location else first["msg"]


class PreflightService:
    """
    Read-only checks, evaluated in order; the first failure is the reason.

    The "already running" check here is advisory. Two concurrent requests can
    both pass it; the atomic claim taken when the run starts settles the race.
    """

    def __init__(self, session: AsyncSession, organization_id: int):
        self.session = session
        self.organization_id = organization_id

    async def check(self, automation) -> PreflightResult:
        if not automation.enabled:
            return PreflightResult.rejected(DISABLED)

        if await self._is_running(automation):
            return PreflightResult.rejected(ALREADY_RUNNING)

        try:
            parse_schedule(automation.schedule)
        except ValidationError as e:
            return PreflightResult.rejected(f"invalid schedule: {_first_error(e)}")

        try:
            parameters = parse_parameters(automation.type, automation.parameters)
        except ValidationError as e:
            return PreflightResult.rejected(f"invalid parameters: {_first_error(e)}")
        except ValueError:
            return PreflightResult.rejected(f"unsupported automation type '{automation.type}'")

        reason = await self._check_targets(automation.type, parameters)
        return PreflightResult.rejected(reason) if reason else PreflightResult.passed()

    async def _is_running(self, automation) -> bool:
        stale_before = utcnow() - timedelta(minutes=settings.automation.claim_timeout_minutes)
        if automation.running_since is not None and automation.running_since >= stale_before:
            return True
        return await AutomationRunRepository(self.session).has_running(automation.id, since=stale_before)

    async def _check_targets(self, automation_type: str, parameters) -> str | None:
        if automation_type == AutomationType.CONTRACT_BILLING_RUN.value:
            eligible = await ContractEligibilityService(self.session, self.organization_id).eligible_contracts(
                parameters.contract_ids
            )
            return None if eligible else NO_ELIGIBLE_CONTRACTS

        if automation_type == AutomationType.RECURRING_TRANSACTION.value:
            template = await TransactionRepository(self.session).get_by_id(
                parameters.template_transaction_id, self.organization_id
            )
            return None if template else TEMPLATE_NOT_FOUND

        if automation_type == AutomationType.DAILY_DIGEST.value:
            if parameters.recipient_emails:
                return None
            admin_emails = await AutomationSettingsService(self.session, self.organization_id).admin_emails()
            return None if admin_emails else NO_DIGEST_RECIPIENTS

        return None

"""Contract billing runner: draws the periodic amount from every eligible funding contract."""

from datetime import date, timedelta
from decimal import Decimal

from api.repositories.audit_repos import AuditLogRepository
from api.repositories.care_repos import ContractRepository
from api.repositories.transaction_repos import TransactionRepository
from api.schemas.automation import ContractBillingParameters
from api.services.automation_settings_service import AutomationSettingsService
from api.services.contract_eligibility import ContractEligibilityService, EligibleContract
from api.services.transaction_service import TransactionService
from api.shared.enums import TransactionSource
from api.shared.exceptions import ItemProcessingError, ItemSkipped
from config.settings import settings
from utils.date_utils import start_of_day_utc, today_in

from .base import AutomationRunner, ItemTally

AUDIT_ACTION = "AUTOMATED_TRANSACTION_CREATED"


def due_periods(next_run_date: date, period_days: int, today: date, limit: int) -> list[date]:
    """Start dates of every period due on or before `today`, oldest first, at most `limit`."""
    periods = []
    current = next_run_date
    while current <= today and len(periods) < limit:
        periods.append(current)
        current += timedelta(days=period_days)
    return periods


class ContractBillingRunner(AutomationRunner):
    """
    Creates one draft transaction per due period for each eligible contract.

    A resident is billed from at most one contract per run; further contracts
    of the same resident are skipped. A resident that already has an automated
    transaction created today is skipped as well.
    """

    async def load_items(self) -> list[EligibleContract]:
        self.params = ContractBillingParameters.model_validate(self.parameters)
        self.timezone = await AutomationSettingsService(self.session, self.organization_id).timezone()
        self.today = today_in(self.timezone)
        self.transactions = TransactionService(self.session, self.organization_id)
        self.audit = AuditLogRepository(self.session)
        self.billed_residents: set[int] = set()
        self.total_amount = Decimal("0.00")
        self.transaction_ids: list[str] = []

        eligibility = ContractEligibilityService(self.session, self.organization_id)
        return await eligibility.eligible_contracts(self.params.contract_ids, today=self.today)

    def item_label(self, item: EligibleContract) -> str:
        return f"contract {item.contract_id} ({item.resident_name})"

    async def process_item(self, item: EligibleContract) -> None:
        if item.resident_id in self.billed_residents:
            raise ItemSkipped("resident already billed in this run")

        day_start = start_of_day_utc(self.today, self.timezone)
        already_billed = await TransactionRepository(self.session).exists_for_resident(
            self.organization_id,
            item.resident_id,
            day_start,
            day_start + timedelta(days=1),
            TransactionSource.AUTOMATION.value,
        )
        if already_billed:
            raise ItemSkipped("resident already billed today")

        if item.run_amount <= 0:
            raise ItemProcessingError("Run amount must be greater than zero")

        limit = 1
        if self.params.catch_up_mode:
            affordable = int(item.current_balance // item.run_amount)
            limit = max(1, min(settings.automation.max_catch_up_periods, affordable))
        periods = due_periods(item.next_run_date, item.period_days, self.today, limit)

        created = []
        for period_start in periods:
            period_end = period_start + timedelta(days=item.period_days - 1)
            transaction = await self.transactions.create(
                resident_id=item.resident_id,
                contract_id=item.contract_id,
                amount=item.run_amount,
                description=(
                    f"Automated {item.frequency} billing for {item.resident_name} "
                    f"({period_start.isoformat()} to {period_end.isoformat()})"
                ),
                support_item_code=item.support_item_code,
                source=TransactionSource.AUTOMATION,
                automation_id=self.automation_id,
                automation_run_id=self.run_id,
                created_by=self.ctx.actor,
            )
            await self.audit.record(
                self.organization_id,
                AUDIT_ACTION,
                "transaction",
                transaction.id,
                details={
                    "txnId": transaction.txn_id,
                    "contractId": item.contract_id,
                    "residentId": item.resident_id,
                    "amount": str(transaction.amount),
                    "periodStart": period_start.isoformat(),
                    "automationId": self.automation_id,
                    "runId": self.run_id,
                },
                actor=self.ctx.actor,
            )
            created.append(transaction)

        contract = await ContractRepository(self.session).get_by_id(item.contract_id, self.organization_id)
        contract.next_run_date = periods[-1] + timedelta(days=item.period_days)

        self.billed_residents.add(item.resident_id)
        self.total_amount += sum((t.amount for t in created), Decimal("0.00"))
        self.transaction_ids.extend(t.txn_id for t in created)

    def extra_metrics(self) -> dict:
        return {
            "totalAmount": float(self.total_amount),
            "transactionIds": list(self.transaction_ids),
            "catchUpMode": self.params.catch_up_mode,
        }

    def describe(self, tally: ItemTally) -> str:
        return (
            f"Billed {tally.succeeded} contract(s) for ${self.total_amount:,.2f} "
            f"({len(self.transaction_ids)} transaction(s)), {tally.failed} failed"
        )

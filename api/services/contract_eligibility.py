"""
Contract eligibility for automated billing.

A contract is billed on a run when it is active, its balance covers one
drawdown and its next drawdown date has arrived. The evaluation is read-only
and recomputed on every call; nothing here is persisted.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from api.repositories.care_repos import ContractRepository
from api.schemas.automation import EligibleContractResponse
from api.services.automation_settings_service import AutomationSettingsService
from api.services.rate_calculator import resolve_daily_rate, transaction_amount
from api.shared.enums import ContractStatus, DrawdownFrequency, ResidentStatus
from api.shared.exceptions import NotFoundError
from utils.date_utils import today_in

VALID_FREQUENCIES = {f.value for f in DrawdownFrequency}


@dataclass
class EligibleContract:
    """Snapshot of a contract's billing figures at evaluation time."""

    contract_id: int
    resident_id: int
    resident_name: str
    house_address: str | None
    current_balance: Decimal
    run_amount: Decimal
    daily_rate: Decimal
    next_run_date: date | None
    frequency: str | None
    support_item_code: str | None
    end_date: date | None = None
    reasons: list[str] = field(default_factory=list)

    @property
    def is_eligible(self) -> bool:
        return not self.reasons

    @property
    def period_days(self) -> int:
        return DrawdownFrequency(self.frequency).days

    def to_response(self) -> EligibleContractResponse:
        return EligibleContractResponse(
            contract_id=self.contract_id,
            resident_id=self.resident_id,
            resident_name=self.resident_name,
            house_address=self.house_address,
            current_balance=float(self.current_balance),
            run_amount=float(self.run_amount),
            daily_rate=float(self.daily_rate),
            next_run_date=self.next_run_date,
            frequency=self.frequency,
            support_item_code=self.support_item_code,
            is_eligible=self.is_eligible,
            reasons=list(self.reasons),
        )


def evaluate_contract(contract, resident, house, today: date) -> EligibleContract:
    """
    Evaluate one contract against every billing condition.

    All failing conditions are reported, in a stable order, so the UI can show
    everything that blocks billing at once.
    """
    reasons: list[str] = []
    balance = Decimal(str(contract.current_balance or 0))
    frequency = contract.drawdown_frequency
    daily_rate = resolve_daily_rate(contract)
    run_amount = transaction_amount(frequency, daily_rate) if frequency in VALID_FREQUENCIES else Decimal("0.00")

    if contract.contract_status != ContractStatus.ACTIVE.value:
        reasons.append(f"Contract status is '{contract.contract_status}', must be active")
    if resident.status != ResidentStatus.ACTIVE.value:
        reasons.append(f"Resident status is '{resident.status}', must be active")
    if not contract.auto_billing_enabled:
        reasons.append("Automated billing is not enabled")
    if frequency not in VALID_FREQUENCIES:
        reasons.append("Drawdown frequency is not set" if not frequency else f"Invalid drawdown frequency '{frequency}'")
    if balance <= 0:
        reasons.append("No remaining balance")
    elif balance < run_amount:
        reasons.append(f"Balance (${balance:,.2f}) is less than run amount (${run_amount:,.2f})")
    if contract.start_date and contract.start_date > today:
        reasons.append(f"Contract starts on {contract.start_date.isoformat()}")
    if contract.end_date and contract.end_date < today:
        reasons.append(f"Contract ended on {contract.end_date.isoformat()}")
    if contract.next_run_date is None:
        reasons.append("Next run date is not set")
    elif contract.next_run_date > today:
        reasons.append(f"Next run date {contract.next_run_date.isoformat()} is in the future")

    return EligibleContract(
        contract_id=contract.id,
        resident_id=resident.id,
        resident_name=resident.full_name,
        house_address=house.full_address if house is not None else None,
        current_balance=balance,
        run_amount=run_amount,
        daily_rate=daily_rate,
        next_run_date=contract.next_run_date,
        frequency=frequency,
        support_item_code=contract.support_item_code,
        end_date=contract.end_date,
        reasons=reasons,
    )


class ContractEligibilityService:
    def __init__(self, session: AsyncSession, organization_id: int):
        self.session = session
        self.organization_id = organization_id
        self.contract_repo = ContractRepository(session)

    async def today(self) -> date:
        timezone = await AutomationSettingsService(self.session, self.organization_id).timezone()
        return today_in(timezone)

    async def evaluate_all(self, contract_ids: list[int] | None = None, today: date | None = None) -> list[EligibleContract]:
        """Evaluate every contract of the organization (or the given subset)."""
        today = today or await self.today()
        rows = await self.contract_repo.list_with_residents(self.organization_id, contract_ids)
        return [evaluate_contract(contract, resident, house, today) for contract, resident, house in rows]

    async def evaluate(self, contract_id: int, today: date | None = None) -> EligibleContract:
        results = await self.evaluate_all([contract_id], today)
        if not results:
            raise NotFoundError("Contract", contract_id)
        return results[0]

    async def eligible_contracts(
        self, contract_ids: list[int] | None = None, today: date | None = None
    ) -> list[EligibleContract]:
        return [item for item in await self.evaluate_all(contract_ids, today) if item.is_eligible]

    async def preview(self, days: int, start: date | None = None) -> list[tuple[date, list[EligibleContract]]]:
        """
        Project which contracts will be billed on each of the next `days` days.

        Overdue contracts land on the first day. Balances are drawn down along
        the projection, so a contract drops out once it can no longer cover a
        run.
        """
        start = start or await self.today()
        end = start + timedelta(days=days - 1)
        buckets: dict[date, list[EligibleContract]] = {start + timedelta(days=i): [] for i in range(days)}

        # Evaluated as of the last day so contracts falling due inside the window qualify
        for item in await self.eligible_contracts(today=end):
            if item.run_amount <= 0:
                continue
            due = max(item.next_run_date, start)
            balance = item.current_balance
            while due <= end and balance >= item.run_amount:
                if item.end_date and due > item.end_date:
                    break
                buckets[due].append(item)
                balance -= item.run_amount
                due += timedelta(days=item.period_days)

        return list(buckets.items())

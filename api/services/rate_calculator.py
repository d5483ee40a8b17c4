"""Drawdown rate calculation for funding contracts."""

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from api.shared.enums import DrawdownFrequency

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Round to cents (half up)."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class ContractRateBreakdown:
    total_days: int
    daily_rate: Decimal
    weekly_rate: Decimal
    fortnightly_rate: Decimal

    def for_frequency(self, frequency: DrawdownFrequency) -> Decimal:
        return transaction_amount(frequency, self.daily_rate)


def contract_days(start_date: date, end_date: date) -> int:
    """Inclusive number of days covered by a contract."""
    return (end_date - start_date).days + 1


def calculate_contract_rates(amount: Decimal, start_date: date, end_date: date) -> ContractRateBreakdown:
    """
    Spread a contract amount evenly across its days.

    Args:
        amount: Total contract amount
        start_date: First day of the contract
        end_date: Last day of the contract (inclusive)

    Returns:
        Daily rate rounded to cents, weekly and fortnightly rates derived from it

    Raises:
        ValueError: Non-positive amount or end date before start date
    """
    amount = Decimal(str(amount))
    if amount <= 0:
        raise ValueError("Contract amount must be greater than zero")
    if end_date < start_date:
        raise ValueError("Contract end date must be on or after the start date")

    total_days = contract_days(start_date, end_date)
    daily = to_money(amount / total_days)
    return ContractRateBreakdown(
        total_days=total_days,
        daily_rate=daily,
        weekly_rate=to_money(daily * 7),
        fortnightly_rate=to_money(daily * 14),
    )


def transaction_amount(frequency: DrawdownFrequency | str, daily_rate: Decimal) -> Decimal:
    """Amount drawn per run for the given frequency."""
    return to_money(Decimal(str(daily_rate)) * DrawdownFrequency(frequency).days)


def resolve_daily_rate(contract) -> Decimal:
    """
    Daily rate of a contract: the stored support item cost, otherwise the
    contract amount spread over its date range. Zero when neither is known.
    """
    if contract.daily_support_item_cost is not None and contract.daily_support_item_cost > 0:
        return to_money(contract.daily_support_item_cost)
    if contract.start_date and contract.end_date and contract.original_amount:
        try:
            return calculate_contract_rates(contract.original_amount, contract.start_date, contract.end_date).daily_rate
        except ValueError:
            return Decimal("0.00")
    return Decimal("0.00")

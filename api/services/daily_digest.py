"""
Daily digest: a once-a-day summary of billing activity for administrators.

Aggregation and rendering are separate so the report can be inspected or
rendered differently without touching the database queries.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from html import escape

from sqlalchemy.ext.asyncio import AsyncSession

from api.repositories.auth_repos import OrganizationRepository
from api.repositories.automation_repos import AutomationRunRepository
from api.repositories.care_repos import ContractRepository, HouseRepository, ResidentRepository
from api.repositories.transaction_repos import TransactionRepository
from api.services.automation_settings_service import AutomationSettingsService
from api.services.contract_eligibility import ContractEligibilityService
from api.shared.enums import ContractStatus, ResidentStatus, TransactionStatus
from config.settings import settings
from utils.date_utils import start_of_day_utc, today_in


@dataclass
class ExpiringContract:
    resident_name: str
    contract_type: str
    end_date: date
    days_remaining: int


@dataclass
class LowBalanceContract:
    resident_name: str
    balance: float
    original_amount: float
    percent_remaining: float


@dataclass
class FailedAutomation:
    automation_name: str
    failed_at: str
    error: str


@dataclass
class DigestReport:
    organization_name: str
    timezone: str
    today: date
    lookback_days: int
    forward_days: int
    transaction_count: int = 0
    residents_billed: int = 0
    total_billed: float = 0.0
    draft_count: int = 0
    draft_amount: float = 0.0
    total_houses: int = 0
    total_bedrooms: int = 0
    occupied_bedrooms: int = 0
    upcoming_runs: int = 0
    upcoming_amount: float = 0.0
    expiring_contracts: list[ExpiringContract] = field(default_factory=list)
    low_balance_contracts: list[LowBalanceContract] = field(default_factory=list)
    failed_automations: list[FailedAutomation] = field(default_factory=list)

    @property
    def vacant_bedrooms(self) -> int:
        return max(0, self.total_bedrooms - self.occupied_bedrooms)

    @property
    def needs_attention(self) -> bool:
        return bool(self.expiring_contracts or self.low_balance_contracts or self.failed_automations)

    def as_metrics(self) -> dict:
        return {
            "transactionsBilled": self.transaction_count,
            "residentsBilled": self.residents_billed,
            "totalBilled": self.total_billed,
            "upcomingRuns": self.upcoming_runs,
            "upcomingAmount": self.upcoming_amount,
            "expiringContracts": len(self.expiring_contracts),
            "lowBalanceContracts": len(self.low_balance_contracts),
            "failedAutomations": len(self.failed_automations),
        }


class DailyDigestService:
    def __init__(self, session: AsyncSession, organization_id: int):
        self.session = session
        self.organization_id = organization_id

    async def aggregate(self, lookback_days: int = 1, forward_days: int = 7) -> DigestReport:
        timezone = await AutomationSettingsService(self.session, self.organization_id).timezone()
        today = today_in(timezone)
        organization = await OrganizationRepository(self.session).get_by_id(self.organization_id)

        report = DigestReport(
            organization_name=organization.name if organization else "",
            timezone=timezone,
            today=today,
            lookback_days=lookback_days,
            forward_days=forward_days,
        )

        window_start = start_of_day_utc(today - timedelta(days=lookback_days), timezone)
        window_end = start_of_day_utc(today, timezone)
        transactions = TransactionRepository(self.session)
        report.transaction_count, report.total_billed, report.residents_billed = await transactions.totals_between(
            self.organization_id, window_start, window_end
        )
        report.draft_count, report.draft_amount = await transactions.status_totals(
            self.organization_id, TransactionStatus.DRAFT.value
        )

        report.total_houses, report.total_bedrooms = await HouseRepository(self.session).count(self.organization_id)
        residents = await ResidentRepository(self.session).list(self.organization_id, ResidentStatus.ACTIVE.value)
        report.occupied_bedrooms = sum(1 for r in residents if r.house_id is not None)

        preview = await ContractEligibilityService(self.session, self.organization_id).preview(forward_days, start=today)
        for _, contracts in preview:
            report.upcoming_runs += len(contracts)
            report.upcoming_amount += float(sum(c.run_amount for c in contracts))

        await self._watch_list(report, today, window_start)
        return report

    async def _watch_list(self, report: DigestReport, today: date, since) -> None:
        horizon = today + timedelta(days=report.forward_days)
        threshold = settings.automation.low_balance_threshold

        rows = await ContractRepository(self.session).list_with_residents(self.organization_id)
        for contract, resident, _ in rows:
            if contract.contract_status != ContractStatus.ACTIVE.value:
                continue
            if contract.end_date and today <= contract.end_date <= horizon:
                report.expiring_contracts.append(
                    ExpiringContract(
                        resident_name=resident.full_name,
                        contract_type=contract.contract_type,
                        end_date=contract.end_date,
                        days_remaining=(contract.end_date - today).days,
                    )
                )
            original = float(contract.original_amount or 0)
            balance = float(contract.current_balance or 0)
            if original > 0 and balance / original < threshold:
                report.low_balance_contracts.append(
                    LowBalanceContract(
                        resident_name=resident.full_name,
                        balance=balance,
                        original_amount=original,
                        percent_remaining=round(balance / original * 100, 1),
                    )
                )

        failed = await AutomationRunRepository(self.session).failed_since(self.organization_id, since)
        for run, name in failed:
            error = (run.error or {}).get("message") or run.summary or "Unknown error"
            report.failed_automations.append(
                FailedAutomation(automation_name=name, failed_at=run.started_at.isoformat(), error=error)
            )


def _money(value: float) -> str:
    return f"${value:,.2f}"


def _plural(n: int, singular: str, plural: str | None = None) -> str:
    return f"{n} {singular if n == 1 else (plural or singular + 's')}"


def render_digest_subject(report: DigestReport) -> str:
    return f"{settings.app_name} Daily Brief: {report.today.strftime('%a %d %b %Y')}"


def render_digest_text(report: DigestReport) -> str:
    lines = [
        f"Good morning, {report.organization_name}." if report.organization_name else "Good morning.",
        "",
        f"Billed {_money(report.total_billed)} across {_plural(report.residents_billed, 'resident')} "
        f"({_plural(report.transaction_count, 'transaction')}) in the last {_plural(report.lookback_days, 'day')}.",
        f"{_plural(report.draft_count, 'draft transaction')} waiting to be posted ({_money(report.draft_amount)}).",
        f"Occupancy: {report.occupied_bedrooms} of {report.total_bedrooms} bedrooms across "
        f"{_plural(report.total_houses, 'house')} ({report.vacant_bedrooms} vacant).",
        f"Next {report.forward_days} days: {_plural(report.upcoming_runs, 'billing run')} "
        f"expected, {_money(report.upcoming_amount)}.",
    ]

    if report.needs_attention:
        lines += ["", "Needs attention:"]
        for c in report.expiring_contracts:
            lines.append(f"- {c.resident_name}: {c.contract_type} contract ends {c.end_date} ({c.days_remaining} days)")
        for c in report.low_balance_contracts:
            lines.append(f"- {c.resident_name}: {_money(c.balance)} left ({c.percent_remaining}% of contract)")
        for a in report.failed_automations:
            lines.append(f"- Automation '{a.automation_name}' failed: {a.error}")
    else:
        lines += ["", "Nothing needs your attention today."]

    lines += ["", f"Open {settings.app_name}: {settings.base_url}"]
    return "\n".join(lines)


def render_digest_html(report: DigestReport) -> str:
    parts: list[str] = []
    in_list = False
    for line in render_digest_text(report).splitlines():
        if line.startswith("- "):
            if not in_list:
                parts.append("<ul>")
                in_list = True
            parts.append(f"<li>{escape(line[2:])}</li>")
            continue
        if in_list:
            parts.append("</ul>")
            in_list = False
        if line:
            parts.append(f"<p>{escape(line)}</p>")
    if in_list:
        parts.append("</ul>")
    return f'<div style="font-family: sans-serif; line-height: 1.5">{"".join(parts)}</div>'

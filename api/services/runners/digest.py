"""Daily digest runner: aggregates the report once and emails it to each recipient."""

from api.schemas.automation import DailyDigestParameters
from api.services.automation_settings_service import AutomationSettingsService
from api.services.daily_digest import (
    DailyDigestService,
    render_digest_html,
    render_digest_subject,
    render_digest_text,
)
from api.services.email_service import EmailService
from api.shared.exceptions import EmailDeliveryError, ItemProcessingError, ItemSkipped

from .base import AutomationRunner, ItemTally


class DailyDigestRunner(AutomationRunner):
    async def load_items(self) -> list[str]:
        params = DailyDigestParameters.model_validate(self.parameters)
        self.report = await DailyDigestService(self.session, self.organization_id).aggregate(
            params.lookback_days, params.forward_days
        )
        self.subject = render_digest_subject(self.report)
        self.html = render_digest_html(self.report)
        self.text = render_digest_text(self.report)
        self.email = EmailService()
        self.delivered = 0

        if params.recipient_emails:
            return list(params.recipient_emails)
        return await AutomationSettingsService(self.session, self.organization_id).admin_emails()

    def item_label(self, item: str) -> str:
        return item

    async def process_item(self, item: str) -> None:
        if not self.email.is_configured:
            raise ItemSkipped("email delivery not configured")
        try:
            await self.email.send(item, self.subject, self.html, self.text)
        except EmailDeliveryError as e:
            # Delivery problems are usually transient
            raise ItemProcessingError(str(e), retryable=True) from e
        self.delivered += 1

    def extra_metrics(self) -> dict:
        return {**self.report.as_metrics(), "emailsSent": self.delivered}

    def describe(self, tally: ItemTally) -> str:
        return (
            f"Digest for {self.report.today.isoformat()} sent to {self.delivered} recipient(s); "
            f"{len(self.report.expiring_contracts) + len(self.report.low_balance_contracts)} contract(s) need attention"
        )

"""Run completion notifications: in-app rows on failure and admin emails per settings."""

from html import escape

from sqlalchemy.ext.asyncio import AsyncSession

from api.repositories.audit_repos import NotificationRepository
from api.services.automation_settings_service import AutomationSettingsService
from api.services.email_service import EmailService
from api.services.runners import RunnerResult
from api.shared.enums import AutomationType, NotificationType
from config.settings import settings
from logger import format_log, get_logger

logger = get_logger("api.notifications")


class NotificationService:
    def __init__(self, session: AsyncSession, organization_id: int, email: EmailService | None = None):
        self.session = session
        self.organization_id = organization_id
        self.repo = NotificationRepository(session)
        self.email = email or EmailService()

    async def run_finished(self, automation, run_id: int, result: RunnerResult) -> None:
        """
        Notify about a finished run.

        Failures create an in-app notification. Emails go to the admin
        recipients when the organization's settings ask for them; delivery
        problems are logged and never change the outcome of the run.
        """
        link = f"/automations/{automation.id}"
        if not result.success:
            await self.repo.create(
                self.organization_id,
                title=f"Automation failed: {automation.name}",
                message=result.error or result.summary,
                type=NotificationType.ERROR.value,
                link=link,
            )
            await self.session.commit()

        # The digest is itself an email
        if automation.type == AutomationType.DAILY_DIGEST.value:
            return

        settings_service = AutomationSettingsService(self.session, self.organization_id)
        if not await settings_service.notify_on(result.success):
            return

        recipients = await settings_service.admin_emails()
        if not recipients:
            logger.debug(format_log("No recipients for run notification", automation_id=automation.id))
            return

        status = "succeeded" if result.success else "failed"
        subject = f"[{settings.app_name}] {automation.name} {status}"
        text = f"{automation.name} {status} (run {run_id}).\n\n{result.summary}"
        if result.error:
            text += f"\n\nError: {result.error}"
        text += f"\n\n{settings.base_url}{link}"
        html = "".join(f"<p>{escape(part)}</p>" for part in text.split("\n\n"))

        await self.email.send_many(recipients, subject, html, text)

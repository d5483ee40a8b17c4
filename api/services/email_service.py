"""Outgoing email through the transactional email HTTP API."""

import httpx

from api.shared.exceptions import EmailDeliveryError
from config.settings import settings
from logger import format_log, get_logger

logger = get_logger("api.email")


class EmailService:
    """
    Thin client for the email API.

    When no API key is configured, messages are logged and dropped so local
    and test environments never need network access.
    """

    def __init__(self, email_settings=None):
        self.config = email_settings or settings.email

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    def _payload(self, to: str, subject: str, html: str, text: str | None) -> dict:
        payload = {
            "from": {"address": self.config.from_address, "name": self.config.from_name},
            "to": [{"email_address": {"address": to}}],
            "subject": subject,
            "htmlbody": html,
        }
        if text:
            payload["textbody"] = text
        return payload

    async def send(self, to: str, subject: str, html: str, text: str | None = None) -> bool:
        """
        Send one message.

        Returns:
            True when the API accepted the message, False when delivery is not configured

        Raises:
            EmailDeliveryError: The API rejected the message or could not be reached
        """
        if not self.is_configured:
            logger.info(format_log("Email delivery not configured, message skipped", to=to, subject=subject))
            return False

        headers = {
            "Authorization": f"Zoho-enczapikey {self.config.api_key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
                response = await client.post(self.config.api_url, json=self._payload(to, subject, html, text), headers=headers)
        except httpx.HTTPError as e:
            raise EmailDeliveryError(to, str(e)) from e

        if response.status_code >= 400:
            raise EmailDeliveryError(to, f"{response.status_code} - {response.text[:200]}")

        logger.info(format_log("Email sent", to=to, subject=subject))
        return True

    async def send_many(self, recipients: list[str], subject: str, html: str, text: str | None = None) -> int:
        """Send the same message to each recipient; failures are logged. Returns the number delivered."""
        delivered = 0
        for recipient in recipients:
            try:
                if await self.send(recipient, subject, html, text):
                    delivered += 1
            except EmailDeliveryError as e:
                logger.warning(format_log("Email delivery failed", to=e.recipient, reason=e.reason))
        return delivered

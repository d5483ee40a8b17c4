"""Organization automation settings and the error handling policy derived from them."""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from api.repositories.auth_repos import OrganizationRepository, UserRepository
from api.repositories.automation_repos import AutomationSettingsRepository
from api.schemas.automation import AutomationSettingsUpdate, ErrorHandlingOverride
from config.settings import settings
from database.automation_models import AutomationSettingsModel


@dataclass(frozen=True)
class ErrorHandlingPolicy:
    max_retries: int = 3
    retry_delay_ms: int = 5000
    continue_on_error: bool = True

    @property
    def attempts(self) -> int:
        """Attempts per item: `max_retries`, but always at least one."""
        return max(1, self.max_retries)

    def override(self, overrides: ErrorHandlingOverride | None) -> "ErrorHandlingPolicy":
        if overrides is None:
            return self
        return ErrorHandlingPolicy(
            max_retries=self.max_retries if overrides.max_retries is None else overrides.max_retries,
            retry_delay_ms=self.retry_delay_ms if overrides.retry_delay_ms is None else overrides.retry_delay_ms,
            continue_on_error=(
                self.continue_on_error if overrides.continue_on_error is None else overrides.continue_on_error
            ),
        )


class AutomationSettingsService:
    def __init__(self, session: AsyncSession, organization_id: int):
        self.session = session
        self.organization_id = organization_id
        self.repo = AutomationSettingsRepository(session)

    async def get(self) -> AutomationSettingsModel:
        return await self.repo.get_or_create(self.organization_id)

    async def update(self, data: AutomationSettingsUpdate) -> AutomationSettingsModel:
        model = await self.get()
        updates = data.model_dump(exclude_unset=True, exclude={"error_handling"})
        if data.error_handling is not None:
            updates.update(data.error_handling.model_dump())
        return await self.repo.update(model, updates)

    async def error_policy(self) -> ErrorHandlingPolicy:
        model = await self.repo.get(self.organization_id)
        if model is None:
            return ErrorHandlingPolicy()
        return ErrorHandlingPolicy(
            max_retries=model.max_retries,
            retry_delay_ms=model.retry_delay_ms,
            continue_on_error=model.continue_on_error,
        )

    async def notify_on(self, success: bool) -> bool:
        """Whether admins want an email for a run with this outcome. Never creates the settings row."""
        model = await self.repo.get(self.organization_id)
        if model is None:
            return not success
        return model.notify_on_success if success else model.notify_on_failure

    async def timezone(self) -> str:
        """Timezone used to decide what "today" means for billing."""
        model = await self.repo.get(self.organization_id)
        if model is not None and model.timezone:
            return model.timezone
        organization = await OrganizationRepository(self.session).get_by_id(self.organization_id)
        if organization is not None and organization.timezone:
            return organization.timezone
        return settings.automation.default_timezone

    async def admin_emails(self) -> list[str]:
        """Configured admin emails, falling back to the organization's admin users."""
        model = await self.repo.get(self.organization_id)
        if model is not None and model.admin_emails:
            return list(model.admin_emails)
        return await UserRepository(self.session).get_organization_emails(self.organization_id)

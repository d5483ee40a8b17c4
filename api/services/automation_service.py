"""Business logic service for automation definitions."""

from __future__ import annotations

from pydantic import ValidationError

from api.core.context import ServiceContext
from api.helpers.schedule_converter import calculate_next_run_at
from api.repositories.automation_repos import AutomationRepository, AutomationRunRepository
from api.schemas.automation import AutomationCreate, AutomationUpdate, parse_parameters
from api.shared.exceptions import BadRequestError, NotFoundError
from database.automation_models import AutomationModel, AutomationRunModel
from logger import format_log, get_logger

logger = get_logger("api.automations")


def _validation_message(prefix: str, error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{prefix}: {location} {first['msg']}" if location else f"{prefix}: {first['msg']}"


class AutomationService:
    """Service for managing automations with validation and schedule bookkeeping."""

    def __init__(self, ctx: ServiceContext):
        self.ctx = ctx
        self.repo = AutomationRepository(ctx.session)
        self.run_repo = AutomationRunRepository(ctx.session)

    def _validate_parameters(self, automation_type: str, raw: dict | None) -> dict:
        """Validate type-specific parameters; returns the camelCase form that is stored."""
        try:
            parameters = parse_parameters(automation_type, raw)
        except ValidationError as e:
            raise BadRequestError(_validation_message("Invalid parameters", e)) from e
        return parameters.model_dump(mode="json", by_alias=True, exclude_none=True)

    async def list(self) -> list[AutomationModel]:
        return await self.repo.list(self.ctx.organization_id)

    async def get(self, automation_id: int) -> AutomationModel:
        automation = await self.repo.get_by_id(automation_id, self.ctx.organization_id)
        if automation is None:
            raise NotFoundError("Automation", automation_id)
        return automation

    async def create(self, data: AutomationCreate) -> AutomationModel:
        schedule = data.schedule.to_storage()
        automation = await self.repo.create(
            {
                "name": data.name,
                "description": data.description,
                "type": data.type.value,
                "enabled": data.enabled,
                "schedule": schedule,
                "parameters": self._validate_parameters(data.type, data.parameters),
                "next_run_at": calculate_next_run_at(schedule),
            },
            organization_id=self.ctx.organization_id,
            created_by_user_id=self.ctx.user_id,
        )
        logger.info(format_log("Automation created", automation_id=automation.id, type=automation.type))
        return automation

    async def update(self, automation_id: int, data: AutomationUpdate) -> AutomationModel:
        automation = await self.get(automation_id)
        fields = data.model_dump(exclude_unset=True)
        if not fields:
            raise BadRequestError("No fields to update")

        updates: dict = {}
        for key in ("name", "description", "enabled"):
            if key in fields:
                updates[key] = fields[key]

        if data.schedule is not None:
            try:
                updates["schedule"] = data.schedule.merge_into(automation.schedule).to_storage()
            except ValidationError as e:
                raise BadRequestError(_validation_message("Invalid schedule", e)) from e

        if "parameters" in fields:
            updates["parameters"] = self._validate_parameters(automation.type, data.parameters)

        # A new schedule or re-enabling starts counting from now
        if "schedule" in updates or (updates.get("enabled") and not automation.enabled):
            updates["next_run_at"] = calculate_next_run_at(updates.get("schedule", automation.schedule))

        return await self.repo.update(automation, updates)

    async def toggle(self, automation_id: int) -> AutomationModel:
        automation = await self.get(automation_id)
        updates: dict = {"enabled": not automation.enabled}
        if updates["enabled"]:
            updates["next_run_at"] = calculate_next_run_at(automation.schedule)
        automation = await self.repo.update(automation, updates)
        logger.info(format_log("Automation toggled", automation_id=automation.id, enabled=automation.enabled))
        return automation

    async def delete(self, automation_id: int) -> None:
        automation = await self.get(automation_id)
        await self.repo.delete(automation)
        logger.info(format_log("Automation deleted", automation_id=automation_id))

    async def runs(self, automation_id: int, limit: int = 20) -> list[AutomationRunModel]:
        automation = await self.get(automation_id)
        return await self.run_repo.list_for_automation(automation.id, limit)

    async def organization_runs(self, limit: int = 50) -> list[AutomationRunModel]:
        return await self.run_repo.list_for_organization(self.ctx.organization_id, limit)

"""Automation CRUD schemas."""

from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_validator

from api.schemas.common import BASE_MODEL_CONFIG, ORM_MODEL_CONFIG, UtcDateTime
from api.shared.enums import AutomationHealth, AutomationType, RunStatus

from .schedule import AutomationSchedule, AutomationSchedulePatch

# Alternate spellings accepted at the API boundary, stored canonically
TYPE_ALIASES = {
    "billing": AutomationType.CONTRACT_BILLING_RUN.value,
    "contract_billing": AutomationType.CONTRACT_BILLING_RUN.value,
    "recurring": AutomationType.RECURRING_TRANSACTION.value,
    "digest": AutomationType.DAILY_DIGEST.value,
}


def _normalize_type(v):
    if isinstance(v, str):
        v = v.strip().lower()
        return TYPE_ALIASES.get(v, v)
    return v


class AutomationCreate(BaseModel):
    model_config = BASE_MODEL_CONFIG

    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    type: AutomationType
    schedule: AutomationSchedule
    enabled: bool = Field(True, validation_alias=AliasChoices("enabled", "isEnabled", "is_enabled"))
    parameters: dict[str, Any] = Field(default_factory=dict)

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v):
        return _normalize_type(v)


class AutomationUpdate(BaseModel):
    model_config = BASE_MODEL_CONFIG

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    schedule: AutomationSchedulePatch | None = None
    enabled: bool | None = Field(None, validation_alias=AliasChoices("enabled", "isEnabled", "is_enabled"))
    parameters: dict[str, Any] | None = None


class AutomationResponse(BaseModel):
    model_config = ORM_MODEL_CONFIG

    id: int
    name: str
    description: str | None = None
    type: AutomationType
    enabled: bool
    schedule: dict[str, Any]
    schedule_description: str
    parameters: dict[str, Any]
    last_run_at: UtcDateTime | None = None
    last_run_status: RunStatus | None = None
    next_run_at: UtcDateTime | None = None
    is_running: bool = False
    health: AutomationHealth
    created_at: UtcDateTime
    updated_at: UtcDateTime

    @classmethod
    def from_model(cls, automation) -> "AutomationResponse":
        try:
            description = AutomationSchedule.model_validate(automation.schedule).human_readable()
        except ValueError:
            description = "Invalid schedule"

        if not automation.enabled:
            health = AutomationHealth.DISABLED
        elif automation.last_run_status == RunStatus.FAILED.value:
            health = AutomationHealth.BROKEN
        else:
            health = AutomationHealth.ACTIVE

        return cls(
            id=automation.id,
            name=automation.name,
            description=automation.description,
            type=automation.type,
            enabled=automation.enabled,
            schedule=automation.schedule or {},
            schedule_description=description,
            parameters=automation.parameters or {},
            last_run_at=automation.last_run_at,
            last_run_status=automation.last_run_status,
            next_run_at=automation.next_run_at,
            is_running=automation.running_since is not None,
            health=health,
            created_at=automation.created_at,
            updated_at=automation.updated_at,
        )

"""Organization-level automation settings schemas."""

from pydantic import BaseModel, EmailStr, Field, field_validator

from api.schemas.common import (
    BASE_MODEL_CONFIG,
    ORM_MODEL_CONFIG,
    UtcDateTime,
    clean_and_deduplicate_strings,
    validate_time_of_day,
    validate_timezone,
)


class ErrorHandlingSettings(BaseModel):
    model_config = BASE_MODEL_CONFIG

    max_retries: int = Field(3, ge=0, le=10)
    retry_delay_ms: int = Field(5000, ge=0, le=60000)
    continue_on_error: bool = True


class AutomationSettingsResponse(BaseModel):
    model_config = ORM_MODEL_CONFIG

    enabled: bool
    run_time: str
    timezone: str
    admin_emails: list[str]
    notify_on_success: bool
    notify_on_failure: bool
    error_handling: ErrorHandlingSettings
    updated_at: UtcDateTime

    @classmethod
    def from_model(cls, model) -> "AutomationSettingsResponse":
        return cls(
            enabled=model.enabled,
            run_time=model.run_time,
            timezone=model.timezone,
            admin_emails=list(model.admin_emails or []),
            notify_on_success=model.notify_on_success,
            notify_on_failure=model.notify_on_failure,
            error_handling=ErrorHandlingSettings(
                max_retries=model.max_retries,
                retry_delay_ms=model.retry_delay_ms,
                continue_on_error=model.continue_on_error,
            ),
            updated_at=model.updated_at,
        )


class AutomationSettingsUpdate(BaseModel):
    model_config = BASE_MODEL_CONFIG

    enabled: bool | None = None
    run_time: str | None = None
    timezone: str | None = None
    admin_emails: list[EmailStr] | None = None
    notify_on_success: bool | None = None
    notify_on_failure: bool | None = None
    error_handling: ErrorHandlingSettings | None = None

    @field_validator("run_time")
    @classmethod
    def check_run_time(cls, v: str | None) -> str | None:
        return validate_time_of_day(v) if v is not None else v

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v: str | None) -> str | None:
        return validate_timezone(v) if v is not None else v

    @field_validator("admin_emails")
    @classmethod
    def clean_emails(cls, v: list[str] | None) -> list[str] | None:
        return clean_and_deduplicate_strings(v)

"""Frequency-based schedule schemas for automations."""

from pydantic import BaseModel, Field, field_validator, model_validator

from api.schemas.common import BASE_MODEL_CONFIG, validate_time_of_day, validate_timezone
from api.shared.enums import ScheduleFrequency
from config.settings import settings
from utils.date_utils import ordinal

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


class AutomationSchedule(BaseModel):
    """
    When an automation runs: a frequency plus an anchor time in a timezone.

    Stored on the automation as camelCase JSON:
    `{"frequency": "weekly", "timeOfDay": "02:00", "timezone": "Australia/Sydney", "dayOfWeek": 1}`.
    A bare string ("daily") is accepted as shorthand for `{"frequency": "daily"}`.
    """

    model_config = BASE_MODEL_CONFIG

    frequency: ScheduleFrequency
    time_of_day: str = Field(default_factory=lambda: settings.automation.default_run_time)
    timezone: str = Field(default_factory=lambda: settings.automation.default_timezone)
    day_of_week: int | None = Field(None, ge=0, le=6, description="0=Sunday ... 6=Saturday (weekly only)")
    day_of_month: int | None = Field(
        None, ge=1, le=31, description="Day of month (monthly only); months without that day are skipped"
    )

    @model_validator(mode="before")
    @classmethod
    def expand_shorthand(cls, data):
        if isinstance(data, str):
            return {"frequency": data}
        return data

    @field_validator("frequency", mode="before")
    @classmethod
    def normalize_frequency(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("time_of_day")
    @classmethod
    def check_time_of_day(cls, v: str) -> str:
        return validate_time_of_day(v)

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v: str) -> str:
        return validate_timezone(v)

    @model_validator(mode="after")
    def apply_frequency_defaults(self) -> "AutomationSchedule":
        if self.frequency == ScheduleFrequency.WEEKLY:
            if self.day_of_week is None:
                self.day_of_week = 1
            self.day_of_month = None
        elif self.frequency == ScheduleFrequency.MONTHLY:
            if self.day_of_month is None:
                self.day_of_month = 1
            self.day_of_week = None
        else:
            self.day_of_week = None
            self.day_of_month = None
        return self

    @property
    def hour(self) -> int:
        return int(self.time_of_day.split(":")[0])

    @property
    def minute(self) -> int:
        return int(self.time_of_day.split(":")[1])

    def to_cron(self) -> str:
        """Convert to a five-field cron expression (cron weekdays also use 0=Sunday)."""
        if self.frequency == ScheduleFrequency.WEEKLY:
            return f"{self.minute} {self.hour} * * {self.day_of_week}"
        if self.frequency == ScheduleFrequency.MONTHLY:
            return f"{self.minute} {self.hour} {self.day_of_month} * *"
        return f"{self.minute} {self.hour} * * *"

    def human_readable(self) -> str:
        if self.frequency == ScheduleFrequency.WEEKLY:
            return f"Every {DAY_NAMES[self.day_of_week]} at {self.time_of_day}"
        if self.frequency == ScheduleFrequency.MONTHLY:
            return f"Monthly on the {ordinal(self.day_of_month)} at {self.time_of_day}"
        return f"Daily at {self.time_of_day}"

    def to_storage(self) -> dict:
        """JSON representation persisted in `automations.schedule`."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class AutomationSchedulePatch(BaseModel):
    """Partial schedule; merged over the stored schedule on update."""

    model_config = BASE_MODEL_CONFIG

    frequency: ScheduleFrequency | None = None
    time_of_day: str | None = None
    timezone: str | None = None
    day_of_week: int | None = Field(None, ge=0, le=6)
    day_of_month: int | None = Field(None, ge=1, le=31)

    @model_validator(mode="before")
    @classmethod
    def expand_shorthand(cls, data):
        if isinstance(data, str):
            return {"frequency": data.strip().lower()}
        return data

    def merge_into(self, stored: dict) -> AutomationSchedule:
        """Apply this patch on top of a stored schedule and validate the result."""
        changes = self.model_dump(mode="json", by_alias=True, exclude_unset=True)
        return AutomationSchedule.model_validate({**(stored or {}), **changes})

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database connection settings"""

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    database: str = Field(default="haven_care", description="Database name")
    username: str = Field(default="postgres", description="Database user")
    password: str = Field(default="", description="Database password")
    echo: bool = Field(default=False, description="Echo SQL statements")

    @property
    def url(self) -> str:
        """Async URL used by the application"""
        return f"postgresql+asyncpg://{self.username}:{self.password}@{self.host}:{self.port}/{self.database}"

    @property
    def sync_url(self) -> str:
        """Sync URL used by Alembic"""
        return f"postgresql://{self.username}:{self.password}@{self.host}:{self.port}/{self.database}"


class LoggingSettings(BaseSettings):
    """Logging settings"""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    file_path: str | None = Field(default=None, description="Log file (console only when empty)")


class AutomationSettings(BaseSettings):
    """Defaults for the automation run pipeline"""

    default_timezone: str = Field(default="Australia/Sydney", description="Timezone for new schedules")
    default_run_time: str = Field(default="02:00", description="Default time of day for schedules (HH:MM)")
    claim_timeout_minutes: int = Field(
        default=60, ge=1, description="A run claim older than this is treated as abandoned"
    )
    max_catch_up_periods: int = Field(default=50, ge=1, le=500, description="Max periods billed in catch-up mode")
    low_balance_threshold: float = Field(
        default=0.2, ge=0, le=1, description="Share of the original amount below which a contract is low"
    )
    scheduler_batch_size: int = Field(default=100, ge=1, description="Due automations processed per scheduler tick")


class EmailSettings(BaseSettings):
    """Transactional email API settings"""

    api_url: str = Field(default="https://api.zeptomail.com/v1.1/email", description="Email API endpoint")
    api_key: str | None = Field(default=None, description="Email API key (emails are skipped when empty)")
    from_address: str = Field(default="noreply@havencare.app", description="Sender address")
    from_name: str = Field(default="Haven Care", description="Sender name")
    timeout_seconds: float = Field(default=10.0, gt=0)


class AppSettings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    automation: AutomationSettings = Field(default_factory=AutomationSettings)
    email: EmailSettings = Field(default_factory=EmailSettings)

    app_name: str = Field(default="Haven Care", description="Application name")
    version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    base_url: str = Field(default="http://localhost:3000", description="Frontend URL used in emails")


settings = AppSettings()

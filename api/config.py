"""FastAPI application configuration."""

import warnings
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "change-me-in-production-haven-care-secret"


class APISettings(BaseSettings):
    """HTTP layer settings, read from API_* environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="API_",
        case_sensitive=False,
        extra="ignore",
    )

    # API
    api_title: str = Field(default="Haven Care API", description="API title")
    api_version: str = Field(default="1.0.0", description="API version")
    api_description: str = Field(
        default="Residential care administration and billing automation", description="API description"
    )
    docs_url: str = Field(default="/docs")
    redoc_url: str = Field(default="/redoc")
    openapi_url: str = Field(default="/openapi.json")

    # CORS
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")
    cors_allow_credentials: bool = Field(default=True)
    cors_allow_methods: list[str] = Field(default=["*"])
    cors_allow_headers: list[str] = Field(default=["*"])

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1, le=65535)
    reload: bool = Field(default=False)
    run_migrations_on_startup: bool = Field(default=True, description="Run `alembic upgrade head` on startup")

    # Celery
    celery_broker_url: str = Field(default="redis://localhost:6379/0", description="Celery broker URL")
    celery_result_backend: str = Field(default="redis://localhost:6379/0", description="Celery result backend")

    # JWT
    jwt_secret_key: str = Field(default=DEFAULT_JWT_SECRET, min_length=32, description="JWT signing key (32+ chars)")
    jwt_algorithm: Literal["HS256", "HS384", "HS512"] = Field(default="HS256")
    jwt_access_token_expire_minutes: int = Field(default=30, ge=1, le=1440)
    jwt_refresh_token_expire_days: int = Field(default=7, ge=1, le=30)

    # Security
    bcrypt_rounds: int = Field(default=12, ge=4, le=31, description="bcrypt cost factor")
    cron_secret: str | None = Field(default=None, description="Bearer secret for the external scheduler endpoint")

    # Rate limiting
    rate_limit_enabled: bool = Field(default=True)
    rate_limit_per_minute: int = Field(default=60, ge=1)
    rate_limit_per_hour: int = Field(default=1000, ge=1)

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret(cls, v: str) -> str:
        if v == DEFAULT_JWT_SECRET:
            warnings.warn(
                "Using default JWT secret key! Set API_JWT_SECRET_KEY in production",
                stacklevel=2,
            )
        if len(v) < 32:
            raise ValueError("JWT secret key must be at least 32 characters long")
        return v

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Accept a comma-separated string as well as a list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v


_settings_instance: APISettings | None = None


def get_settings() -> APISettings:
    """API settings singleton."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = APISettings()
    return _settings_instance

"""Authentication request schemas."""

from pydantic import BaseModel, EmailStr, Field, field_validator

from api.schemas.common import BASE_MODEL_CONFIG


class RegisterRequest(BaseModel):
    """Creates an organization together with its first admin user."""

    model_config = BASE_MODEL_CONFIG

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    full_name: str | None = Field(None, max_length=255)
    organization_name: str = Field(..., min_length=1, max_length=255)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if not any(char.isdigit() for char in v):
            raise ValueError("Password must contain at least one digit")
        if not any(char.isupper() for char in v):
            raise ValueError("Password must contain at least one uppercase letter")
        return v


class LoginRequest(BaseModel):
    model_config = BASE_MODEL_CONFIG

    email: EmailStr
    password: str


class RefreshTokenRequest(BaseModel):
    model_config = BASE_MODEL_CONFIG

    refresh_token: str

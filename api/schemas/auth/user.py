"""User schemas."""

from datetime import datetime

from pydantic import BaseModel, EmailStr

from api.schemas.common import ORM_MODEL_CONFIG


class UserInDB(BaseModel):
    """Authenticated user as seen by dependencies and services."""

    model_config = ORM_MODEL_CONFIG

    id: int
    email: EmailStr
    full_name: str | None = None
    organization_id: int | None = None
    role: str = "admin"
    is_active: bool = True
    hashed_password: str
    last_login_at: datetime | None = None


class UserResponse(BaseModel):
    model_config = ORM_MODEL_CONFIG

    id: int
    email: EmailStr
    full_name: str | None = None
    organization_id: int | None = None
    role: str
    is_active: bool
    created_at: datetime

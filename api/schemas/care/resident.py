"""Resident schemas."""

from datetime import date

from pydantic import BaseModel, Field, field_validator

from api.schemas.common import BASE_MODEL_CONFIG, ORM_MODEL_CONFIG, UtcDateTime, normalize_choice
from api.shared.enums import ResidentStatus

RESIDENT_STATUSES = {s.value for s in ResidentStatus}


class ResidentCreate(BaseModel):
    model_config = BASE_MODEL_CONFIG

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    house_id: int | None = None
    status: str = ResidentStatus.ACTIVE.value
    ndis_number: str | None = Field(None, max_length=20)
    date_of_birth: date | None = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        return normalize_choice(v, RESIDENT_STATUSES, "resident status")


class ResidentUpdate(BaseModel):
    model_config = BASE_MODEL_CONFIG

    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    house_id: int | None = None
    status: str | None = None
    ndis_number: str | None = Field(None, max_length=20)
    date_of_birth: date | None = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        return normalize_choice(v, RESIDENT_STATUSES, "resident status")


class ResidentResponse(BaseModel):
    model_config = ORM_MODEL_CONFIG

    id: int
    house_id: int | None = None
    first_name: str
    last_name: str
    full_name: str
    status: str
    ndis_number: str | None = None
    date_of_birth: date | None = None
    created_at: UtcDateTime

"""Reusable response envelopes."""

from datetime import UTC, datetime
from typing import Annotated, Generic, TypeVar

from pydantic import BaseModel, PlainSerializer

from .config import BASE_MODEL_CONFIG

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """`{success: true, data}` envelope shared by all endpoints."""

    model_config = BASE_MODEL_CONFIG

    success: bool = True
    data: T


class MessageData(BaseModel):
    model_config = BASE_MODEL_CONFIG

    message: str


def ok(data) -> dict:
    """Wrap a payload in the success envelope."""
    return {"success": True, "data": data}


def _serialize_utc(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


# Timestamps are stored as naive UTC; emit them with an explicit Z suffix
UtcDateTime = Annotated[datetime, PlainSerializer(_serialize_utc, return_type=str, when_used="json")]

"""In-app notification schemas."""

from pydantic import BaseModel

from api.schemas.common import ORM_MODEL_CONFIG, UtcDateTime


class NotificationResponse(BaseModel):
    model_config = ORM_MODEL_CONFIG

    id: int
    type: str
    title: str
    message: str
    link: str | None = None
    is_read: bool
    created_at: UtcDateTime

"""Health check schemas."""

from pydantic import BaseModel

from .config import BASE_MODEL_CONFIG


class HealthCheckResponse(BaseModel):
    model_config = BASE_MODEL_CONFIG

    status: str
    service: str
    version: str

"""Token schemas."""

from pydantic import BaseModel, Field

from api.schemas.common import BASE_MODEL_CONFIG


class TokenPair(BaseModel):
    model_config = BASE_MODEL_CONFIG

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token lifetime in seconds")

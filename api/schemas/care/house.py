"""House schemas."""

from pydantic import BaseModel, Field

from api.schemas.common import BASE_MODEL_CONFIG, ORM_MODEL_CONFIG, UtcDateTime


class HouseCreate(BaseModel):
    model_config = BASE_MODEL_CONFIG

    name: str = Field(..., min_length=1, max_length=200)
    address: str = Field(..., min_length=1, max_length=500)
    suburb: str | None = Field(None, max_length=100)
    state: str | None = Field(None, max_length=20)
    postcode: str | None = Field(None, max_length=10)
    bedrooms: int = Field(0, ge=0, le=100)


class HouseResponse(BaseModel):
    model_config = ORM_MODEL_CONFIG

    id: int
    name: str
    address: str
    suburb: str | None = None
    state: str | None = None
    postcode: str | None = None
    full_address: str
    bedrooms: int
    status: str
    created_at: UtcDateTime

"""Transaction schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_serializer

from api.schemas.common import BASE_MODEL_CONFIG, ORM_MODEL_CONFIG, UtcDateTime


class TransactionCreate(BaseModel):
    model_config = BASE_MODEL_CONFIG

    resident_id: int
    contract_id: int | None = None
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    description: str | None = Field(None, max_length=2000)
    support_item_code: str | None = Field(None, max_length=50)
    occurred_at: datetime | None = None


class TransactionResponse(BaseModel):
    model_config = ORM_MODEL_CONFIG

    id: int
    txn_id: str
    resident_id: int
    contract_id: int | None = None
    amount: Decimal
    description: str | None = None
    support_item_code: str | None = None
    status: str
    source: str
    automation_id: int | None = None
    automation_run_id: int | None = None
    created_by: str | None = None
    occurred_at: UtcDateTime
    created_at: UtcDateTime

    @field_serializer("amount")
    def serialize_amount(self, value: Decimal) -> float:
        return float(value)

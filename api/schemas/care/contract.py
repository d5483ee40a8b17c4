"""Funding contract schemas."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator

from api.schemas.common import BASE_MODEL_CONFIG, ORM_MODEL_CONFIG, UtcDateTime, normalize_choice
from api.shared.enums import ContractStatus, DrawdownFrequency

CONTRACT_STATUSES = {s.value for s in ContractStatus}
FREQUENCIES = {f.value for f in DrawdownFrequency}


class _ContractChoices(BaseModel):
    model_config = BASE_MODEL_CONFIG

    @field_validator("contract_status", mode="before", check_fields=False)
    @classmethod
    def normalize_status(cls, v):
        return normalize_choice(v, CONTRACT_STATUSES, "contract status")

    @field_validator("drawdown_frequency", mode="before", check_fields=False)
    @classmethod
    def normalize_frequency(cls, v):
        return normalize_choice(v, FREQUENCIES, "drawdown frequency")


class ContractCreate(_ContractChoices):
    resident_id: int
    contract_type: str = Field("NDIS", max_length=50)
    contract_status: str = ContractStatus.DRAFT.value
    description: str | None = None
    original_amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    current_balance: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    start_date: date | None = None
    end_date: date | None = None
    auto_billing_enabled: bool = True
    drawdown_frequency: str = DrawdownFrequency.DAILY.value
    next_run_date: date | None = None
    daily_support_item_cost: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    support_item_code: str | None = Field(None, max_length=50)

    @model_validator(mode="after")
    def check_dates(self) -> "ContractCreate":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        if self.current_balance is None:
            self.current_balance = self.original_amount
        return self


class ContractUpdate(_ContractChoices):
    contract_type: str | None = Field(None, max_length=50)
    contract_status: str | None = None
    description: str | None = None
    current_balance: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    start_date: date | None = None
    end_date: date | None = None
    auto_billing_enabled: bool | None = None
    drawdown_frequency: str | None = None
    next_run_date: date | None = None
    daily_support_item_cost: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    support_item_code: str | None = Field(None, max_length=50)


class ContractResponse(BaseModel):
    model_config = ORM_MODEL_CONFIG

    id: int
    resident_id: int
    contract_type: str
    contract_status: str
    description: str | None = None
    original_amount: Decimal
    current_balance: Decimal
    start_date: date | None = None
    end_date: date | None = None
    auto_billing_enabled: bool
    drawdown_frequency: str | None = None
    next_run_date: date | None = None
    daily_support_item_cost: Decimal | None = None
    support_item_code: str | None = None
    created_at: UtcDateTime

    @field_serializer("original_amount", "current_balance", "daily_support_item_cost")
    def serialize_money(self, value: Decimal | None) -> float | None:
        return float(value) if value is not None else None

"""Contract eligibility, rate calculation and preview schemas."""

from datetime import date
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from api.schemas.common import BASE_MODEL_CONFIG
from api.shared.enums import DrawdownFrequency


class EligibleContractResponse(BaseModel):
    model_config = BASE_MODEL_CONFIG

    contract_id: int
    resident_id: int
    resident_name: str
    house_address: str | None = None
    current_balance: float
    run_amount: float
    daily_rate: float
    next_run_date: date | None = None
    frequency: DrawdownFrequency | None = None
    support_item_code: str | None = None
    is_eligible: bool
    reasons: list[str]


class ContractRates(BaseModel):
    model_config = BASE_MODEL_CONFIG

    total_days: int
    daily_rate: float
    weekly_rate: float
    fortnightly_rate: float


class CalculateRatesRequest(BaseModel):
    """`calculate` returns rates for the given figures; `enable` also stores them on the contract."""

    model_config = BASE_MODEL_CONFIG

    action: Literal["calculate", "enable"] = "calculate"
    contract_id: int | None = None
    amount: Decimal | None = Field(None, gt=0)
    start_date: date | None = None
    end_date: date | None = None
    frequency: DrawdownFrequency = DrawdownFrequency.DAILY
    first_run_date: date | None = None

    @model_validator(mode="after")
    def check_inputs(self) -> "CalculateRatesRequest":
        if self.action == "enable" and self.contract_id is None:
            raise ValueError("contract_id is required to enable automated billing")
        if self.contract_id is None and (self.amount is None or self.start_date is None or self.end_date is None):
            raise ValueError("amount, start_date and end_date are required without contract_id")
        return self


class CalculateRatesResponse(BaseModel):
    model_config = BASE_MODEL_CONFIG

    rates: ContractRates
    frequency: DrawdownFrequency
    transaction_amount: float
    contract_id: int | None = None
    enabled: bool = False
    next_run_date: date | None = None


class PreviewDay(BaseModel):
    model_config = BASE_MODEL_CONFIG

    day: date
    contracts: list[EligibleContractResponse]
    total_amount: float

"""Type-specific automation parameters."""

from pydantic import BaseModel, EmailStr, Field, field_validator

from api.schemas.common import BASE_MODEL_CONFIG
from api.shared.enums import AutomationType


class ErrorHandlingOverride(BaseModel):
    """Per-automation override of the organization's error handling policy."""

    model_config = BASE_MODEL_CONFIG

    max_retries: int | None = Field(None, ge=0, le=10)
    retry_delay_ms: int | None = Field(None, ge=0, le=60000)
    continue_on_error: bool | None = None


class BaseParameters(BaseModel):
    model_config = BASE_MODEL_CONFIG

    error_handling: ErrorHandlingOverride | None = None


class ContractBillingParameters(BaseParameters):
    contract_ids: list[int] | None = Field(None, description="Target contracts (all when omitted)")
    catch_up_mode: bool = Field(False, description="Bill every missed period up to today")
    notify_emails: list[EmailStr] = Field(default_factory=list)


class RecurringTransactionParameters(BaseParameters):
    template_transaction_id: int = Field(..., description="Transaction cloned on every run")


class DailyDigestParameters(BaseParameters):
    lookback_days: int = Field(1, ge=1, le=31)
    forward_days: int = Field(7, ge=1, le=60)
    recipient_emails: list[EmailStr] = Field(default_factory=list)

    @field_validator("recipient_emails")
    @classmethod
    def deduplicate(cls, v: list[str]) -> list[str]:
        return list(dict.fromkeys(email.lower() for email in v))


PARAMETER_MODELS: dict[AutomationType, type[BaseParameters]] = {
    AutomationType.CONTRACT_BILLING_RUN: ContractBillingParameters,
    AutomationType.RECURRING_TRANSACTION: RecurringTransactionParameters,
    AutomationType.DAILY_DIGEST: DailyDigestParameters,
}


def parse_parameters(automation_type: AutomationType | str, raw: dict | None) -> BaseParameters:
    """
    Validate raw parameters for the given automation type.

    Raises:
        pydantic.ValidationError: If the parameters do not match the type's schema
    """
    model = PARAMETER_MODELS[AutomationType(automation_type)]
    return model.model_validate(raw or {})

"""Schemas for automations, runs and billing eligibility."""

from .automation import AutomationCreate, AutomationResponse, AutomationUpdate
from .eligibility import (
    CalculateRatesRequest,
    CalculateRatesResponse,
    ContractRates,
    EligibleContractResponse,
    PreviewDay,
)
from .parameters import (
    ContractBillingParameters,
    DailyDigestParameters,
    ErrorHandlingOverride,
    RecurringTransactionParameters,
    parse_parameters,
)
from .run import AutomationRunResponse, PreflightResult, RunNowResult, SchedulerTickResult
from .schedule import AutomationSchedule, AutomationSchedulePatch
from .settings import AutomationSettingsResponse, AutomationSettingsUpdate, ErrorHandlingSettings

__all__ = [
    "AutomationCreate",
    "AutomationResponse",
    "AutomationRunResponse",
    "AutomationSchedule",
    "AutomationSchedulePatch",
    "AutomationSettingsResponse",
    "AutomationSettingsUpdate",
    "AutomationUpdate",
    "CalculateRatesRequest",
    "CalculateRatesResponse",
    "ContractBillingParameters",
    "ContractRates",
    "DailyDigestParameters",
    "EligibleContractResponse",
    "ErrorHandlingOverride",
    "ErrorHandlingSettings",
    "PreflightResult",
    "PreviewDay",
    "RecurringTransactionParameters",
    "RunNowResult",
    "SchedulerTickResult",
    "parse_parameters",
]

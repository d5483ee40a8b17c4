from enum import Enum


class AutomationType(str, Enum):
    CONTRACT_BILLING_RUN = "contract_billing_run"
    RECURRING_TRANSACTION = "recurring_transaction"
    DAILY_DIGEST = "daily_digest"


class ScheduleFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class RunStatus(str, Enum):
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


class RunOutcome(str, Enum):
    """Finer-grained result carried in run metrics."""

    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


class RunTrigger(str, Enum):
    MANUAL = "manual"
    SCHEDULER = "scheduler"


class AutomationHealth(str, Enum):
    ACTIVE = "active"
    BROKEN = "broken"
    DISABLED = "disabled"


class ContractStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class ResidentStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DISCHARGED = "discharged"


class DrawdownFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    FORTNIGHTLY = "fortnightly"

    @property
    def days(self) -> int:
        return {"daily": 1, "weekly": 7, "fortnightly": 14}[self.value]


class TransactionStatus(str, Enum):
    DRAFT = "draft"
    POSTED = "posted"
    VOIDED = "voided"


class TransactionSource(str, Enum):
    MANUAL = "manual"
    AUTOMATION = "automation"


class NotificationType(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

"""Run ledger, preflight and run-now schemas."""

from typing import Any

from pydantic import BaseModel

from api.schemas.common import BASE_MODEL_CONFIG, ORM_MODEL_CONFIG, UtcDateTime
from api.shared.enums import RunStatus, RunTrigger


class PreflightResult(BaseModel):
    """Whether an automation may run now. `reason` names the first failing check."""

    model_config = BASE_MODEL_CONFIG

    can_run: bool
    reason: str | None = None

    @classmethod
    def passed(cls) -> "PreflightResult":
        return cls(can_run=True)

    @classmethod
    def rejected(cls, reason: str) -> "PreflightResult":
        return cls(can_run=False, reason=reason)


class RunNowResult(BaseModel):
    model_config = BASE_MODEL_CONFIG

    run_id: int
    success: bool
    summary: str
    metrics: dict[str, Any]
    error: str | None = None


class AutomationRunResponse(BaseModel):
    model_config = ORM_MODEL_CONFIG

    id: int
    automation_id: int
    status: RunStatus
    triggered_by: RunTrigger
    started_at: UtcDateTime
    finished_at: UtcDateTime | None = None
    summary: str | None = None
    metrics: dict[str, Any] | None = None
    error: dict[str, Any] | None = None


class SchedulerTickResult(BaseModel):
    model_config = BASE_MODEL_CONFIG

    due: int
    executed: int
    skipped: int
    failed: int
    runs: list[dict[str, Any]]

"""Base runner: per-item processing with savepoints, retries and error collection."""

import asyncio
from dataclasses import dataclass, field
from typing import Any

from api.core.context import ServiceContext
from api.services.automation_settings_service import ErrorHandlingPolicy
from api.shared.enums import RunOutcome
from api.shared.exceptions import ItemProcessingError, ItemSkipped
from logger import format_log, get_logger

logger = get_logger("api.runners")


@dataclass
class RunnerResult:
    success: bool
    summary: str
    metrics: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    @classmethod
    def failure(cls, message: str, metrics: dict[str, Any] | None = None) -> "RunnerResult":
        base = {"processed": 0, "succeeded": 0, "failed": 0, "skipped": 0, "outcome": RunOutcome.FAILED.value}
        return cls(success=False, summary=message, metrics={**base, **(metrics or {})}, error=message)


@dataclass
class ItemTally:
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)
    stopped_early: bool = False


class AutomationRunner:
    """
    Base class for automation runners.

    Subclasses load their units of work in `load_items` and handle one unit in
    `process_item`. Each attempt runs inside its own savepoint and the outer
    transaction is committed after every item, so one failed item never undoes
    the work of another.

    Per-item errors never propagate out of `run`. `ItemProcessingError` with
    `retryable=False` is recorded without further attempts, `ItemSkipped`
    counts the item as skipped, anything else is retried.
    """

    def __init__(self, ctx: ServiceContext, automation, run_id: int, policy: ErrorHandlingPolicy):
        self.ctx = ctx
        self.session = ctx.session
        self.organization_id = automation.organization_id
        self.automation_id = automation.id
        self.automation_name = automation.name
        self.parameters = automation.parameters or {}
        self.run_id = run_id
        self.policy = policy

    async def load_items(self) -> list:
        raise NotImplementedError

    async def process_item(self, item) -> None:
        raise NotImplementedError

    def item_label(self, item) -> str:
        return str(item)

    def extra_metrics(self) -> dict[str, Any]:
        """Type-specific figures merged into the run metrics."""
        return {}

    def describe(self, tally: ItemTally) -> str:
        return f"Processed {tally.processed} item(s): {tally.succeeded} succeeded, {tally.failed} failed"

    async def run(self) -> RunnerResult:
        items = await self.load_items()
        tally = await self.process_items(items)
        return self.build_result(tally)

    async def process_items(self, items: list) -> ItemTally:
        tally = ItemTally()
        for index, item in enumerate(items):
            label = self.item_label(item)
            try:
                attempts = await self._process_with_retries(item, label)
            except ItemSkipped as e:
                tally.skipped += 1
                logger.debug(format_log("Item skipped", automation_id=self.automation_id, item=label, reason=e))
                continue
            except _ItemFailed as e:
                tally.processed += 1
                tally.failed += 1
                tally.errors.append({"item": label, "error": e.message, "attempts": e.attempts})
                if not self.policy.continue_on_error:
                    tally.skipped += len(items) - index - 1
                    tally.stopped_early = True
                    break
                continue

            tally.processed += 1
            tally.succeeded += 1
            logger.debug(format_log("Item processed", automation_id=self.automation_id, item=label, attempts=attempts))
        return tally

    async def _process_with_retries(self, item, label: str) -> int:
        """Returns the number of attempts used; raises `_ItemFailed` once attempts are exhausted."""
        max_attempts = self.policy.attempts
        for attempt in range(1, max_attempts + 1):
            try:
                async with self.session.begin_nested():
                    await self.process_item(item)
                await self.session.commit()
                return attempt
            except ItemSkipped:
                await self.session.commit()
                raise
            except Exception as e:
                await self.session.commit()
                retryable = not isinstance(e, ItemProcessingError) or e.retryable
                logger.warning(
                    format_log(
                        "Item attempt failed",
                        automation_id=self.automation_id,
                        run_id=self.run_id,
                        item=label,
                        attempt=f"{attempt}/{max_attempts}",
                        error=e,
                    )
                )
                if not retryable or attempt == max_attempts:
                    raise _ItemFailed(str(e) or type(e).__name__, attempt) from e
                if self.policy.retry_delay_ms > 0:
                    await asyncio.sleep(self.policy.retry_delay_ms / 1000)
        raise AssertionError("unreachable")

    def build_result(self, tally: ItemTally) -> RunnerResult:
        """
        Terminal status: failed when an item failed and processing may not
        continue past errors, or when every processed item failed. A run with
        some failures otherwise succeeds with a `partial` outcome.
        """
        all_failed = tally.processed > 0 and tally.failed == tally.processed
        if tally.failed and (not self.policy.continue_on_error or all_failed):
            outcome = RunOutcome.FAILED
        elif tally.failed:
            outcome = RunOutcome.PARTIAL
        else:
            outcome = RunOutcome.SUCCESS

        metrics = {
            "processed": tally.processed,
            "succeeded": tally.succeeded,
            "failed": tally.failed,
            "skipped": tally.skipped,
            "outcome": outcome.value,
            "errors": tally.errors,
            **self.extra_metrics(),
        }
        summary = self.describe(tally)
        if tally.skipped:
            summary += f", {tally.skipped} skipped"
        if tally.stopped_early:
            summary += " (stopped at first error)"

        error = None
        if outcome == RunOutcome.FAILED:
            first = tally.errors[0]
            error = f"{tally.failed} item(s) failed; first error on {first['item']}: {first['error']}"
        return RunnerResult(success=outcome != RunOutcome.FAILED, summary=summary, metrics=metrics, error=error)


class _ItemFailed(Exception):
    def __init__(self, message: str, attempts: int):
        self.message = message
        self.attempts = attempts
        super().__init__(message)

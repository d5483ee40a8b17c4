"""Schedule conversion and next-run calculation helpers"""

from datetime import datetime

import pytz
from croniter import croniter

from api.schemas.automation.schedule import AutomationSchedule
from utils.date_utils import utcnow


def parse_schedule(schedule: dict | str) -> AutomationSchedule:
    """
    Validate a stored schedule.

    Raises:
        pydantic.ValidationError: If the schedule is malformed
    """
    return AutomationSchedule.model_validate(schedule)


def schedule_to_cron(schedule: dict | str) -> tuple[str, str]:
    """
    Convert a schedule to (cron_expression, human_readable).

    Args:
        schedule: Stored schedule dict (or shorthand frequency string)

    Returns:
        Tuple of (cron_expression, human_readable_description)
    """
    obj = parse_schedule(schedule)
    return obj.to_cron(), obj.human_readable()


def get_next_run_time(cron_expression: str, timezone_str: str, after: datetime | None = None) -> datetime:
    """
    Calculate the first cron occurrence strictly after `after`, evaluated in the given timezone.

    Args:
        cron_expression: Cron expression
        timezone_str: Timezone the expression is anchored in (e.g. 'Australia/Sydney')
        after: Naive UTC reference time (defaults to now)

    Returns:
        Next run as a naive UTC datetime
    """
    tz = pytz.timezone(timezone_str)
    base_utc = pytz.UTC.localize(after or utcnow())
    cron = croniter(cron_expression, base_utc.astimezone(tz))
    next_run = cron.get_next(datetime)
    if next_run.tzinfo is None:
        next_run = tz.localize(next_run)
    return next_run.astimezone(pytz.UTC).replace(tzinfo=None)


def calculate_next_run_at(
    schedule: dict | str,
    previous: datetime | None = None,
    now: datetime | None = None,
) -> datetime:
    """
    Next scheduled time for an automation.

    Computed from the later of `now` and the previous `next_run_at`, so the
    value always moves forward, including after a failed run or a manual run
    triggered ahead of the slot.

    Args:
        schedule: Stored schedule
        previous: Current `next_run_at` of the automation
        now: Naive UTC reference time (defaults to now)

    Returns:
        Naive UTC datetime strictly greater than both `now` and `previous`
    """
    obj = parse_schedule(schedule)
    reference = now or utcnow()
    if previous is not None and previous > reference:
        reference = previous
    return get_next_run_time(obj.to_cron(), obj.timezone, after=reference)

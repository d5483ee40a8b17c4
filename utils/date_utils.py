"""Date utilities"""

from datetime import UTC, date, datetime

import pytz


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the storage convention for all timestamps)."""
    return datetime.now(UTC).replace(tzinfo=None)


def today_in(timezone_str: str, now: datetime | None = None) -> date:
    """
    Calendar date in the given timezone.

    Args:
        timezone_str: IANA timezone name (e.g. 'Australia/Sydney')
        now: Naive UTC reference time (defaults to current time)

    Returns:
        Local date for the reference time
    """
    reference = now or utcnow()
    return pytz.UTC.localize(reference).astimezone(pytz.timezone(timezone_str)).date()


def start_of_day_utc(day: date, timezone_str: str) -> datetime:
    """Naive UTC datetime of local midnight for `day` in the given timezone."""
    tz = pytz.timezone(timezone_str)
    local_midnight = tz.localize(datetime(day.year, day.month, day.day))
    return local_midnight.astimezone(pytz.UTC).replace(tzinfo=None)


def ordinal(n: int) -> str:
    """1 -> '1st', 2 -> '2nd', 11 -> '11th', 23 -> '23rd'."""
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def parse_date(date_str: str) -> date:
    """
    Parse a date given in one of the accepted formats.

    Supported formats: YYYY-MM-DD, DD-MM-YYYY, DD/MM/YYYY, DD-MM-YY, DD/MM/YY.

    Raises:
        ValueError: If the string matches none of the formats
    """
    date_str = date_str.strip()
    formats = ["%Y-%m-%d", "%d-%m-%Y", "%d/%m/%Y", "%d-%m-%y", "%d/%m/%y"]

    for fmt in formats:
        try:
            return datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue

    raise ValueError(f"Invalid date '{date_str}', expected YYYY-MM-DD")

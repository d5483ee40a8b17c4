"""Common Pydantic schema validators

Only checks that cannot be expressed with Field constraints live here. Status
values are normalized to one lower-case vocabulary at this boundary so the rest
of the code never compares alternate spellings.
"""

import re

import pytz

TIME_OF_DAY_PATTERN = re.compile(r"^([01][0-9]|2[0-3]):[0-5][0-9]$")


def normalize_choice(v, allowed: set[str], field_name: str) -> str | None:
    """
    Lower-case and validate an enumerated string value.

    Raises:
        ValueError: If the value is not one of `allowed`
    """
    if v is None:
        return None
    value = getattr(v, "value", v)
    normalized = str(value).strip().lower()
    if normalized not in allowed:
        raise ValueError(f"Invalid {field_name} '{value}'. Expected one of: {', '.join(sorted(allowed))}")
    return normalized


def validate_time_of_day(v: str) -> str:
    """Validate HH:MM (24h). Single-digit hours are zero padded."""
    if re.match(r"^[0-9]:[0-5][0-9]$", v):
        v = f"0{v}"
    if not TIME_OF_DAY_PATTERN.match(v):
        raise ValueError(f"Invalid time '{v}', expected HH:MM")
    return v


def validate_timezone(v: str) -> str:
    if v not in pytz.all_timezones_set:
        raise ValueError(f"Unknown timezone '{v}'")
    return v


def clean_and_deduplicate_strings(v: list[str] | None) -> list[str] | None:
    """Strip, drop empties and deduplicate preserving order (case-insensitive)."""
    if v is None:
        return None
    seen: set[str] = set()
    result = []
    for item in v:
        cleaned = item.strip()
        if cleaned and cleaned.lower() not in seen:
            seen.add(cleaned.lower())
            result.append(cleaned)
    return result

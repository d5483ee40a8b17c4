"""Common schemas"""

from .config import BASE_MODEL_CONFIG, ORM_MODEL_CONFIG
from .responses import ApiResponse, MessageData, UtcDateTime, ok
from .validators import (
    clean_and_deduplicate_strings,
    normalize_choice,
    validate_time_of_day,
    validate_timezone,
)

__all__ = [
    "ApiResponse",
    "BASE_MODEL_CONFIG",
    "MessageData",
    "ORM_MODEL_CONFIG",
    "UtcDateTime",
    "clean_and_deduplicate_strings",
    "normalize_choice",
    "ok",
    "validate_time_of_day",
    "validate_timezone",
]

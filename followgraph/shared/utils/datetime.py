"""
UTC time utilities for consistent timezone handling.

Relationship rows store creation time as integer epoch seconds; event
payloads carry ISO-8601 UTC strings. Use these helpers instead of
datetime.now() or time.time().
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Return the current UTC datetime with timezone info.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(UTC)


def now_timestamp() -> int:
    """Return the current Unix timestamp in whole seconds."""
    return int(utc_now().timestamp())

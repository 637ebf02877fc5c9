"""
UTC datetime utilities for consistent timezone handling.

All datetime values in the system should be timezone-aware UTC. Cache
entries, version tokens and snapshots store epoch milliseconds.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Return the current UTC datetime with timezone info.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(UTC)


def now_ms() -> int:
    """Return the current time as integer epoch milliseconds."""
    return int(utc_now().timestamp() * 1000)


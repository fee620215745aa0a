"""
Time-related utilities for the persistence layer.

Timestamps are persisted as integer epoch seconds (UTC) so they compare and
sort numerically in every store, and are handed back to callers as
timezone-aware ``datetime`` values.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return the current UTC time truncated to whole seconds."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def to_timestamp(value: datetime) -> int:
    """Convert a datetime to epoch seconds.

    Naive datetimes are assumed to already be in UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)

    return int(value.timestamp())


def from_timestamp(value: int | float | str) -> datetime:
    """Convert stored epoch seconds back to an aware UTC datetime.

    Example:
        from_timestamp(1700000000) -> 2023-11-14T22:13:20+00:00
    """
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def now_timestamp() -> int:
    """Return the current time as epoch seconds."""
    return to_timestamp(utc_now())

"""UTC-everywhere time handling. Eliminates timezone bugs at the source."""

from datetime import datetime, timezone


def now_utc() -> datetime:
    """
    Current time in UTC.

    Use this instead of datetime.now() everywhere. Services take a clock
    callable defaulting to this so tests can move time forward.
    """
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    Raises ValueError if datetime is naive (no timezone).
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot convert naive datetime to UTC. Datetime must be timezone-aware."
        )
    return dt.astimezone(timezone.utc)


def to_unix(dt: datetime) -> int:
    """
    Whole seconds since the epoch for a timezone-aware datetime.

    BOLT11 timestamps are integer seconds; fractional parts are dropped.
    """
    return int(to_utc(dt).timestamp())

"""
Time helpers - all engine datetimes are naive UTC
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as naive UTC, the default engine clock"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Normalize an aware datetime to naive UTC; naive values are taken as UTC"""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def isoformat(value):
    return value.isoformat() if value else None

"""UTC handling for match timestamps.

Scheduled start times arrive from clients and must carry an offset. Values
read back from SQLite come without one and are stored as UTC.
"""

from __future__ import annotations

from datetime import datetime, timezone


def _is_naive(value: datetime) -> bool:
    return value.tzinfo is None or value.utcoffset() is None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def require_utc(value: datetime | None, *, field_name: str = "timestamp") -> datetime | None:
    """Convert a client supplied datetime to UTC.

    Raises ``ValueError`` for naive values so a schedule is never silently
    shifted by the server's local zone.
    """

    if value is None:
        return None
    if _is_naive(value):
        raise ValueError(f"{field_name} must include a timezone offset")
    return value.astimezone(timezone.utc)


def coerce_utc(value: datetime | None) -> datetime | None:
    """Normalize a stored datetime; naive values are taken to be UTC already."""

    if value is None:
        return None
    if _is_naive(value):
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

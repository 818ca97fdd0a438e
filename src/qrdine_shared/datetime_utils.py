"""
Datetime utilities.
"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    """
    Get current UTC time (timezone-aware).
    """
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes (SQLite round-trips) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_epoch_ms(value: datetime | None) -> int | None:
    if value is None:
        return None
    return int(ensure_aware(value).timestamp() * 1000)


def from_epoch_ms(value: int | float, tz: str | None = None) -> datetime:
    moment = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if tz:
        return moment.astimezone(ZoneInfo(tz))
    return moment


def now_ms() -> int:
    return int(utcnow().timestamp() * 1000)

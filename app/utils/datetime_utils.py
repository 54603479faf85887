from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from app.core.config import BUSINESS_TIMEZONE


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; everything is stored in UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def business_isoweekday(now: datetime) -> int:
    """Monday=1 ... Sunday=7 in the restaurant's local time."""
    return as_utc(now).astimezone(ZoneInfo(BUSINESS_TIMEZONE)).isoweekday()

"""
Time helpers shared by the repository, service and reconstruction layers
"""
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Normalize to an aware UTC datetime; naive values are already UTC (storage convention)"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def offset_timezone(offset_minutes: Optional[int]) -> Optional[tzinfo]:
    """Fixed-offset zone for a viewer offset in minutes east of UTC, None for server local"""
    if offset_minutes is None:
        return None
    return timezone(timedelta(minutes=offset_minutes))


def local_day(value: datetime, tz: Optional[tzinfo] = None) -> str:
    """Calendar day (YYYY-MM-DD) of an instant in the viewer's zone"""
    return to_utc(value).astimezone(tz).date().isoformat()


def millis_between(start: datetime, end: datetime) -> int:
    """Whole milliseconds from start to end, never negative"""
    delta = to_utc(end) - to_utc(start)
    return max(0, delta // timedelta(milliseconds=1))

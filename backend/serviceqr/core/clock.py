"""Time sources.

Timer-driven UI state (success flashes, "new" badges) and the analytics
windows read the time through a clock object so tests can pin it.
"""

from datetime import datetime, timezone, tzinfo
from functools import lru_cache
from typing import Optional, Protocol
from zoneinfo import ZoneInfo

from serviceqr.core.config import settings


class Clock(Protocol):
    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock, always timezone-aware UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


system_clock = SystemClock()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a datetime read from the database.

    SQLite drops tzinfo on the way back, so naive values are taken as UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@lru_cache
def local_timezone(name: Optional[str] = None) -> tzinfo:
    """Timezone used for calendar-day and clock-hour buckets."""
    return ZoneInfo(name or settings.timezone)

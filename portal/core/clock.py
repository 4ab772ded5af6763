"""Local calendar helpers for the daily batch jobs."""

from datetime import date, datetime
from zoneinfo import ZoneInfo

from portal.core.config import settings


def local_now() -> datetime:
    """Current time in the parish's configured timezone."""
    return datetime.now(ZoneInfo(settings.timezone))


def sunday_based_weekday(day: date) -> int:
    """Day of week with 0=Sunday through 6=Saturday."""
    return (day.weekday() + 1) % 7

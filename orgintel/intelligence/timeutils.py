"""Time zone and calendar-month helpers for the intelligence engine."""

from datetime import datetime
from zoneinfo import ZoneInfo


def to_local(value: datetime, tz: ZoneInfo) -> datetime:
    """Express a datetime in ``tz``; naive values are taken as already local."""
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Return the (year, month) that is ``delta`` months away."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_start(value: datetime, delta: int = 0) -> datetime:
    """First instant of the month ``delta`` months from ``value``'s month."""
    year, month = shift_month(value.year, value.month, delta)
    return value.replace(
        year=year, month=month, day=1, hour=0, minute=0, second=0, microsecond=0
    )


def month_key(value: datetime) -> str:
    return f"{value.year}-{value.month:02d}"

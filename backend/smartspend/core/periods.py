"""
Calendar windows used by every aggregation.

All boundaries are naive datetimes in server-local time; nothing here reads
the clock, callers pass `now` in.
"""
import calendar
from datetime import datetime, timedelta
from typing import Tuple

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
               "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

PERIODS = ("weekly", "monthly", "yearly")


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def shift_month(year: int, month: int, offset: int) -> Tuple[int, int]:
    """(year, month) moved by `offset` months, crossing year boundaries."""
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=23, minute=59, second=59, microsecond=999000)


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    start = datetime(year, month, 1)
    end = end_of_day(datetime(year, month, days_in_month(year, month)))
    return start, end


def period_bounds(period: str, now: datetime) -> Tuple[datetime, datetime]:
    """
    Inclusive [start, end] window of the budget period containing `now`.

    weekly: most recent Sunday 00:00:00 to the following Saturday 23:59:59.999
    monthly: first to last calendar day of the month
    yearly: Jan 1 to Dec 31
    """
    if period == "weekly":
        # datetime.weekday(): Monday=0 .. Sunday=6
        days_since_sunday = (now.weekday() + 1) % 7
        start = start_of_day(now) - timedelta(days=days_since_sunday)
        end = end_of_day(start + timedelta(days=6))
        return start, end
    if period == "monthly":
        return month_bounds(now.year, now.month)
    if period == "yearly":
        return datetime(now.year, 1, 1), end_of_day(datetime(now.year, 12, 31))
    raise ValueError(f"Unknown period: {period}")


def is_weekend(moment: datetime) -> bool:
    return moment.weekday() >= 5

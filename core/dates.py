"""
Calendar-day arithmetic for check-ins and streaks.

Every function works in the server timezone (settings.TIME_ZONE) so that
"today", "yesterday" and day boundaries agree across the whole system.
Naive datetimes are taken to already be in that timezone.
"""
from datetime import date, datetime, time, timedelta
from typing import Optional, Union

import pytz
from django.conf import settings
from django.utils import timezone

DateLike = Union[datetime, date]

MILESTONE_DAYS = [7, 30, 100, 365]


def server_tz():
    return pytz.timezone(settings.TIME_ZONE)


def local_date(t: DateLike) -> date:
    """Calendar date of ``t`` in the server timezone."""
    if isinstance(t, datetime):
        if timezone.is_naive(t):
            return t.date()
        return t.astimezone(server_tz()).date()
    return t


def _localize(d: date, at: time) -> datetime:
    return server_tz().localize(datetime.combine(d, at))


def day_start(t: DateLike) -> datetime:
    """Aware datetime at 00:00:00 of ``t``'s calendar date."""
    return _localize(local_date(t), time.min)


def day_end(t: DateLike) -> datetime:
    """Aware datetime at 23:59:59.999999 of ``t``'s calendar date."""
    return _localize(local_date(t), time.max)


def today_start(now: Optional[datetime] = None) -> datetime:
    return day_start(now or timezone.now())


def is_same_day(a: DateLike, b: DateLike) -> bool:
    return local_date(a) == local_date(b)


def is_consecutive_day(a: DateLike, b: DateLike) -> bool:
    """True if ``b`` falls on the calendar day right after ``a``."""
    return local_date(a) + timedelta(days=1) == local_date(b)


def days_between(a: DateLike, b: DateLike) -> int:
    """Whole calendar days between the two dates, order-independent."""
    return abs((local_date(b) - local_date(a)).days)


def is_today(t: DateLike, now: Optional[datetime] = None) -> bool:
    return is_same_day(t, now or timezone.now())


def is_yesterday(t: DateLike, now: Optional[datetime] = None) -> bool:
    return is_consecutive_day(t, now or timezone.now())


def format_date(t: DateLike) -> str:
    """YYYY-MM-DD in the server timezone."""
    return local_date(t).isoformat()


def days_until_milestone(current_streak: int) -> int:
    for milestone in MILESTONE_DAYS:
        if current_streak < milestone:
            return milestone - current_streak
    # Past the table: count towards the next yearly mark.
    return 365 - (current_streak % 365)

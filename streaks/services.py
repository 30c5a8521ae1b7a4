"""
Read side of streaks: current streak, history, stats and the leaderboard.
"""
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.utils import timezone

from accounts.models import UserProfile
from core.dates import days_between, local_date

from .models import Streak


def current_streak(user, habit) -> Streak:
    """The active streak, or an unsaved zero-length placeholder."""
    streak = Streak.objects.active_for(user, habit)
    if streak is not None:
        return streak
    return Streak(user=user, habit=habit, start_date=None, streak_length=0, is_active=False)


def streak_history(user, habit, limit: Optional[int] = None) -> List[Streak]:
    cap = settings.STREAK_HISTORY_LIMIT
    limit = min(limit or cap, cap)
    return list(Streak.objects.for_pair(user, habit).order_by('-start_date')[:limit])


def is_streak_active(streak: Optional[Streak], now: Optional[datetime] = None) -> bool:
    """True when the habit's streak last counted today or yesterday."""
    if streak is None or not streak.is_active:
        return False
    last = streak.last_counted_day()
    if last is None:
        return False
    return days_between(last, now or timezone.now()) <= 1


def streak_stats(user, habit, now: Optional[datetime] = None) -> Dict[str, Any]:
    profile = user.profile
    active = Streak.objects.active_for(user, habit)
    return {
        'current': active.streak_length if active else 0,
        'longest': profile.longest_streak,
        'isActiveNow': is_streak_active(active, now),
        'totalStreaks': Streak.objects.for_pair(user, habit).count(),
        'startDate': active.start_date.isoformat() if active else None,
    }


def leaderboard(size: Optional[int] = None) -> List[Dict[str, Any]]:
    size = size or settings.LEADERBOARD_SIZE
    profiles = (
        UserProfile.objects
        .select_related('user')
        .filter(current_streak__gt=0)
        .order_by('-current_streak', '-total_points', 'pk')[:size]
    )
    return [
        {
            'rank': rank,
            'displayName': p.display_name,
            'currentStreak': p.current_streak,
            'longestStreak': p.longest_streak,
            'totalPoints': p.total_points,
            'level': p.level,
        }
        for rank, p in enumerate(profiles, start=1)
    ]


def recalculate_streak_from_history(user, habit) -> int:
    """
    Count consecutive verified days ending at the most recent verified check-in.

    Read-only; used to audit the stored streak length.
    """
    from checkins.models import CheckIn

    days = (
        CheckIn.objects
        .filter(user=user, habit=habit, verification_status=CheckIn.Status.VERIFIED)
        .order_by('-check_in_date')
        .values_list('check_in_date', flat=True)
    )
    length = 0
    expected = None
    for check_in_date in days:
        day = local_date(check_in_date)
        if expected is None or day == expected:
            length += 1
            expected = day - timedelta(days=1)
        elif day > expected:
            # Same day seen twice; only one verified row per day should exist.
            continue
        else:
            break
    return length

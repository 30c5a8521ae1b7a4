"""
The single writer of streak and point aggregates.

Only the check-in workflow constructs a StreakLedger, inside the
transaction that holds the habit row lock, so calls for one
(user, habit) pair never interleave.
"""
from dataclasses import dataclass
from datetime import datetime
import logging

from django.db import transaction

from accounts.models import UserProfile
from core.dates import day_start, is_same_day, is_consecutive_day

from .models import Streak

logger = logging.getLogger(__name__)


@dataclass
class StreakTransition:
    action: str  # created | extended | unchanged | reset
    streak: Streak


class StreakLedger:

    def __init__(self, profile: UserProfile, habit):
        self.profile = profile
        self.habit = habit

    def _lock_profile(self) -> UserProfile:
        profile = UserProfile.objects.select_for_update().get(pk=self.profile.pk)
        self.profile = profile
        return profile

    def _open_streak(self, user, verified_at: datetime) -> Streak:
        return Streak.objects.create(
            user=user,
            habit=self.habit,
            start_date=day_start(verified_at),
            last_check_in_date=verified_at,
            streak_length=1,
            is_active=True,
        )

    @transaction.atomic
    def advance_streak(self, verified_at: datetime) -> StreakTransition:
        """
        Record a verified check-in at ``verified_at`` against the habit's active streak.

        Continuity is judged from the last day this habit's streak counted,
        not from the user's latest check-in on any habit.

        - no active streak: open one of length 1
        - same day as the streak's last check-in: no change
        - the day after it: extend by one
        - a longer gap: close the active streak and open a new one
        """
        profile = self._lock_profile()
        user = profile.user
        active = Streak.objects.select_for_update().filter(
            user=user, habit=self.habit, is_active=True
        ).first()

        if active is None:
            streak = self._open_streak(user, verified_at)
            action = 'created'
            profile.current_streak = 1
        elif is_same_day(active.last_counted_day(), verified_at):
            logger.warning(f"Streak {active.pk} already counted {day_start(verified_at).date()}, skipping")
            return StreakTransition('unchanged', active)
        elif is_consecutive_day(active.last_counted_day(), verified_at):
            active.streak_length += 1
            active.last_check_in_date = verified_at
            active.save(update_fields=['streak_length', 'last_check_in_date', 'updated_at'])
            streak = active
            action = 'extended'
            profile.current_streak = active.streak_length
        else:
            active.is_active = False
            active.end_date = day_start(active.last_counted_day())
            active.save(update_fields=['is_active', 'end_date', 'updated_at'])
            streak = self._open_streak(user, verified_at)
            action = 'reset'
            profile.current_streak = 1

        profile.last_check_in_date = verified_at
        profile.longest_streak = max(profile.longest_streak, profile.current_streak)
        profile.save(update_fields=['current_streak', 'longest_streak', 'last_check_in_date', 'updated_at'])

        logger.info(
            f"Streak {action} for user {user.pk} habit {self.habit.pk}: "
            f"length {streak.streak_length}, longest {profile.longest_streak}"
        )
        return StreakTransition(action, streak)

    @transaction.atomic
    def award_points(self, points: int) -> UserProfile:
        """Add ``points`` for one verified check-in and recompute the level."""
        profile = self._lock_profile()
        profile.total_points += max(points, 0)
        profile.total_check_ins += 1
        profile.recompute_level()
        profile.save(update_fields=['total_points', 'total_check_ins', 'level', 'updated_at'])
        logger.info(f"Awarded {points} points to user {profile.user_id} (total {profile.total_points}, level {profile.level})")
        return profile

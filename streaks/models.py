from datetime import datetime, timedelta
from typing import Optional

from django.db import models
from django.contrib.auth import get_user_model
from django.db.models import Q

from core.dates import day_start, local_date

User = get_user_model()


class StreakQuerySet(models.QuerySet):

    def for_pair(self, user, habit):
        return self.filter(user=user, habit=habit)

    def active_for(self, user, habit):
        """The single active streak for (user, habit), or None."""
        return self.for_pair(user, habit).filter(is_active=True).first()


class Streak(models.Model):
    """
    A run of consecutive verified check-in days for one habit.

    At most one active streak exists per (user, habit); closed streaks keep
    their end_date and length as history.
    """
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='streaks')
    habit = models.ForeignKey('habits.Habit', on_delete=models.CASCADE, related_name='streaks')
    start_date = models.DateTimeField()
    end_date = models.DateTimeField(null=True, blank=True)
    last_check_in_date = models.DateTimeField(
        null=True, blank=True,
        help_text="Most recent verified check-in counted in this streak",
    )
    streak_length = models.PositiveIntegerField(default=1)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = StreakQuerySet.as_manager()

    class Meta:
        ordering = ['-start_date']
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'habit'],
                condition=Q(is_active=True),
                name='unique_active_streak_per_habit',
            ),
            models.CheckConstraint(
                condition=Q(streak_length__gte=1),
                name='streak_length_positive',
            ),
        ]
        indexes = [
            models.Index(fields=['user', 'habit', 'is_active'], name='streak_user_habit_active_idx'),
        ]

    def __str__(self) -> str:
        state = 'active' if self.is_active else 'closed'
        return f"{self.user.email} - {self.habit.name} - {self.streak_length} days ({state})"

    def last_counted_day(self) -> Optional[datetime]:
        """
        The last day this streak counted. Rows written before
        last_check_in_date existed derive it from start_date and length.
        """
        if self.last_check_in_date is not None:
            return self.last_check_in_date
        if self.start_date is None:
            return None
        return day_start(local_date(self.start_date) + timedelta(days=self.streak_length - 1))

    def to_dict(self):
        return {
            'id': self.pk,
            'habitId': self.habit_id,
            'startDate': self.start_date.isoformat() if self.start_date else None,
            'endDate': self.end_date.isoformat() if self.end_date else None,
            'lastCheckInDate': self.last_check_in_date.isoformat() if self.last_check_in_date else None,
            'streakLength': self.streak_length,
            'isActive': self.is_active,
        }

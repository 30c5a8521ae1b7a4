from django.db import models
from django.contrib.auth import get_user_model
from django.db.models import F, Q

from streaks.points import level_for_points

User = get_user_model()


class UserProfile(models.Model):
    """
    Identity-linked profile carrying the user's aggregate streak and point stats.

    The streak/point counters are written only through streaks.ledger.StreakLedger.
    """
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='profile')
    external_id = models.CharField(
        max_length=128,
        unique=True,
        null=True,
        blank=True,
        help_text="Subject id issued by the identity provider"
    )
    display_name = models.CharField(max_length=150, blank=True)

    current_streak = models.PositiveIntegerField(default=0)
    longest_streak = models.PositiveIntegerField(default=0)
    total_points = models.PositiveIntegerField(default=0)
    level = models.PositiveIntegerField(default=1, help_text="Derived: total_points // 500 + 1")
    total_check_ins = models.PositiveIntegerField(default=0)
    last_check_in_date = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=Q(longest_streak__gte=F('current_streak')),
                name='profile_longest_streak_gte_current',
            ),
        ]
        indexes = [
            models.Index(fields=['-current_streak'], name='profile_current_streak_idx'),
        ]

    def __str__(self) -> str:
        return f"Profile for {self.user.email or self.external_id}"

    @property
    def email(self) -> str:
        return self.user.email

    def recompute_level(self) -> None:
        self.level = level_for_points(self.total_points)

    def to_dict(self):
        return {
            'id': self.pk,
            'externalId': self.external_id,
            'email': self.user.email,
            'displayName': self.display_name,
            'currentStreak': self.current_streak,
            'longestStreak': self.longest_streak,
            'totalPoints': self.total_points,
            'level': self.level,
            'totalCheckIns': self.total_check_ins,
            'lastCheckInDate': self.last_check_in_date.isoformat() if self.last_check_in_date else None,
            'createdAt': self.created_at.isoformat(),
        }

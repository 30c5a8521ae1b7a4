from datetime import datetime
from typing import Optional

from django.db import models
from django.contrib.auth import get_user_model
from django.db.models import Q
from django.utils import timezone

from core.dates import day_start

User = get_user_model()


class CheckInQuerySet(models.QuerySet):

    def for_day(self, user, habit, t: datetime):
        """Check-ins for (user, habit) on the calendar day containing ``t``."""
        return self.filter(user=user, habit=habit, check_in_date=day_start(t))

    def today_for(self, user, habit=None, now: Optional[datetime] = None):
        check_ins = self.filter(user=user, check_in_date=day_start(now or timezone.now()))
        if habit is not None:
            check_ins = check_ins.filter(habit=habit)
        return check_ins


class CheckIn(models.Model):
    """
    One photo submission for a habit on a calendar day.

    Created pending right after the image upload, then moved once to
    verified or rejected by the image verifier. Only one verified row may
    exist per (user, habit, day); pending and rejected rows are replaced
    when the user retries.
    """

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        VERIFIED = 'verified', 'Verified'
        REJECTED = 'rejected', 'Rejected'

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='check_ins')
    habit = models.ForeignKey('habits.Habit', on_delete=models.CASCADE, related_name='check_ins')
    image_url = models.URLField(max_length=500)
    image_key = models.CharField(max_length=255)
    verification_status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)
    ai_verification_note = models.TextField(blank=True)
    check_in_date = models.DateTimeField(help_text="Start of the calendar day this check-in counts for")
    points_earned = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CheckInQuerySet.as_manager()

    class Meta:
        ordering = ['-check_in_date', '-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'habit', 'check_in_date'],
                condition=Q(verification_status='verified'),
                name='unique_verified_checkin_per_day',
            ),
            models.CheckConstraint(
                condition=Q(verification_status='verified') | Q(points_earned=0),
                name='checkin_points_only_when_verified',
            ),
        ]
        indexes = [
            models.Index(fields=['user', 'habit', 'check_in_date'], name='checkin_user_habit_day_idx'),
            models.Index(fields=['verification_status', 'created_at'], name='checkin_status_created_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.user.email} - {self.habit.name} - {self.check_in_date:%Y-%m-%d} ({self.verification_status})"

    @property
    def is_verified(self) -> bool:
        return self.verification_status == self.Status.VERIFIED

    def to_status_dict(self):
        return {
            'id': self.pk,
            'imageUrl': self.image_url,
            'verificationStatus': self.verification_status,
            'checkInDate': self.check_in_date.isoformat(),
            'pointsEarned': self.points_earned,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    def to_dict(self):
        data = self.to_status_dict()
        data.update({
            'habitId': self.habit_id,
            'habitName': self.habit.name,
            'aiVerificationNote': self.ai_verification_note,
        })
        return data

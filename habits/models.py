from datetime import time

from django.db import models
from django.contrib.auth import get_user_model

User = get_user_model()

DEFAULT_REMINDER_TIME = time(9, 0)
DEFAULT_ICON = '✓'


class Category(models.TextChoices):
    HEALTH = 'health', 'Health'
    PRODUCTIVITY = 'productivity', 'Productivity'
    WELLNESS = 'wellness', 'Wellness'
    FITNESS = 'fitness', 'Fitness'
    LEARNING = 'learning', 'Learning'
    LIFESTYLE = 'lifestyle', 'Lifestyle'
    CUSTOM = 'custom', 'Custom'


class VerificationType(models.TextChoices):
    PHOTO = 'photo', 'Photo'
    MANUAL = 'manual', 'Manual'
    TIMER = 'timer', 'Timer'
    LOCATION = 'location', 'Location'


class CommonHabit(models.Model):
    """Pre-defined popular habit that users can add with one tap."""

    class Difficulty(models.TextChoices):
        EASY = 'easy', 'Easy'
        MEDIUM = 'medium', 'Medium'
        HARD = 'hard', 'Hard'

    name = models.CharField(max_length=200, unique=True)
    category = models.CharField(max_length=20, choices=Category.choices)
    description = models.TextField()
    verification_type = models.CharField(max_length=20, choices=VerificationType.choices, default=VerificationType.PHOTO)
    verification_prompt = models.TextField()
    icon = models.CharField(max_length=16, default=DEFAULT_ICON)
    difficulty = models.CharField(max_length=10, choices=Difficulty.choices, default=Difficulty.MEDIUM)
    popularity_score = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-popularity_score', 'name']
        indexes = [
            models.Index(fields=['category', 'is_active'], name='commonhabit_category_idx'),
        ]

    def __str__(self) -> str:
        return self.name

    def to_dict(self):
        return {
            'id': self.pk,
            'name': self.name,
            'description': self.description,
            'category': self.category,
            'icon': self.icon,
            'difficulty': self.difficulty,
            'verificationType': self.verification_type,
            'verificationPrompt': self.verification_prompt,
        }


class HabitQuerySet(models.QuerySet):

    def active_for(self, user):
        return self.filter(user=user, is_active=True).order_by('created_at', 'pk')


class Habit(models.Model):
    """
    A trackable activity owned by one user.

    Habits are never hard-deleted by the API; deactivating keeps the
    check-in and streak history intact.
    """
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='habits')
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=20, choices=Category.choices, default=Category.CUSTOM)
    icon = models.CharField(max_length=16, default=DEFAULT_ICON)
    verification_type = models.CharField(max_length=20, choices=VerificationType.choices, default=VerificationType.PHOTO)
    verification_prompt = models.TextField(help_text="Evidence criteria given to the image verifier")
    is_custom = models.BooleanField(default=False)
    ai_generated = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    reminder_time = models.TimeField(default=DEFAULT_REMINDER_TIME)
    common_habit = models.ForeignKey(
        CommonHabit,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='habits',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = HabitQuerySet.as_manager()

    class Meta:
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['user', 'is_active'], name='habit_user_active_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.user.email})"

    def to_dict(self):
        return {
            'id': self.pk,
            'habitName': self.name,
            'description': self.description,
            'category': self.category,
            'icon': self.icon,
            'reminderTime': self.reminder_time.strftime('%H:%M') if self.reminder_time else None,
            'verificationType': self.verification_type,
            'verificationPrompt': self.verification_prompt,
            'isCustom': self.is_custom,
            'isActive': self.is_active,
            'createdAt': self.created_at.isoformat(),
        }


class ReminderSendLogManager(models.Manager):
    """Helpers for reminder email deduplication."""

    def was_sent(self, idempotency_key: str) -> bool:
        return self.filter(idempotency_key=idempotency_key).exists()

    def record_sent(self, idempotency_key: str, user, habit_count: int):
        return self.create(
            idempotency_key=idempotency_key,
            recipient_email=user.email,
            recipient_user=user,
            habit_count=habit_count,
        )


class ReminderSendLog(models.Model):
    """Tracks sent habit reminders so each user gets at most one per day."""

    idempotency_key = models.CharField(max_length=255, unique=True)
    recipient_email = models.EmailField()
    recipient_user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reminder_logs',
    )
    habit_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = ReminderSendLogManager()

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Reminder Send Log'
        verbose_name_plural = 'Reminder Send Logs'

    def __str__(self):
        return f"Reminder to {self.recipient_email} at {self.created_at}"

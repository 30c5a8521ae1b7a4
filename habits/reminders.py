"""
Daily habit reminder emails.

A user is reminded once per day, after the earliest reminder time among
their active habits that still lack a verified check-in today.

Supports:
- dry_run mode: logs what would be sent without sending or persisting
- Idempotency: ReminderSendLog prevents a second email on the same day
"""
from datetime import date, datetime
import logging
from typing import List, Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.mail import send_mail
from django.utils import timezone
from django_q.tasks import async_task

from core.dates import local_date, server_tz

from .models import Habit, ReminderSendLog

logger = logging.getLogger(__name__)

User = get_user_model()


def _build_idempotency_key(user_id: int, reminder_date: date) -> str:
    """One reminder email per user per day."""
    return f"habit_reminder:user_{user_id}:{reminder_date.isoformat()}"


def due_habits(user, now: datetime) -> List[Habit]:
    """Active habits whose reminder time has passed and that are not done today."""
    from checkins.models import CheckIn

    local_now = now.astimezone(server_tz())
    done_today = set(
        CheckIn.objects.today_for(user, now=now)
        .filter(verification_status=CheckIn.Status.VERIFIED)
        .values_list('habit_id', flat=True)
    )
    return [
        habit for habit in Habit.objects.active_for(user)
        if habit.reminder_time <= local_now.time() and habit.pk not in done_today
    ]


def send_email_task(subject: str, plain_message: str, from_email: str, recipient_list: List[str]) -> None:
    """A Django Q task to send a single email."""
    send_mail(
        subject=subject,
        message=plain_message,
        from_email=from_email,
        recipient_list=recipient_list,
        fail_silently=False,
    )
    logger.info(f"Successfully queued email to {recipient_list}")


def _compose(user, habits: List[Habit]):
    if len(habits) == 1:
        subject = f"Reminder: {habits[0].name}"
    else:
        subject = f"You have {len(habits)} habits to check in today"
    lines = [f"Hi {user.profile.display_name or user.email},", "", "Still to do today:"]
    lines += [f"  {habit.icon} {habit.name}" for habit in habits]
    lines += ["", "Snap a photo to keep your streak going.", settings.SITE_URL]
    return subject, "\n".join(lines)


def send_reminder_to_user(user, now: Optional[datetime] = None, dry_run: bool = False) -> bool:
    """
    Send one reminder email if the user has due habits today.

    Returns:
        True if email was sent (or would be sent in dry-run), False otherwise
    """
    now = now or timezone.now()
    today = local_date(now)
    idempotency_key = _build_idempotency_key(user.id, today)

    if ReminderSendLog.objects.was_sent(idempotency_key):
        logger.debug(f"Reminder already sent for {user.email} on {today}")
        return False

    if not user.email:
        return False

    habits = due_habits(user, now)
    if not habits:
        logger.debug(f"User {user.email} has no habits due for a reminder")
        return False

    if dry_run:
        logger.info(f"[DRY RUN] Would send reminder to {user.email} with {len(habits)} habit(s)")
        return True

    subject, plain_message = _compose(user, habits)
    async_task(
        'habits.reminders.send_email_task',
        subject=subject,
        plain_message=plain_message,
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[user.email],
    )
    ReminderSendLog.objects.record_sent(idempotency_key, user, len(habits))
    logger.info(f"Sent habit reminder to {user.email} with {len(habits)} habit(s)")
    return True


def send_habit_reminders(now: Optional[datetime] = None, dry_run: bool = False) -> int:
    """Remind every user with at least one active habit. Returns emails sent."""
    now = now or timezone.now()
    users = User.objects.filter(habits__is_active=True).distinct().select_related('profile')

    sent = 0
    for user in users:
        try:
            if send_reminder_to_user(user, now=now, dry_run=dry_run):
                sent += 1
        except Exception as e:
            logger.error(f"Error sending reminder to {user.email}: {e}", exc_info=True)
            raise  # Let Django Q handle the failure/retry
    logger.info(f"Sent {sent} habit reminder email(s)")
    return sent

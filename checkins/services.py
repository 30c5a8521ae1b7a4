"""
The check-in workflow.

submit_check_in() takes one photo submission for a habit through
validation, the same-day duplicate/retry guard, upload, verification and
(on success) the streak and points update. Everything from the guard to
the final save runs in one transaction holding a row lock on the habit,
so submissions for the same (user, habit) are serialized.
"""
from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Any, Dict, Optional

from django.db import IntegrityError, transaction
from django.utils import timezone

from accounts.models import UserProfile
from core.dates import day_start
from core.errors import Conflict
from habits.models import Habit
from habits.services import get_owned_habit
from streaks.ledger import StreakLedger
from streaks.points import check_in_points, is_milestone

from .images import StoredImage, delete_image, schedule_image_deletion, upload_image, validate_image
from .models import CheckIn
from .verification import verify_image

logger = logging.getLogger(__name__)

ALREADY_DONE_MESSAGE = 'You have already completed your habit today!'


@dataclass
class CheckInResult:
    check_in: CheckIn
    streak: Optional[Dict[str, Any]] = None
    points: Optional[Dict[str, Any]] = None

    @property
    def verified(self) -> bool:
        return self.check_in.is_verified

    def to_dict(self) -> Dict[str, Any]:
        return {
            'message': 'Check-in created successfully' if self.verified else 'Check-in failed verification',
            'success': self.verified,
            'checkIn': self.check_in.to_dict(),
            'streak': self.streak,
            'points': self.points,
        }


def _already_checked_in(check_in: CheckIn) -> Conflict:
    return Conflict(
        'Already successfully checked in today',
        extra={'message': ALREADY_DONE_MESSAGE, 'checkIn': check_in.to_status_dict()},
    )


def _clear_previous_attempts(user, habit: Habit, now: datetime) -> None:
    """Raise Conflict on a verified check-in today, otherwise drop pending/rejected ones."""
    for previous in CheckIn.objects.for_day(user, habit, now):
        if previous.is_verified:
            logger.info(f"Blocking duplicate check-in for user {user.pk} habit {habit.pk}")
            raise _already_checked_in(previous)

        logger.info(f"Deleting {previous.verification_status} check-in {previous.pk} to allow retry")
        key = previous.image_key
        previous.delete()
        transaction.on_commit(lambda key=key: schedule_image_deletion(key))


def _mark_verified(check_in: CheckIn, user, habit: Habit, now: datetime) -> None:
    try:
        with transaction.atomic():
            check_in.save(update_fields=['verification_status', 'ai_verification_note', 'updated_at'])
    except IntegrityError:
        existing = CheckIn.objects.filter(
            user=user, habit=habit, check_in_date=day_start(now),
            verification_status=CheckIn.Status.VERIFIED,
        ).first()
        logger.warning(f"Concurrent verified check-in for user {user.pk} habit {habit.pk}")
        if existing is None:
            raise
        raise _already_checked_in(existing)


def _apply_rewards(check_in: CheckIn, profile: UserProfile, habit: Habit, now: datetime) -> CheckInResult:
    ledger = StreakLedger(profile, habit)
    ledger.advance_streak(now)

    earned = check_in_points(ledger.profile.current_streak)
    profile = ledger.award_points(earned)
    check_in.points_earned = earned
    check_in.save(update_fields=['points_earned', 'updated_at'])

    return CheckInResult(
        check_in=check_in,
        streak={
            'current': profile.current_streak,
            'longest': profile.longest_streak,
            'isMilestone': is_milestone(profile.current_streak),
        },
        points={
            'earned': earned,
            'total': profile.total_points,
            'level': profile.level,
            'totalCheckIns': profile.total_check_ins,
        },
    )


def submit_check_in(
    profile: UserProfile,
    habit_id,
    image_data: bytes,
    content_type: str,
    now: Optional[datetime] = None,
) -> CheckInResult:
    """
    Submit a photo check-in for one of the caller's active habits.

    Raises:
        NotFound: no active habit with this id belongs to the caller.
        InvalidInput: missing, oversized, wrong type or unrecognized image.
        Conflict: the habit already has a verified check-in today.
        StorageError: the image could not be stored.
    """
    now = now or timezone.now()
    user = profile.user

    habit = get_owned_habit(user, habit_id, active_only=True)
    validate_image(image_data, content_type)

    stored: Optional[StoredImage] = None
    try:
        with transaction.atomic():
            habit = Habit.objects.select_for_update().get(pk=habit.pk)
            _clear_previous_attempts(user, habit, now)

            stored = upload_image(image_data, content_type, profile.external_id or str(user.pk))
            check_in = CheckIn.objects.create(
                user=user,
                habit=habit,
                image_url=stored.url,
                image_key=stored.key,
                verification_status=CheckIn.Status.PENDING,
                check_in_date=day_start(now),
                points_earned=0,
            )
            logger.info(f"Check-in {check_in.pk} created pending for habit {habit.pk}")

            verdict = verify_image(stored.url, habit.verification_prompt)
            check_in.ai_verification_note = verdict.note

            if not verdict.is_verified:
                check_in.verification_status = CheckIn.Status.REJECTED
                check_in.save(update_fields=['verification_status', 'ai_verification_note', 'updated_at'])
                logger.info(f"Check-in {check_in.pk} rejected, no points awarded")
                return CheckInResult(check_in=check_in)

            check_in.verification_status = CheckIn.Status.VERIFIED
            _mark_verified(check_in, user, habit, now)
            result = _apply_rewards(check_in, profile, habit, now)
            logger.info(f"Check-in {check_in.pk} verified, +{result.points['earned']} points")
            return result
    except Exception:
        if stored is not None:
            delete_image(stored.key)
        raise

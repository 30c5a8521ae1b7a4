import logging
from datetime import datetime, time
from typing import Any, Dict, List, Optional

from django.db import transaction
from django.utils import timezone

from core.errors import InvalidInput, NotFound

from .models import Category, CommonHabit, Habit, VerificationType

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 200


def get_owned_habit(user, habit_id, active_only: bool = False) -> Habit:
    """The caller's habit with ``habit_id``; raises NotFound for anyone else's."""
    habits = Habit.objects.filter(user=user)
    if active_only:
        habits = habits.filter(is_active=True)
    try:
        return habits.get(pk=int(habit_id))
    except (TypeError, ValueError, Habit.DoesNotExist):
        raise NotFound('Habit not found')


def habits_with_status(user, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Active habits with today's check-in state for each."""
    from checkins.models import CheckIn

    todays = {
        c.habit_id: c
        for c in CheckIn.objects.today_for(user, now=now)
    }
    result = []
    for habit in Habit.objects.active_for(user):
        check_in = todays.get(habit.pk)
        data = habit.to_dict()
        data['isCompletedToday'] = bool(check_in and check_in.verification_status == CheckIn.Status.VERIFIED)
        data['checkIn'] = check_in.to_status_dict() if check_in else None
        result.append(data)
    return result


def dashboard(user, now: Optional[datetime] = None) -> Dict[str, Any]:
    habits = habits_with_status(user, now)
    completed = sum(1 for h in habits if h['isCompletedToday'])
    return {
        'habits': habits,
        'summary': {
            'total': len(habits),
            'completedToday': completed,
            'remainingToday': len(habits) - completed,
        },
    }


def parse_reminder_time(value) -> Optional[time]:
    if value in (None, ''):
        return None
    try:
        return datetime.strptime(str(value), '%H:%M').time()
    except ValueError:
        raise InvalidInput('reminderTime must use HH:MM format')


def _clean_choice(value, choices, field: str) -> Optional[str]:
    if value in (None, ''):
        return None
    if value not in choices.values:
        raise InvalidInput(f"{field} must be one of: {', '.join(choices.values)}")
    return value


def _clean_text(value, field: str, required: bool = False, max_length: Optional[int] = None) -> Optional[str]:
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise InvalidInput(f'{field} is required')
        return None
    if not isinstance(value, str):
        raise InvalidInput(f'{field} must be a string')
    value = value.strip()
    if max_length and len(value) > max_length:
        raise InvalidInput(f'{field} must be at most {max_length} characters')
    return value


@transaction.atomic
def create_habit(user, data: Dict[str, Any]) -> Habit:
    """
    Create a habit from the catalog (matched by name) or as a custom habit.

    Custom habits need a description and a verificationPrompt the user has
    already confirmed, usually from suggest-verification.
    """
    name = _clean_text(data.get('habitName'), 'habitName', required=True, max_length=MAX_NAME_LENGTH)
    reminder_time = parse_reminder_time(data.get('reminderTime'))

    common = CommonHabit.objects.filter(name=name, is_active=True).first()
    if common is not None:
        habit = Habit(
            user=user,
            name=common.name,
            description=common.description,
            category=common.category,
            icon=common.icon,
            verification_type=common.verification_type,
            verification_prompt=common.verification_prompt,
            is_custom=False,
            common_habit=common,
        )
        logger.info(f"Creating habit '{name}' for user {user.pk} from catalog")
    else:
        description = _clean_text(data.get('description'), 'description')
        prompt = _clean_text(data.get('verificationPrompt'), 'verificationPrompt')
        if not description or not prompt:
            raise InvalidInput(
                'description and verificationPrompt are required for custom habits',
                extra={'message': 'Use /api/habits/suggest-verification/ to get a suggestion first.'},
            )
        habit = Habit(
            user=user,
            name=name,
            description=description,
            category=_clean_choice(data.get('category'), Category, 'category') or Category.CUSTOM,
            icon=_clean_text(data.get('icon'), 'icon', max_length=16) or '✓',
            verification_type=_clean_choice(data.get('verificationType'), VerificationType, 'verificationType') or VerificationType.PHOTO,
            verification_prompt=prompt,
            is_custom=True,
            ai_generated=True,
        )
        logger.info(f"Creating custom habit '{name}' for user {user.pk}")

    if reminder_time is not None:
        habit.reminder_time = reminder_time
    habit.save()
    return habit


def update_habit(habit: Habit, data: Dict[str, Any]) -> Habit:
    """Apply the editable fields present in ``data``."""
    name = _clean_text(data.get('habitName'), 'habitName', max_length=MAX_NAME_LENGTH)
    if name:
        habit.name = name
    description = _clean_text(data.get('description'), 'description')
    if description:
        habit.description = description
    reminder_time = parse_reminder_time(data.get('reminderTime'))
    if reminder_time is not None:
        habit.reminder_time = reminder_time
    category = _clean_choice(data.get('category'), Category, 'category')
    if category:
        habit.category = category
    icon = _clean_text(data.get('icon'), 'icon', max_length=16)
    if icon:
        habit.icon = icon
    prompt = _clean_text(data.get('verificationPrompt'), 'verificationPrompt')
    if prompt:
        habit.verification_prompt = prompt
    is_active = data.get('isActive')
    if isinstance(is_active, bool):
        habit.is_active = is_active

    habit.save()
    logger.info(f"Updated habit {habit.pk}")
    return habit


def deactivate_habit(habit: Habit) -> Habit:
    habit.is_active = False
    habit.save(update_fields=['is_active', 'updated_at'])
    logger.info(f"Deactivated habit {habit.pk}")
    return habit


def catalog(category: Optional[str] = None, search: Optional[str] = None, limit: int = 50):
    habits = CommonHabit.objects.filter(is_active=True)
    if category:
        habits = habits.filter(category=category)
    if search:
        habits = habits.filter(name__icontains=search)
    return habits.order_by('-popularity_score', 'name')[:limit]

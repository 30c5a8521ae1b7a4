from typing import Optional

from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_GET

from accounts.decorators import token_required
from core.http import int_param
from core.ratelimit import api_rate_limit
from habits.models import Habit
from habits.services import get_owned_habit

from . import services
from .points import next_milestone


def _selected_habit(request: HttpRequest) -> Optional[Habit]:
    """?habitId if given, otherwise the caller's first active habit."""
    user = request.profile.user
    habit_id = request.GET.get('habitId')
    if habit_id:
        return get_owned_habit(user, habit_id)
    return Habit.objects.active_for(user).first()


@require_GET
@token_required
@api_rate_limit
def current(request: HttpRequest) -> JsonResponse:
    habit = _selected_habit(request)
    if habit is None:
        return JsonResponse({'streak': None, 'message': 'No active habit found'})

    streak = services.current_streak(request.profile.user, habit)
    data = streak.to_dict()
    data['habitName'] = habit.name
    return JsonResponse({
        'streak': data,
        'nextMilestone': next_milestone(streak.streak_length),
        'user': {'longestStreak': request.profile.longest_streak},
    })


@require_GET
@token_required
@api_rate_limit
def stats(request: HttpRequest) -> JsonResponse:
    habit = _selected_habit(request)
    if habit is None:
        return JsonResponse({'stats': None, 'message': 'No active habit found'})
    return JsonResponse({'stats': services.streak_stats(request.profile.user, habit)})


@require_GET
@token_required
@api_rate_limit
def history(request: HttpRequest) -> JsonResponse:
    habit = _selected_habit(request)
    if habit is None:
        return JsonResponse({'streaks': [], 'total': 0, 'message': 'No active habit found'})

    limit = int_param(request.GET.get('limit'), 'limit')
    streaks = services.streak_history(request.profile.user, habit, limit)
    return JsonResponse({
        'streaks': [s.to_dict() for s in streaks],
        'total': len(streaks),
    })


@require_GET
@token_required
@api_rate_limit
def leaderboard(request: HttpRequest) -> JsonResponse:
    return JsonResponse({'leaderboard': services.leaderboard()})

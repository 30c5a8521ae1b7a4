import logging

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from accounts.decorators import token_required
from core.errors import InvalidInput
from core.http import int_param, json_body
from core.ratelimit import api_rate_limit

from . import services
from .models import Category, Habit
from .suggestions import suggest_verification

logger = logging.getLogger(__name__)


@csrf_exempt
@require_http_methods(['GET', 'POST'])
@token_required
@api_rate_limit
def habit_list(request: HttpRequest) -> JsonResponse:
    """
    GET lists the caller's active habits.
    POST creates one, from the catalog (matched by habitName) or custom.
    """
    user = request.profile.user

    if request.method == 'POST':
        habit = services.create_habit(user, json_body(request))
        return JsonResponse({
            'message': 'Habit created successfully',
            'habit': habit.to_dict(),
            'habits': services.habits_with_status(user),
        }, status=201)

    return JsonResponse({
        'habits': [habit.to_dict() for habit in Habit.objects.active_for(user)],
    })


@require_GET
@token_required
@api_rate_limit
def dashboard(request: HttpRequest) -> JsonResponse:
    """All active habits with today's completion status and a summary."""
    return JsonResponse(services.dashboard(request.profile.user))


@require_GET
@token_required
@api_rate_limit
def common_habits(request: HttpRequest) -> JsonResponse:
    category = request.GET.get('category') or None
    if category and category not in Category.values:
        raise InvalidInput(f"category must be one of: {', '.join(Category.values)}")
    limit = int_param(request.GET.get('limit'), 'limit', default=50)
    habits = services.catalog(category=category, search=request.GET.get('search'), limit=min(limit, 100))
    return JsonResponse({'habits': [habit.to_dict() for habit in habits]})


@csrf_exempt
@require_POST
@token_required
@api_rate_limit
def suggest(request: HttpRequest) -> JsonResponse:
    data = json_body(request)
    name = (data.get('habitName') or '').strip()
    description = (data.get('description') or '').strip()
    if not name or not description:
        raise InvalidInput('habitName and description are required')

    category = data.get('category') or None
    if category and category not in Category.values:
        raise InvalidInput(f"category must be one of: {', '.join(Category.values)}")

    logger.info(f"Generating verification suggestion for: {name}")
    return JsonResponse({'suggestion': suggest_verification(name, description, category)})


@csrf_exempt
@require_http_methods(['GET', 'PUT', 'DELETE'])
@token_required
@api_rate_limit
def habit_detail(request: HttpRequest, habit_id: int) -> JsonResponse:
    user = request.profile.user
    habit = services.get_owned_habit(user, habit_id)

    if request.method == 'PUT':
        services.update_habit(habit, json_body(request))
        return JsonResponse({
            'message': 'Habit updated successfully',
            'habit': habit.to_dict(),
            'habits': services.habits_with_status(user),
        })

    if request.method == 'DELETE':
        services.deactivate_habit(habit)
        return JsonResponse({
            'message': 'Habit deactivated successfully',
            'habits': services.habits_with_status(user),
        })

    return JsonResponse({'habit': habit.to_dict()})

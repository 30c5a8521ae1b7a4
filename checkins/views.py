import logging
import math

from django.conf import settings
from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods

from accounts.decorators import token_required
from core.errors import InvalidInput, NotFound
from core.http import int_param, page_params
from core.ratelimit import api_rate_limit, checkin_rate_limit
from habits.services import get_owned_habit

from .models import CheckIn
from .services import submit_check_in

logger = logging.getLogger(__name__)


@token_required
@checkin_rate_limit
def create_check_in(request: HttpRequest) -> JsonResponse:
    """
    Submit a photo check-in.

    Body: multipart form with "image" (JPEG/PNG/WebP) and "habitId".
    Returns 201 once the check-in is verified or rejected.
    """
    habit_id = request.POST.get('habitId')
    if not habit_id:
        raise InvalidInput('habitId is required')

    upload = request.FILES.get('image')
    if upload is None:
        raise InvalidInput('Image file is required')
    if upload.size > settings.CHECKIN_MAX_IMAGE_BYTES:
        raise InvalidInput(f'Image is too large (max {settings.CHECKIN_MAX_IMAGE_BYTES // (1024 * 1024)}MB)')

    result = submit_check_in(request.profile, habit_id, upload.read(), upload.content_type)
    return JsonResponse(result.to_dict(), status=201)


@token_required
@api_rate_limit
def list_check_ins(request: HttpRequest) -> JsonResponse:
    user = request.profile.user
    page, limit = page_params(request)

    check_ins = CheckIn.objects.filter(user=user).select_related('habit')
    habit_id = request.GET.get('habitId')
    if habit_id:
        check_ins = check_ins.filter(habit=get_owned_habit(user, habit_id))

    total = check_ins.count()
    offset = (page - 1) * limit
    items = list(check_ins.order_by('-check_in_date', '-created_at')[offset:offset + limit])

    return JsonResponse({
        'checkIns': [c.to_dict() for c in items],
        'pagination': {
            'page': page,
            'limit': limit,
            'total': total,
            'totalPages': math.ceil(total / limit),
            'hasMore': offset + len(items) < total,
        },
    })


@csrf_exempt
@require_http_methods(['GET', 'POST'])
def check_ins(request: HttpRequest) -> JsonResponse:
    if request.method == 'POST':
        return create_check_in(request)
    return list_check_ins(request)


@require_GET
@token_required
@api_rate_limit
def today(request: HttpRequest) -> JsonResponse:
    """Today's check-in for ?habitId (default: the first active habit)."""
    from habits.models import Habit

    user = request.profile.user
    habit_id = request.GET.get('habitId')
    if habit_id:
        habit = get_owned_habit(user, habit_id)
    else:
        habit = Habit.objects.active_for(user).first()
        if habit is None:
            return JsonResponse({'hasCheckedIn': False, 'checkIn': None})

    check_in = CheckIn.objects.today_for(user, habit).order_by('-created_at').first()
    return JsonResponse({
        'habitId': habit.pk,
        'hasCheckedIn': bool(check_in and check_in.is_verified),
        'checkIn': check_in.to_status_dict() if check_in else None,
    })


@require_GET
@token_required
@api_rate_limit
def check_in_detail(request: HttpRequest, check_in_id: int) -> JsonResponse:
    try:
        check_in = CheckIn.objects.select_related('habit').get(pk=check_in_id, user=request.profile.user)
    except CheckIn.DoesNotExist:
        raise NotFound('Check-in not found')
    return JsonResponse({'checkIn': check_in.to_dict()})

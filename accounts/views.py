import logging

from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from core.errors import InvalidInput
from core.http import json_body
from core.ratelimit import api_rate_limit
from streaks.points import level_progress, next_milestone

from .decorators import token_required
from .services import sync_display_name

logger = logging.getLogger(__name__)

MAX_DISPLAY_NAME_LENGTH = 150


@csrf_exempt
@require_POST
@token_required
@api_rate_limit
def verify(request: HttpRequest) -> JsonResponse:
    """
    Confirm the bearer token and create or refresh the caller's profile.

    Path: /api/auth/verify/
    Method: POST
    """
    profile = request.profile
    sync_display_name(profile, request.identity)
    return JsonResponse({
        'message': 'Authentication successful',
        'user': profile.to_dict(),
    })


@require_GET
@token_required
@api_rate_limit
def status(request: HttpRequest) -> JsonResponse:
    claims = request.identity
    return JsonResponse({
        'authenticated': True,
        'user': {
            'subjectId': claims.subject_id,
            'email': claims.email,
            'displayName': claims.display_name,
        },
    })


@csrf_exempt
@require_http_methods(['GET', 'PUT'])
@token_required
@api_rate_limit
def profile(request: HttpRequest) -> JsonResponse:
    """
    GET returns the profile with level progress and the next milestone.
    PUT accepts {"displayName": str}.
    """
    profile = request.profile

    if request.method == 'PUT':
        data = json_body(request)
        display_name = data.get('displayName')
        if display_name is not None:
            if not isinstance(display_name, str) or not display_name.strip():
                raise InvalidInput('displayName must be a non-empty string')
            if len(display_name) > MAX_DISPLAY_NAME_LENGTH:
                raise InvalidInput(f'displayName must be at most {MAX_DISPLAY_NAME_LENGTH} characters')
            profile.display_name = display_name.strip()
            profile.save(update_fields=['display_name', 'updated_at'])
            logger.info(f"Profile {profile.pk} display name updated")
        return JsonResponse({
            'message': 'Profile updated successfully',
            'user': {'id': profile.pk, 'displayName': profile.display_name},
        })

    payload = profile.to_dict()
    payload['levelProgress'] = level_progress(profile.total_points)
    payload['nextMilestone'] = next_milestone(profile.current_streak)
    return JsonResponse({'user': payload})


@require_GET
@token_required
@api_rate_limit
def stats(request: HttpRequest) -> JsonResponse:
    from checkins.models import CheckIn

    profile = request.profile
    check_ins = CheckIn.objects.filter(user=profile.user)
    return JsonResponse({
        'stats': {
            'currentStreak': profile.current_streak,
            'longestStreak': profile.longest_streak,
            'totalPoints': profile.total_points,
            'level': profile.level,
            'totalCheckIns': check_ins.count(),
            'verifiedCheckIns': check_ins.filter(verification_status=CheckIn.Status.VERIFIED).count(),
            'daysSinceJoining': (timezone.now() - profile.created_at).days,
            'lastCheckInDate': profile.last_check_in_date.isoformat() if profile.last_check_in_date else None,
        },
    })

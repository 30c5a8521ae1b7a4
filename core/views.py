from django.conf import settings
from django.http import HttpRequest, JsonResponse


def index(request: HttpRequest) -> JsonResponse:
    """Service banner listing the API roots."""
    return JsonResponse({
        'message': 'Habit Tracker API',
        'version': settings.APP_VERSION,
        'status': 'running',
        'endpoints': {
            'health': '/api/health/',
            'auth': '/api/auth/',
            'users': '/api/users/',
            'habits': '/api/habits/',
            'checkins': '/api/checkins/',
            'streaks': '/api/streaks/',
        },
    })

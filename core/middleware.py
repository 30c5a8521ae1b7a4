import logging

from django.conf import settings
from django.http import HttpRequest, HttpResponse, JsonResponse

from .errors import ApiError

logger = logging.getLogger(__name__)

API_PREFIX = '/api/'


def error_response(error: ApiError) -> JsonResponse:
    return JsonResponse(error.to_dict(), status=error.status)


class ApiErrorMiddleware:
    """
    Renders every failure under /api/ as a JSON error envelope.

    - ApiError subclasses keep their own status and message.
    - Anything else is logged and reported as a 500.
    - Django's HTML 404 for unknown /api/ routes becomes a JSON 404.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        response = self.get_response(request)
        if (
            response.status_code == 404
            and request.path.startswith(API_PREFIX)
            and not response.get('Content-Type', '').startswith('application/json')
        ):
            return JsonResponse({'error': 'Route not found', 'status': 404, 'path': request.path}, status=404)
        return response

    def process_exception(self, request: HttpRequest, exception: Exception):
        if not request.path.startswith(API_PREFIX):
            return None

        if isinstance(exception, ApiError):
            if exception.status >= 500:
                logger.error(f"{request.method} {request.path} failed: {exception.message}")
            return error_response(exception)

        logger.error(f"Unhandled error on {request.method} {request.path}: {exception}", exc_info=True)
        payload = {'error': 'Internal Server Error', 'status': 500}
        if settings.DEBUG:
            payload['detail'] = str(exception)
        return JsonResponse(payload, status=500)

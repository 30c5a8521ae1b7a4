from django.conf import settings
from django.db import connection, DatabaseError
from django.http import HttpRequest, JsonResponse
from django.utils import timezone


def health_check(request: HttpRequest) -> JsonResponse:
    """
    Liveness probe for the load balancer. No authentication.

    Returns 200 with database "connected", or 503 when the database is unreachable.
    """
    payload = {
        'status': 'healthy',
        'timestamp': timezone.now().isoformat(),
        'version': settings.APP_VERSION,
    }
    try:
        connection.ensure_connection()
        payload['database'] = 'connected'
        return JsonResponse(payload)
    except DatabaseError as e:
        payload.update({'status': 'unhealthy', 'database': 'unavailable', 'error': str(e)})
        return JsonResponse(payload, status=503)

from functools import wraps
import time

from django.conf import settings
from django.core.cache import cache

from .errors import RateLimited


def _caller_key(request) -> str:
    profile = getattr(request, 'profile', None)
    if profile is not None:
        return f"profile:{profile.pk}"
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR', '')
    ip = forwarded.split(',')[0].strip() if forwarded else request.META.get('REMOTE_ADDR', 'unknown')
    return f"ip:{ip}"


def hit(scope: str, caller: str, limit: int, window_seconds: int) -> bool:
    """
    Count one request for ``caller`` in a window that opens at the
    caller's first request and lasts ``window_seconds``.

    Returns False once the caller has used up ``limit`` requests.
    """
    now = time.time()
    base = f"ratelimit:{scope}:{caller}"
    started = cache.get_or_set(f"{base}:start", now, timeout=window_seconds)
    remaining = max(int(started + window_seconds - now), 1)
    key = f"{base}:{int(started)}"
    # add() is a no-op if the key exists, so the first request sets the TTL.
    cache.add(key, 0, timeout=remaining)
    try:
        count = cache.incr(key)
    except ValueError:
        # Expired between add() and incr().
        cache.set(key, 1, timeout=remaining)
        count = 1
    return count <= limit


def rate_limit(scope: str, limit_setting: str, window_setting: str, message: str = None):
    """
    View decorator applying a per-caller request cap.

    Must sit inside ``token_required`` so the caller is known by profile
    rather than by IP.
    """
    def decorator(view_func):
        @wraps(view_func)
        def _wrapped_view(request, *args, **kwargs):
            if settings.RATE_LIMIT_ENABLED:
                allowed = hit(
                    scope,
                    _caller_key(request),
                    getattr(settings, limit_setting),
                    getattr(settings, window_setting),
                )
                if not allowed:
                    raise RateLimited(message)
            return view_func(request, *args, **kwargs)
        return _wrapped_view
    return decorator


api_rate_limit = rate_limit(
    'api',
    'RATE_LIMIT_API_REQUESTS',
    'RATE_LIMIT_API_WINDOW_SECONDS',
    'Too many requests, please try again later.',
)

checkin_rate_limit = rate_limit(
    'checkin',
    'RATE_LIMIT_CHECKIN_REQUESTS',
    'RATE_LIMIT_CHECKIN_WINDOW_SECONDS',
    'Too many check-ins today. Please try again tomorrow.',
)

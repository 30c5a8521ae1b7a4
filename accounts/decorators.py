from functools import wraps

from core.errors import Unauthenticated

from .identity import verify_bearer_token
from .services import resolve_profile


def bearer_token(request) -> str:
    header = request.META.get('HTTP_AUTHORIZATION', '')
    if not header.startswith('Bearer '):
        raise Unauthenticated('Unauthorized - No token provided')
    return header[len('Bearer '):].strip()


def token_required(view_func):
    """
    Verify the request's bearer token and attach ``request.profile``
    (and ``request.identity``) before calling the view.
    """
    @wraps(view_func)
    def _wrapped_view(request, *args, **kwargs):
        claims = verify_bearer_token(bearer_token(request))
        request.identity = claims
        request.profile = resolve_profile(claims)
        request.user = request.profile.user
        return view_func(request, *args, **kwargs)
    return _wrapped_view

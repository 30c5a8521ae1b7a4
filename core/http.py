import json
from typing import Any, Dict, Optional

from django.conf import settings
from django.http import HttpRequest

from .errors import InvalidInput


def json_body(request: HttpRequest) -> Dict[str, Any]:
    """Parse a JSON request body (form data is accepted too)."""
    if request.content_type == 'application/json':
        if not request.body:
            return {}
        try:
            data = json.loads(request.body)
        except json.JSONDecodeError:
            raise InvalidInput('Invalid JSON')
        if not isinstance(data, dict):
            raise InvalidInput('Request body must be a JSON object')
        return data
    return request.POST.dict()


def int_param(value: Optional[str], name: str, default: Optional[int] = None, minimum: int = 1) -> Optional[int]:
    if value in (None, ''):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidInput(f'{name} must be an integer')
    if number < minimum:
        raise InvalidInput(f'{name} must be at least {minimum}')
    return number


def page_params(request: HttpRequest):
    page = int_param(request.GET.get('page'), 'page', default=1)
    limit = int_param(request.GET.get('limit'), 'limit', default=settings.CHECKIN_PAGE_SIZE)
    return page, min(limit, settings.CHECKIN_MAX_PAGE_SIZE)

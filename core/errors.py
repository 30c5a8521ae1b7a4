"""
Error taxonomy for the JSON API.

Views and services raise these; ``core.middleware.ApiErrorMiddleware``
turns them into the ``{"error": ..., "status": ...}`` envelope.
"""
from typing import Any, Dict, Optional


class ApiError(Exception):
    status = 500
    default_message = 'Internal Server Error'

    def __init__(self, message: Optional[str] = None, *, extra: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.extra = extra or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        payload = {'error': self.message, 'status': self.status}
        payload.update(self.extra)
        return payload


class InvalidInput(ApiError):
    status = 400
    default_message = 'Invalid input'


class Unauthenticated(ApiError):
    status = 401
    default_message = 'Unauthorized - Invalid token'


class NotFound(ApiError):
    status = 404
    default_message = 'Not found'


class Conflict(ApiError):
    status = 409
    default_message = 'Conflict'


class RateLimited(ApiError):
    status = 429
    default_message = 'Too many requests, please try again later.'


class StorageError(ApiError):
    status = 500
    default_message = 'Failed to store uploaded file'

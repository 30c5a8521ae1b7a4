"""
Check-in image handling on top of Django's default storage backend.
"""
from dataclasses import dataclass
import logging
import secrets
import time

from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django_q.tasks import async_task

from core.errors import InvalidInput, StorageError

logger = logging.getLogger(__name__)

EXTENSIONS = {
    'image/jpeg': 'jpg',
    'image/jpg': 'jpg',
    'image/png': 'png',
    'image/webp': 'webp',
}


@dataclass(frozen=True)
class StoredImage:
    url: str
    key: str


def has_image_signature(data: bytes) -> bool:
    """JPEG, PNG or WebP magic bytes."""
    jpeg = data[:3] == b'\xff\xd8\xff'
    png = data[:4] == b'\x89PNG'
    webp = data[8:12] == b'WEBP'
    return jpeg or png or webp


def validate_image(data: bytes, content_type: str) -> None:
    if not data:
        raise InvalidInput('Image file is required')
    if len(data) > settings.CHECKIN_MAX_IMAGE_BYTES:
        limit_mb = settings.CHECKIN_MAX_IMAGE_BYTES // (1024 * 1024)
        raise InvalidInput(f'Image is too large (max {limit_mb}MB)')
    if content_type not in settings.CHECKIN_ALLOWED_MIME_TYPES:
        raise InvalidInput('Invalid file type. Only JPEG, PNG, and WebP images are allowed.')
    if not has_image_signature(data):
        raise InvalidInput('Invalid image file')


def build_image_key(owner_id: str, content_type: str) -> str:
    timestamp = int(time.time() * 1000)
    return f"checkins/{owner_id}/{timestamp}-{secrets.token_hex(8)}.{EXTENSIONS.get(content_type, 'jpg')}"


def public_url(key: str) -> str:
    url = default_storage.url(key)
    if url.startswith('/'):
        # Filesystem storage serves from MEDIA_URL; the verifier needs an absolute URL.
        url = settings.SITE_URL.rstrip('/') + url
    return url


def upload_image(data: bytes, content_type: str, owner_id: str) -> StoredImage:
    """
    Store the image and return its public URL and storage key.

    Raises:
        StorageError: the storage backend failed.
    """
    key = build_image_key(owner_id, content_type)
    try:
        saved_key = default_storage.save(key, ContentFile(data))
        url = public_url(saved_key)
    except Exception as e:
        logger.error(f"Error uploading image {key}: {e}", exc_info=True)
        raise StorageError(f'Failed to upload image: {e}') from e
    logger.info(f"Image uploaded: {saved_key}")
    return StoredImage(url=url, key=saved_key)


def delete_image(key: str) -> None:
    """Delete a stored image. Failures are logged, never raised."""
    if not key:
        return
    try:
        default_storage.delete(key)
        logger.info(f"Image deleted: {key}")
    except Exception as e:
        logger.warning(f"Error deleting image {key}: {e}")


def schedule_image_deletion(key: str) -> None:
    """Queue delete_image on the django-q cluster."""
    if key:
        async_task('checkins.images.delete_image', key)

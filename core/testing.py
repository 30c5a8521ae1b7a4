"""
Helpers shared by the test suites: signed bearer tokens and tiny images.
"""
import time

from django.conf import settings
from jose import jwt

JPEG_BYTES = b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00' + b'\x00' * 64
PNG_BYTES = b'\x89PNG\r\n\x1a\n' + b'\x00' * 64
WEBP_BYTES = b'RIFF\x24\x00\x00\x00WEBPVP8 ' + b'\x00' * 64


def make_token(subject_id='user-1', email='user1@example.com', name='User One', expires_in=3600, **claims):
    now = int(time.time())
    payload = {
        'sub': subject_id,
        'email': email,
        'name': name,
        'aud': settings.IDENTITY_AUDIENCE,
        'iss': settings.IDENTITY_ISSUER,
        'iat': now,
        'exp': now + expires_in,
    }
    payload.update(claims)
    return jwt.encode(payload, settings.IDENTITY_SHARED_SECRET, algorithm='HS256')


def auth_headers(**kwargs):
    return {'HTTP_AUTHORIZATION': f'Bearer {make_token(**kwargs)}'}

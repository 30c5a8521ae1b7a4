"""
Bearer token verification against the external identity provider.

Production tokens are RS256 JWTs signed with keys published as x509
certificates at settings.IDENTITY_CERTS_URL. For local development an
HS256 shared secret can be configured instead.
"""
from dataclasses import dataclass
import logging
from typing import Dict

import requests
from django.conf import settings
from django.core.cache import cache
from jose import jwt, JWTError, ExpiredSignatureError

from core.errors import Unauthenticated

logger = logging.getLogger(__name__)

CERTS_CACHE_KEY = 'identity:signing-certs'


@dataclass(frozen=True)
class IdentityClaims:
    subject_id: str
    email: str
    display_name: str


def _fetch_signing_certs() -> Dict[str, str]:
    certs = cache.get(CERTS_CACHE_KEY)
    if certs is not None:
        return certs

    try:
        resp = requests.get(settings.IDENTITY_CERTS_URL, timeout=10)
        resp.raise_for_status()
        certs = resp.json()
    except (requests.RequestException, ValueError) as e:
        logger.error(f"Could not fetch identity signing certs: {e}")
        raise Unauthenticated('Unable to verify token at this time') from e

    cache.set(CERTS_CACHE_KEY, certs, timeout=settings.IDENTITY_CERTS_CACHE_SECONDS)
    return certs


def _signing_key(token: str):
    algorithms = settings.IDENTITY_TOKEN_ALGORITHMS
    if any(alg.startswith('HS') for alg in algorithms):
        if not settings.IDENTITY_SHARED_SECRET:
            raise Unauthenticated('Token verification is not configured')
        return settings.IDENTITY_SHARED_SECRET

    try:
        header = jwt.get_unverified_header(token)
    except JWTError as e:
        raise Unauthenticated('Unauthorized - Invalid token') from e

    key = _fetch_signing_certs().get(header.get('kid'))
    if key is None:
        raise Unauthenticated('Unauthorized - Unknown signing key')
    return key


def verify_bearer_token(token: str) -> IdentityClaims:
    """
    Verify a bearer token and return the identity it carries.

    Raises:
        Unauthenticated: missing, malformed, expired or untrusted token.
    """
    if not token:
        raise Unauthenticated('Unauthorized - No token provided')

    key = _signing_key(token)
    options = {'verify_aud': bool(settings.IDENTITY_AUDIENCE)}
    try:
        claims = jwt.decode(
            token,
            key,
            algorithms=settings.IDENTITY_TOKEN_ALGORITHMS,
            audience=settings.IDENTITY_AUDIENCE or None,
            issuer=settings.IDENTITY_ISSUER or None,
            options=options,
        )
    except ExpiredSignatureError as e:
        raise Unauthenticated('Token expired - Please sign in again') from e
    except JWTError as e:
        logger.info(f"Rejected bearer token: {e}")
        raise Unauthenticated('Unauthorized - Invalid token') from e

    subject_id = claims.get('sub') or claims.get('user_id')
    if not subject_id:
        raise Unauthenticated('Unauthorized - Token has no subject')

    email = claims.get('email') or ''
    return IdentityClaims(
        subject_id=subject_id,
        email=email,
        display_name=claims.get('name') or email,
    )

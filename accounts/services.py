import logging

from django.contrib.auth import get_user_model
from django.db import transaction

from .identity import IdentityClaims
from .models import UserProfile

logger = logging.getLogger(__name__)

User = get_user_model()


def _fallback_display_name(claims: IdentityClaims) -> str:
    if claims.display_name and claims.display_name != claims.email:
        return claims.display_name
    if claims.email:
        return claims.email.split('@')[0]
    return ''


@transaction.atomic
def resolve_profile(claims: IdentityClaims) -> UserProfile:
    """
    Get or create the auth user and profile behind verified identity claims.

    The auth user's username is the identity provider's subject id.
    """
    user, created = User.objects.get_or_create(
        username=claims.subject_id,
        defaults={'email': claims.email},
    )
    if created:
        logger.info(f"Created user for identity subject {claims.subject_id}")
    elif claims.email and user.email != claims.email:
        user.email = claims.email
        user.save(update_fields=['email'])

    # Signal creates the profile; get_or_create covers users made before it existed.
    profile, _ = UserProfile.objects.get_or_create(user=user)
    if profile.external_id != claims.subject_id:
        profile.external_id = claims.subject_id
        profile.display_name = profile.display_name or _fallback_display_name(claims)
        profile.save(update_fields=['external_id', 'display_name', 'updated_at'])
    return profile


def sync_display_name(profile: UserProfile, claims: IdentityClaims) -> bool:
    """Update the stored display name if the provider reports a different one."""
    name = _fallback_display_name(claims)
    if name and name != profile.display_name:
        profile.display_name = name
        profile.save(update_fields=['display_name', 'updated_at'])
        return True
    return False

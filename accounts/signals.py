from typing import Any
from django.db.models.signals import post_save
from django.dispatch import receiver
from django.contrib.auth import get_user_model

from .models import UserProfile

User = get_user_model()


@receiver(post_save, sender=User)
def ensure_profile(sender: type, instance: User, created: bool, **kwargs: Any) -> None:
    """Every user gets exactly one profile holding their streak and point aggregates."""
    if created:
        UserProfile.objects.get_or_create(user=instance)

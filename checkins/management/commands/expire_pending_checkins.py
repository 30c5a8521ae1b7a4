"""
Management command to reject check-ins stuck in "pending".

A check-in only stays pending if its request died mid-verification.
Rows older than CHECKIN_PENDING_TTL_MINUTES are marked rejected so the
user can retry and the history never shows a dangling attempt.

Usage:
    python manage.py expire_pending_checkins
    python manage.py expire_pending_checkins --dry-run
"""
from datetime import timedelta
import logging
from typing import Any

from django.conf import settings
from django.core.management.base import BaseCommand
from django.utils import timezone

from checkins.models import CheckIn

logger = logging.getLogger(__name__)

EXPIRED_NOTE = 'Verification did not complete in time. Please submit a new photo.'


class Command(BaseCommand):
    help = 'Reject check-ins that have been pending longer than CHECKIN_PENDING_TTL_MINUTES'

    def add_arguments(self, parser):
        parser.add_argument(
            '--minutes',
            type=int,
            help='Override the pending TTL in minutes',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show how many check-ins would be expired without changing them',
        )

    def handle(self, *args: Any, **options: Any) -> None:
        minutes = options.get('minutes') or settings.CHECKIN_PENDING_TTL_MINUTES
        cutoff = timezone.now() - timedelta(minutes=minutes)
        stale = CheckIn.objects.filter(
            verification_status=CheckIn.Status.PENDING,
            created_at__lt=cutoff,
        )

        if options.get('dry_run'):
            self.stdout.write(self.style.WARNING(f'DRY RUN - {stale.count()} pending check-in(s) older than {minutes} minutes'))
            return

        expired = stale.update(
            verification_status=CheckIn.Status.REJECTED,
            ai_verification_note=EXPIRED_NOTE,
            points_earned=0,
            updated_at=timezone.now(),
        )
        if expired:
            logger.warning(f"Expired {expired} stale pending check-in(s)")
        self.stdout.write(self.style.SUCCESS(f'Expired {expired} pending check-in(s)'))

"""
Management command to send habit reminder emails.

Run hourly (cron or the django-q2 scheduler). Each user gets at most one
reminder per day, once the reminder time of a pending habit has passed.

Usage:
    python manage.py send_habit_reminders
    python manage.py send_habit_reminders --dry-run
"""
from typing import Any
from django.conf import settings
from django.core.management.base import BaseCommand

from habits.reminders import send_habit_reminders


class Command(BaseCommand):
    help = 'Send email reminders for habits not yet checked in today (run hourly)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be done without sending emails',
        )

    def handle(self, *args: Any, **options: Any) -> None:
        dry_run = options.get('dry_run', False)

        if not settings.HABIT_REMINDERS_ENABLED and not dry_run:
            self.stdout.write(self.style.WARNING('Habit reminders are disabled (HABIT_REMINDERS_ENABLED=False)'))
            return

        if dry_run:
            self.stdout.write(self.style.WARNING('DRY RUN MODE - No emails will be sent'))

        sent = send_habit_reminders(dry_run=dry_run)

        if dry_run:
            self.stdout.write(self.style.WARNING(f'DRY RUN COMPLETE - {sent} reminder(s) would be sent'))
        elif sent:
            self.stdout.write(self.style.SUCCESS(f'✓ Successfully sent {sent} habit reminder email(s)'))
        else:
            self.stdout.write('No reminders due')

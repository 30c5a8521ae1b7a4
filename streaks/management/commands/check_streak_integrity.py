"""
Management command to audit stored streaks against check-in history.

Read-only: reports active streaks whose length differs from the run of
consecutive verified days in the check-in table.

Usage:
    python manage.py check_streak_integrity
"""
from typing import Any
from django.core.management.base import BaseCommand

from streaks.models import Streak
from streaks.services import recalculate_streak_from_history


class Command(BaseCommand):
    help = 'Compare active streak lengths with verified check-in history'

    def handle(self, *args: Any, **options: Any) -> None:
        verbosity = options.get('verbosity', 1)
        mismatches = 0
        active = Streak.objects.filter(is_active=True).select_related('user', 'habit')

        for streak in active:
            expected = recalculate_streak_from_history(streak.user, streak.habit)
            if expected != streak.streak_length:
                mismatches += 1
                self.stdout.write(self.style.ERROR(
                    f'  ✗ Streak {streak.pk} ({streak.user.email} / {streak.habit.name}): '
                    f'stored {streak.streak_length}, history {expected}'
                ))
            elif verbosity >= 2:
                self.stdout.write(f'  ✓ Streak {streak.pk}: {streak.streak_length} days')

        if mismatches:
            self.stdout.write(self.style.WARNING(f'{mismatches} of {active.count()} active streak(s) disagree with history'))
        else:
            self.stdout.write(self.style.SUCCESS(f'All {active.count()} active streak(s) match history'))

"""
Tests for habit reminder emails.

Tests cover:
- Idempotency (no duplicate emails)
- Dry-run mode
- Reminder time and completion filtering
"""
from datetime import datetime, time
from io import StringIO

import pytz
from django.core import mail
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.contrib.auth import get_user_model

from checkins.models import CheckIn
from core.dates import day_start
from .models import Habit, ReminderSendLog
from .reminders import _build_idempotency_key, send_habit_reminders, send_reminder_to_user

User = get_user_model()

EVENING = pytz.UTC.localize(datetime(2025, 5, 10, 18, 0))


@override_settings(TIME_ZONE='UTC')
class HabitReminderTests(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(username='remind-me', email='remind@example.com')
        self.habit = Habit.objects.create(
            user=self.user, name='Journal', verification_prompt='?', reminder_time=time(9, 0),
        )

    def test_sends_once_per_day(self):
        self.assertTrue(send_reminder_to_user(self.user, now=EVENING))
        self.assertFalse(send_reminder_to_user(self.user, now=EVENING))

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, 'Reminder: Journal')
        self.assertTrue(ReminderSendLog.objects.was_sent(_build_idempotency_key(self.user.id, EVENING.date())))

    def test_not_sent_before_reminder_time(self):
        early = pytz.UTC.localize(datetime(2025, 5, 10, 7, 0))
        self.assertFalse(send_reminder_to_user(self.user, now=early))
        self.assertEqual(len(mail.outbox), 0)

    def test_not_sent_when_already_verified_today(self):
        CheckIn.objects.create(
            user=self.user, habit=self.habit, image_url='http://x/a.jpg', image_key='a',
            verification_status=CheckIn.Status.VERIFIED, check_in_date=day_start(EVENING), points_earned=15,
        )
        self.assertFalse(send_reminder_to_user(self.user, now=EVENING))

    def test_dry_run_sends_nothing(self):
        self.assertEqual(send_habit_reminders(now=EVENING, dry_run=True), 1)
        self.assertEqual(len(mail.outbox), 0)
        self.assertFalse(ReminderSendLog.objects.exists())

    def test_inactive_habits_are_ignored(self):
        self.habit.is_active = False
        self.habit.save()
        self.assertEqual(send_habit_reminders(now=EVENING), 0)

    @override_settings(HABIT_REMINDERS_ENABLED=False)
    def test_command_respects_kill_switch(self):
        out = StringIO()
        call_command('send_habit_reminders', stdout=out)

        self.assertIn('disabled', out.getvalue())
        self.assertEqual(len(mail.outbox), 0)

"""
Tests for points, the streak ledger and the streak read side.
"""
from datetime import datetime, timedelta
from io import StringIO

import pytz
from django.core.management import call_command
from django.db import IntegrityError
from django.test import TestCase, Client
from django.contrib.auth import get_user_model

from checkins.models import CheckIn
from core.dates import day_start
from core.testing import auth_headers
from habits.models import Habit
from .ledger import StreakLedger
from .models import Streak
from .points import (
    check_in_points,
    is_milestone,
    level_for_points,
    level_progress,
    milestone_bonus,
    next_milestone,
    points_for_next_level,
)
from .services import (
    current_streak,
    is_streak_active,
    leaderboard,
    recalculate_streak_from_history,
    streak_history,
    streak_stats,
)

User = get_user_model()

UTC = pytz.UTC


def at(year, month, day, hour=12):
    return UTC.localize(datetime(year, month, day, hour))


class PointsTests(TestCase):

    def test_check_in_points(self):
        self.assertEqual(check_in_points(1), 15)
        self.assertEqual(check_in_points(7), 95)
        self.assertEqual(check_in_points(10), 60)
        self.assertEqual(check_in_points(30), 260)
        self.assertEqual(check_in_points(100), 1060)
        self.assertEqual(check_in_points(365), 5060)
        self.assertEqual(check_in_points(0), 10)
        self.assertEqual(check_in_points(-3), 10)

    def test_milestone_bonus_only_on_exact_day(self):
        self.assertEqual(milestone_bonus(7), 50)
        self.assertEqual(milestone_bonus(8), 0)

    def test_level_derivation(self):
        self.assertEqual(level_for_points(0), 1)
        self.assertEqual(level_for_points(499), 1)
        self.assertEqual(level_for_points(500), 2)
        self.assertEqual(level_for_points(999), 2)
        self.assertEqual(level_for_points(1000), 3)
        self.assertEqual(points_for_next_level(2), 1000)

    def test_level_progress(self):
        self.assertEqual(level_progress(0), 0)
        self.assertEqual(level_progress(250), 50)
        self.assertEqual(level_progress(503), 1)
        self.assertEqual(level_progress(999), 100)

    def test_is_milestone(self):
        self.assertTrue(is_milestone(7))
        self.assertFalse(is_milestone(8))
        self.assertTrue(is_milestone(365))

    def test_next_milestone(self):
        self.assertEqual(next_milestone(0), {'days': 7, 'reward': 50, 'name': '1 Week Warrior', 'daysRemaining': 7})
        self.assertEqual(next_milestone(7)['days'], 30)
        self.assertEqual(next_milestone(99)['daysRemaining'], 1)
        self.assertEqual(next_milestone(364)['name'], 'Year-Long Legend')

    def test_next_milestone_past_a_year(self):
        self.assertEqual(next_milestone(365), {'days': 730, 'reward': 5000, 'name': 'Annual Achievement', 'daysRemaining': 365})
        self.assertEqual(next_milestone(400)['days'], 730)
        self.assertEqual(next_milestone(730)['days'], 1095)


class StreakLedgerTests(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(username='ledger-user', email='ledger@example.com')
        self.profile = self.user.profile
        self.habit = Habit.objects.create(user=self.user, name='Make My Bed', verification_prompt='Is the bed made?')

    def advance(self, when):
        return StreakLedger(self.profile, self.habit).advance_streak(when)

    def test_first_check_in_opens_streak(self):
        transition = self.advance(at(2025, 3, 1))

        self.assertEqual(transition.action, 'created')
        self.assertEqual(transition.streak.streak_length, 1)
        self.assertEqual(transition.streak.start_date, day_start(at(2025, 3, 1)))
        self.profile.refresh_from_db()
        self.assertEqual(self.profile.current_streak, 1)
        self.assertEqual(self.profile.longest_streak, 1)
        self.assertEqual(self.profile.last_check_in_date, at(2025, 3, 1))

    def test_consecutive_days_extend_streak(self):
        self.advance(at(2025, 3, 1))
        self.advance(at(2025, 3, 2))
        transition = self.advance(at(2025, 3, 3))

        self.assertEqual(transition.action, 'extended')
        self.assertEqual(transition.streak.streak_length, 3)
        self.profile.refresh_from_db()
        self.assertEqual(self.profile.current_streak, 3)
        self.assertEqual(self.profile.longest_streak, 3)
        self.assertEqual(Streak.objects.count(), 1)

    def test_same_day_is_a_no_op(self):
        self.advance(at(2025, 3, 1, hour=8))
        transition = self.advance(at(2025, 3, 1, hour=20))

        self.assertEqual(transition.action, 'unchanged')
        self.assertEqual(transition.streak.streak_length, 1)
        self.profile.refresh_from_db()
        self.assertEqual(self.profile.current_streak, 1)

    def test_gap_closes_streak_and_opens_new_one(self):
        self.advance(at(2025, 3, 1))
        self.advance(at(2025, 3, 2))
        self.advance(at(2025, 3, 3))
        transition = self.advance(at(2025, 3, 6))

        self.assertEqual(transition.action, 'reset')
        self.assertEqual(transition.streak.streak_length, 1)
        closed = Streak.objects.get(is_active=False)
        self.assertEqual(closed.streak_length, 3)
        self.assertEqual(closed.end_date, day_start(at(2025, 3, 3)))
        self.profile.refresh_from_db()
        self.assertEqual(self.profile.current_streak, 1)
        self.assertEqual(self.profile.longest_streak, 3)

    def test_longest_streak_is_monotonic(self):
        days = [1, 2, 3, 4, 10, 11, 20, 21, 22, 23, 24, 25]
        longest_seen = 0
        for day in days:
            self.advance(at(2025, 3, day))
            self.profile.refresh_from_db()
            self.assertGreaterEqual(self.profile.longest_streak, longest_seen)
            self.assertGreaterEqual(self.profile.longest_streak, self.profile.current_streak)
            longest_seen = self.profile.longest_streak
        self.assertEqual(longest_seen, 6)
        self.assertEqual(Streak.objects.filter(is_active=True).count(), 1)

    def test_each_habit_keeps_its_own_continuity(self):
        reading = Habit.objects.create(user=self.user, name='Read', verification_prompt='Reading?')
        for day in (1, 2, 3):
            StreakLedger(self.profile, self.habit).advance_streak(at(2025, 3, day, hour=8))
            transition = StreakLedger(self.profile, reading).advance_streak(at(2025, 3, day, hour=9))

        self.assertEqual(transition.action, 'extended')
        lengths = {s.habit.name: s.streak_length for s in Streak.objects.filter(is_active=True)}
        self.assertEqual(lengths, {'Make My Bed': 3, 'Read': 3})
        self.assertEqual(Streak.objects.get(habit=reading).last_check_in_date, at(2025, 3, 3, hour=9))

    def test_gap_on_one_habit_ignores_the_other(self):
        reading = Habit.objects.create(user=self.user, name='Read', verification_prompt='Reading?')
        StreakLedger(self.profile, reading).advance_streak(at(2025, 3, 1))
        StreakLedger(self.profile, self.habit).advance_streak(at(2025, 3, 3))

        transition = StreakLedger(self.profile, reading).advance_streak(at(2025, 3, 4))

        self.assertEqual(transition.action, 'reset')
        closed = Streak.objects.get(habit=reading, is_active=False)
        self.assertEqual(closed.end_date, day_start(at(2025, 3, 1)))

    def test_streak_without_stored_last_day_uses_its_length(self):
        Streak.objects.create(
            user=self.user, habit=self.habit, start_date=day_start(at(2025, 3, 1)), streak_length=2, is_active=True,
        )

        transition = self.advance(at(2025, 3, 3))

        self.assertEqual(transition.action, 'extended')
        self.assertEqual(transition.streak.streak_length, 3)

    def test_award_points_recomputes_level(self):
        self.profile.total_points = 490
        self.profile.save()

        profile = StreakLedger(self.profile, self.habit).award_points(15)

        self.assertEqual(profile.total_points, 505)
        self.assertEqual(profile.level, 2)
        self.assertEqual(profile.total_check_ins, 1)

    def test_database_rejects_second_active_streak(self):
        self.advance(at(2025, 3, 1))
        with self.assertRaises(IntegrityError):
            Streak.objects.create(user=self.user, habit=self.habit, start_date=at(2025, 3, 2), is_active=True)


class StreakServiceTests(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(username='stats-user', email='stats@example.com')
        self.profile = self.user.profile
        self.habit = Habit.objects.create(user=self.user, name='Meditate', verification_prompt='Meditating?')

    def advance(self, when):
        StreakLedger(self.profile, self.habit).advance_streak(when)
        self.profile.refresh_from_db()

    def test_current_streak_placeholder_when_none(self):
        streak = current_streak(self.user, self.habit)

        self.assertIsNone(streak.pk)
        self.assertEqual(streak.streak_length, 0)
        self.assertFalse(streak.is_active)
        self.assertIsNone(streak.to_dict()['startDate'])

    def test_history_newest_first_and_capped(self):
        self.advance(at(2025, 1, 1))
        self.advance(at(2025, 1, 5))
        self.advance(at(2025, 1, 9))

        history = streak_history(self.user, self.habit)
        self.assertEqual([s.start_date for s in history], [day_start(at(2025, 1, d)) for d in (9, 5, 1)])
        self.assertEqual(len(streak_history(self.user, self.habit, limit=2)), 2)
        self.assertEqual(len(streak_history(self.user, self.habit, limit=500)), 3)

    def test_stats_flags_stale_streak(self):
        self.advance(at(2025, 1, 1))
        self.advance(at(2025, 1, 2))

        fresh = streak_stats(self.user, self.habit, now=at(2025, 1, 3))
        self.assertEqual(fresh['current'], 2)
        self.assertTrue(fresh['isActiveNow'])
        self.assertEqual(fresh['totalStreaks'], 1)

        stale = streak_stats(self.user, self.habit, now=at(2025, 1, 5))
        self.assertEqual(stale['current'], 2)
        self.assertFalse(stale['isActiveNow'])

    def test_stale_habit_is_not_active_when_another_habit_is(self):
        gym = Habit.objects.create(user=self.user, name='Gym', verification_prompt='At the gym?')
        self.advance(at(2025, 1, 1))
        StreakLedger(self.profile, gym).advance_streak(at(2025, 1, 5))

        self.assertFalse(streak_stats(self.user, self.habit, now=at(2025, 1, 5))['isActiveNow'])
        self.assertTrue(streak_stats(self.user, gym, now=at(2025, 1, 5))['isActiveNow'])

    def test_is_streak_active_without_check_ins(self):
        self.assertFalse(is_streak_active(None))
        self.assertFalse(is_streak_active(current_streak(self.user, self.habit)))

    def test_leaderboard_orders_by_current_streak(self):
        other = User.objects.create_user(username='other', email='other@example.com')
        other.profile.display_name = 'Other'
        other.profile.current_streak = 9
        other.profile.longest_streak = 9
        other.profile.save()
        self.advance(at(2025, 1, 1))

        board = leaderboard()
        self.assertEqual([row['rank'] for row in board], [1, 2])
        self.assertEqual(board[0]['displayName'], 'Other')
        self.assertEqual(board[1]['currentStreak'], 1)

    def test_recalculate_from_history(self):
        for day in (1, 2, 3, 6, 7):
            CheckIn.objects.create(
                user=self.user, habit=self.habit, image_url='http://x/y.jpg', image_key='k',
                verification_status=CheckIn.Status.VERIFIED, check_in_date=day_start(at(2025, 2, day)),
                points_earned=10,
            )
        CheckIn.objects.create(
            user=self.user, habit=self.habit, image_url='http://x/z.jpg', image_key='k2',
            verification_status=CheckIn.Status.REJECTED, check_in_date=day_start(at(2025, 2, 5)),
        )
        self.assertEqual(recalculate_streak_from_history(self.user, self.habit), 2)


class CheckStreakIntegrityCommandTests(TestCase):

    def test_reports_mismatch(self):
        user = User.objects.create_user(username='audit', email='audit@example.com')
        habit = Habit.objects.create(user=user, name='Journal', verification_prompt='Journal?')
        Streak.objects.create(user=user, habit=habit, start_date=at(2025, 2, 1), streak_length=4)

        out = StringIO()
        call_command('check_streak_integrity', stdout=out)

        self.assertIn('stored 4, history 0', out.getvalue())


class StreakEndpointTests(TestCase):

    def setUp(self):
        self.client = Client()
        self.headers = auth_headers(subject_id='streaker', email='streaker@example.com')
        self.client.post('/api/auth/verify/', **self.headers)
        self.user = User.objects.get(username='streaker')

    def test_current_without_habit(self):
        response = self.client.get('/api/streaks/current/', **self.headers)

        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.json()['streak'])

    def test_current_defaults_to_first_active_habit(self):
        habit = Habit.objects.create(user=self.user, name='Drink Water', verification_prompt='Water?')

        response = self.client.get('/api/streaks/current/', **self.headers)

        data = response.json()
        self.assertEqual(data['streak']['habitId'], habit.pk)
        self.assertEqual(data['streak']['streakLength'], 0)
        self.assertEqual(data['nextMilestone']['days'], 7)

    def test_stats_and_history_for_habit_id(self):
        Habit.objects.create(user=self.user, name='First', verification_prompt='?')
        habit = Habit.objects.create(user=self.user, name='Second', verification_prompt='?')
        StreakLedger(self.user.profile, habit).advance_streak(at(2025, 1, 1))

        stats = self.client.get(f'/api/streaks/stats/?habitId={habit.pk}', **self.headers).json()['stats']
        history = self.client.get(f'/api/streaks/history/?habitId={habit.pk}', **self.headers).json()

        self.assertEqual(stats['current'], 1)
        self.assertEqual(stats['totalStreaks'], 1)
        self.assertEqual(history['total'], 1)

    def test_other_users_habit_is_404(self):
        stranger = User.objects.create_user(username='stranger', email='s@example.com')
        habit = Habit.objects.create(user=stranger, name='Secret', verification_prompt='?')

        response = self.client.get(f'/api/streaks/stats/?habitId={habit.pk}', **self.headers)

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['error'], 'Habit not found')

    def test_leaderboard(self):
        response = self.client.get('/api/streaks/leaderboard/', **self.headers)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['leaderboard'], [])

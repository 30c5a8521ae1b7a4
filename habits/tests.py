"""
Tests for the habits app.

Covers:
- Catalog seeding and listing
- Habit creation from the catalog and as a custom habit
- Update and soft delete
- Dashboard completion status
- Verification suggestions (AI path and fallbacks)
"""
import json
from io import StringIO
from unittest.mock import patch

from django.core.management import call_command
from django.test import TestCase, Client
from django.contrib.auth import get_user_model

from checkins.models import CheckIn
from core.ai import AIServiceError
from core.dates import today_start
from core.testing import auth_headers
from .models import CommonHabit, Habit
from .seed import COMMON_HABITS, seed_common_habits
from .suggestions import fallback_suggestion, suggest_verification

User = get_user_model()


class SeedCommonHabitsTests(TestCase):

    def test_seed_is_idempotent(self):
        list(seed_common_habits())
        list(seed_common_habits())

        self.assertEqual(CommonHabit.objects.count(), len(COMMON_HABITS))

    def test_seed_command(self):
        out = StringIO()
        call_command('seed_common_habits', stdout=out)

        self.assertIn(f'Successfully seeded {len(COMMON_HABITS)} common habits', out.getvalue())
        bed = CommonHabit.objects.get(name='Make My Bed')
        self.assertEqual(bed.category, 'lifestyle')
        self.assertEqual(bed.popularity_score, 100)


class FallbackSuggestionTests(TestCase):

    def test_category_template_comes_first(self):
        suggestion = fallback_suggestion('Read the news', 'Daily news', category='wellness')

        self.assertEqual(suggestion['verificationType'], 'timer')
        self.assertIn('Read the news', suggestion['verificationPrompt'])

    def test_keyword_rules_without_category(self):
        self.assertEqual(fallback_suggestion('Read a book', 'x')['verificationType'], 'photo')
        self.assertEqual(fallback_suggestion('Morning Meditation', 'x')['verificationType'], 'timer')
        self.assertIn('gym', fallback_suggestion('Gym session', 'x')['verificationPrompt'])

    def test_custom_category_falls_through_to_keywords(self):
        suggestion = fallback_suggestion('Mindful walk', 'x', category='custom')
        self.assertEqual(suggestion['verificationType'], 'timer')

    def test_generic_prompt_echoes_name_and_description(self):
        suggestion = fallback_suggestion('Water the plants', 'Give every plant a drink')

        self.assertEqual(suggestion['verificationType'], 'photo')
        self.assertIn('Water the plants', suggestion['verificationPrompt'])
        self.assertIn('Give every plant a drink', suggestion['verificationPrompt'])
        self.assertEqual(len(suggestion['alternatives']), 2)

    def test_keyword_suggestions_are_not_shared(self):
        first = fallback_suggestion('Read', 'x')
        first['alternatives'].append({'type': 'timer', 'description': 'changed'})

        self.assertEqual(len(fallback_suggestion('Read', 'x')['alternatives']), 1)


class SuggestVerificationTests(TestCase):

    @patch('habits.suggestions.call_model')
    def test_uses_valid_ai_reply(self, mock_call):
        mock_call.return_value = '```json\n' + json.dumps({
            'verificationType': 'photo',
            'verificationPrompt': 'Does this image show a watered plant?',
            'reasoning': 'Plants are visible.',
            'alternatives': [{'type': 'manual', 'description': 'Confirm manually'}],
        }) + '\n```'

        suggestion = suggest_verification('Water plants', 'Water them')

        self.assertEqual(suggestion['verificationPrompt'], 'Does this image show a watered plant?')
        self.assertEqual(suggestion['alternatives'][0]['type'], 'manual')

    @patch('habits.suggestions.call_model', return_value='{"verificationType": "telepathy", "verificationPrompt": "?"}')
    def test_off_schema_reply_falls_back(self, mock_call):
        suggestion = suggest_verification('Read a book', 'Read')
        self.assertEqual(suggestion['verificationPrompt'], 'Does this image show someone reading a book or engaged with reading material?')

    @patch('habits.suggestions.call_model', side_effect=AIServiceError('down'))
    def test_ai_failure_falls_back(self, mock_call):
        suggestion = suggest_verification('Gym', 'Lift')
        self.assertEqual(suggestion['verificationType'], 'photo')

    def test_unconfigured_ai_falls_back(self):
        suggestion = suggest_verification('Floss', 'Floss teeth')
        self.assertIn('Floss', suggestion['verificationPrompt'])


class HabitEndpointTests(TestCase):

    def setUp(self):
        self.client = Client()
        self.headers = auth_headers(subject_id='habit-owner', email='owner@example.com')
        self.client.post('/api/auth/verify/', **self.headers)
        self.user = User.objects.get(username='habit-owner')
        list(seed_common_habits())

    def post_json(self, url, payload):
        return self.client.post(url, data=json.dumps(payload), content_type='application/json', **self.headers)

    def put_json(self, url, payload):
        return self.client.put(url, data=json.dumps(payload), content_type='application/json', **self.headers)

    def test_create_from_catalog_copies_template(self):
        response = self.post_json('/api/habits/', {'habitName': 'Make My Bed', 'reminderTime': '07:30'})

        self.assertEqual(response.status_code, 201)
        habit = Habit.objects.get(user=self.user)
        self.assertFalse(habit.is_custom)
        self.assertEqual(habit.common_habit.name, 'Make My Bed')
        self.assertIn('properly made bed', habit.verification_prompt)
        self.assertEqual(response.json()['habit']['reminderTime'], '07:30')
        self.assertEqual(len(response.json()['habits']), 1)

    def test_create_custom_requires_prompt(self):
        response = self.post_json('/api/habits/', {'habitName': 'Floss', 'description': 'Floss teeth'})

        self.assertEqual(response.status_code, 400)
        self.assertFalse(Habit.objects.exists())

    def test_create_custom_habit(self):
        response = self.post_json('/api/habits/', {
            'habitName': 'Floss',
            'description': 'Floss teeth',
            'verificationPrompt': 'Does this image show dental floss in use?',
            'category': 'health',
        })

        self.assertEqual(response.status_code, 201)
        habit = Habit.objects.get(user=self.user)
        self.assertTrue(habit.is_custom)
        self.assertTrue(habit.ai_generated)
        self.assertEqual(habit.category, 'health')

    def test_create_rejects_unknown_category_and_bad_time(self):
        base = {'habitName': 'Floss', 'description': 'd', 'verificationPrompt': 'p'}
        self.assertEqual(self.post_json('/api/habits/', {**base, 'category': 'sports'}).status_code, 400)
        self.assertEqual(self.post_json('/api/habits/', {**base, 'reminderTime': '7am'}).status_code, 400)

    def test_list_only_active_habits(self):
        Habit.objects.create(user=self.user, name='Active', verification_prompt='?')
        Habit.objects.create(user=self.user, name='Gone', verification_prompt='?', is_active=False)

        response = self.client.get('/api/habits/', **self.headers)

        self.assertEqual([h['habitName'] for h in response.json()['habits']], ['Active'])

    def test_update_habit(self):
        habit = Habit.objects.create(user=self.user, name='Run', verification_prompt='Running?')

        response = self.put_json(f'/api/habits/{habit.pk}/', {'habitName': 'Run 5k', 'verificationPrompt': 'Running 5k?'})

        self.assertEqual(response.status_code, 200)
        habit.refresh_from_db()
        self.assertEqual(habit.name, 'Run 5k')
        self.assertEqual(habit.verification_prompt, 'Running 5k?')

    def test_delete_is_soft(self):
        habit = Habit.objects.create(user=self.user, name='Run', verification_prompt='Running?')

        response = self.client.delete(f'/api/habits/{habit.pk}/', **self.headers)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['habits'], [])
        habit.refresh_from_db()
        self.assertFalse(habit.is_active)

    def test_cannot_touch_another_users_habit(self):
        stranger = User.objects.create_user(username='stranger', email='s@example.com')
        habit = Habit.objects.create(user=stranger, name='Secret', verification_prompt='?')

        self.assertEqual(self.client.get(f'/api/habits/{habit.pk}/', **self.headers).status_code, 404)
        self.assertEqual(self.client.delete(f'/api/habits/{habit.pk}/', **self.headers).status_code, 404)
        habit.refresh_from_db()
        self.assertTrue(habit.is_active)

    def test_dashboard_reports_completion(self):
        done = Habit.objects.create(user=self.user, name='Done', verification_prompt='?')
        Habit.objects.create(user=self.user, name='Todo', verification_prompt='?')
        CheckIn.objects.create(
            user=self.user, habit=done, image_url='http://x/a.jpg', image_key='a',
            verification_status=CheckIn.Status.VERIFIED, check_in_date=today_start(), points_earned=15,
        )

        response = self.client.get('/api/habits/dashboard/', **self.headers)

        data = response.json()
        self.assertEqual(data['summary'], {'total': 2, 'completedToday': 1, 'remainingToday': 1})
        by_name = {h['habitName']: h for h in data['habits']}
        self.assertTrue(by_name['Done']['isCompletedToday'])
        self.assertEqual(by_name['Done']['checkIn']['pointsEarned'], 15)
        self.assertIsNone(by_name['Todo']['checkIn'])

    def test_common_habits_filters(self):
        response = self.client.get('/api/habits/common/?category=fitness&limit=2', **self.headers)

        habits = response.json()['habits']
        self.assertEqual(len(habits), 2)
        self.assertTrue(all(h['category'] == 'fitness' for h in habits))
        self.assertEqual(habits[0]['name'], 'Go to the Gym')

        search = self.client.get('/api/habits/common/?search=yoga', **self.headers).json()['habits']
        self.assertEqual([h['name'] for h in search], ['Practice Yoga'])

    def test_suggest_verification_endpoint(self):
        response = self.post_json('/api/habits/suggest-verification/', {'habitName': 'Read more', 'description': 'Books'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['suggestion']['verificationType'], 'photo')

    def test_suggest_verification_requires_fields(self):
        response = self.post_json('/api/habits/suggest-verification/', {'habitName': 'Read more'})
        self.assertEqual(response.status_code, 400)

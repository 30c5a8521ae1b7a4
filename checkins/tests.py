"""
Tests for the check-in workflow.

Tests cover:
- Verified and rejected submissions, points and streak updates
- Same-day duplicate protection and retry after a rejection
- Day-to-day streak continuity and resets
- Image validation and storage failures
- Listing, today and detail endpoints
- Expiry of stale pending check-ins
"""
from datetime import datetime, timedelta
from io import StringIO
from unittest.mock import patch

import pytz
from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.test import TestCase, Client
from django.contrib.auth import get_user_model
from django.utils import timezone

from core.dates import day_start
from core.errors import Conflict, InvalidInput, NotFound, StorageError
from core.testing import JPEG_BYTES, PNG_BYTES, WEBP_BYTES, auth_headers
from habits.models import Habit
from streaks.models import Streak
from .images import has_image_signature, validate_image
from .models import CheckIn
from .services import submit_check_in
from .verification import VerificationResult, parse_verdict, verify_image

User = get_user_model()

VERIFIED = VerificationResult(is_verified=True, note='A neatly made bed is visible.')
REJECTED = VerificationResult(is_verified=False, note='No bed in the photo.')


def at(year, month, day, hour=12):
    return pytz.UTC.localize(datetime(year, month, day, hour))


class ImageValidationTests(TestCase):

    def test_signatures(self):
        self.assertTrue(has_image_signature(JPEG_BYTES))
        self.assertTrue(has_image_signature(PNG_BYTES))
        self.assertTrue(has_image_signature(WEBP_BYTES))
        self.assertFalse(has_image_signature(b'GIF89a' + b'\x00' * 16))

    def test_rejects_empty_image(self):
        with self.assertRaises(InvalidInput) as ctx:
            validate_image(b'', 'image/jpeg')
        self.assertEqual(ctx.exception.message, 'Image file is required')

    def test_rejects_disallowed_mime_type(self):
        with self.assertRaises(InvalidInput):
            validate_image(JPEG_BYTES, 'image/gif')

    def test_rejects_mismatched_bytes(self):
        with self.assertRaises(InvalidInput) as ctx:
            validate_image(b'plain text, not a picture', 'image/png')
        self.assertEqual(ctx.exception.message, 'Invalid image file')

    def test_rejects_oversized_image(self):
        with self.settings(CHECKIN_MAX_IMAGE_BYTES=32):
            with self.assertRaises(InvalidInput):
                validate_image(JPEG_BYTES, 'image/jpeg')


class VerifierTests(TestCase):

    def test_parse_verdict(self):
        result = parse_verdict('YES\nThe bed is made.\nPillows are arranged.')

        self.assertTrue(result.is_verified)
        self.assertEqual(result.note, 'The bed is made. Pillows are arranged.')
        self.assertFalse(parse_verdict('no').is_verified)
        self.assertEqual(parse_verdict('NO').note, 'No explanation provided.')

    @patch('checkins.verification.call_model', return_value='YES\nLooks right.')
    def test_sends_image_url_and_prompt(self, mock_call):
        result = verify_image('https://cdn.example.com/a.jpg', 'Does this image show a made bed?')

        self.assertTrue(result.is_verified)
        content = mock_call.call_args[0][0]
        self.assertEqual(content[0]['source'], {'type': 'url', 'url': 'https://cdn.example.com/a.jpg'})
        self.assertTrue(content[1]['text'].startswith('Does this image show a made bed?'))

    @patch('checkins.verification.call_model', side_effect=RuntimeError('timeout'))
    def test_failure_becomes_rejection(self, mock_call):
        result = verify_image('https://cdn.example.com/a.jpg', 'prompt')

        self.assertFalse(result.is_verified)
        self.assertEqual(result.note, 'Verification service error: timeout')


class SubmitCheckInTests(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(username='checker', email='checker@example.com')
        self.profile = self.user.profile
        self.habit = Habit.objects.create(user=self.user, name='Make My Bed', verification_prompt='Is the bed made?')

    def submit(self, now, verdict=VERIFIED, data=JPEG_BYTES, content_type='image/jpeg'):
        with patch('checkins.services.verify_image', return_value=verdict):
            return submit_check_in(self.profile, self.habit.pk, data, content_type, now=now)

    def test_first_verified_check_in(self):
        result = self.submit(at(2025, 3, 1))

        self.assertTrue(result.verified)
        self.assertEqual(result.check_in.points_earned, 15)
        self.assertEqual(result.streak, {'current': 1, 'longest': 1, 'isMilestone': False})
        self.assertEqual(result.points['total'], 15)
        self.assertEqual(result.points['totalCheckIns'], 1)
        self.assertEqual(result.check_in.check_in_date, day_start(at(2025, 3, 1)))
        self.assertTrue(default_storage.exists(result.check_in.image_key))
        self.assertTrue(result.check_in.image_url.startswith('http'))

    def test_rejected_check_in_awards_nothing(self):
        result = self.submit(at(2025, 3, 1), verdict=REJECTED)

        self.assertFalse(result.verified)
        self.assertIsNone(result.streak)
        self.assertEqual(result.check_in.verification_status, CheckIn.Status.REJECTED)
        self.assertEqual(result.check_in.ai_verification_note, 'No bed in the photo.')
        self.assertEqual(result.to_dict()['message'], 'Check-in failed verification')
        self.profile.refresh_from_db()
        self.assertEqual(self.profile.total_points, 0)
        self.assertEqual(self.profile.current_streak, 0)
        self.assertFalse(Streak.objects.exists())

    def test_unconfigured_verifier_rejects_with_note(self):
        result = submit_check_in(self.profile, self.habit.pk, JPEG_BYTES, 'image/jpeg', now=at(2025, 3, 1))

        self.assertFalse(result.verified)
        self.assertTrue(result.check_in.ai_verification_note.startswith('Verification service error:'))

    def test_second_verified_check_in_same_day_conflicts(self):
        first = self.submit(at(2025, 3, 1, hour=8))

        with self.assertRaises(Conflict) as ctx:
            self.submit(at(2025, 3, 1, hour=20))

        self.assertEqual(ctx.exception.extra['checkIn']['id'], first.check_in.pk)
        self.assertEqual(CheckIn.objects.count(), 1)
        self.profile.refresh_from_db()
        self.assertEqual(self.profile.total_points, 15)
        self.assertEqual(self.profile.total_check_ins, 1)

    def test_retry_after_rejection_replaces_attempt(self):
        rejected = self.submit(at(2025, 3, 1, hour=8), verdict=REJECTED)
        old_key = rejected.check_in.image_key

        with self.captureOnCommitCallbacks(execute=True):
            retried = self.submit(at(2025, 3, 1, hour=9))

        self.assertTrue(retried.verified)
        self.assertEqual(list(CheckIn.objects.values_list('pk', flat=True)), [retried.check_in.pk])
        self.assertFalse(default_storage.exists(old_key))

    def test_consecutive_days_extend_the_streak(self):
        points = [self.submit(at(2025, 3, day)).check_in.points_earned for day in (1, 2, 3)]

        self.assertEqual(points, [15, 20, 25])
        self.profile.refresh_from_db()
        self.assertEqual(self.profile.current_streak, 3)
        self.assertEqual(self.profile.total_points, 60)
        streak = Streak.objects.get(is_active=True)
        self.assertEqual(streak.streak_length, 3)
        self.assertEqual(streak.start_date, day_start(at(2025, 3, 1)))

    def test_two_habits_checked_in_daily_both_extend(self):
        reading = Habit.objects.create(user=self.user, name='Read', verification_prompt='Reading?')

        for day in (1, 2, 3):
            self.submit(at(2025, 3, day, hour=8))
            with patch('checkins.services.verify_image', return_value=VERIFIED):
                result = submit_check_in(self.profile, reading.pk, JPEG_BYTES, 'image/jpeg', now=at(2025, 3, day, hour=9))

        self.assertEqual(result.streak['current'], 3)
        self.assertEqual(result.check_in.points_earned, 25)
        lengths = {s.habit.name: s.streak_length for s in Streak.objects.filter(is_active=True)}
        self.assertEqual(lengths, {'Make My Bed': 3, 'Read': 3})

    def test_gap_resets_the_streak(self):
        self.submit(at(2025, 3, 1))
        self.submit(at(2025, 3, 2))
        result = self.submit(at(2025, 3, 5))

        self.assertEqual(result.streak, {'current': 1, 'longest': 2, 'isMilestone': False})
        closed = Streak.objects.get(is_active=False)
        self.assertEqual(closed.streak_length, 2)
        self.assertEqual(closed.end_date, day_start(at(2025, 3, 2)))
        self.assertEqual(Streak.objects.filter(is_active=True).count(), 1)

    def test_seventh_day_earns_milestone_bonus(self):
        for day in range(1, 7):
            self.submit(at(2025, 3, day))
        result = self.submit(at(2025, 3, 7))

        self.assertEqual(result.check_in.points_earned, 10 + 35 + 50)
        self.assertTrue(result.streak['isMilestone'])

    def test_other_users_habit_is_not_found(self):
        stranger = User.objects.create_user(username='stranger', email='s@example.com')
        habit = Habit.objects.create(user=stranger, name='Secret', verification_prompt='?')

        with self.assertRaises(NotFound):
            submit_check_in(self.profile, habit.pk, JPEG_BYTES, 'image/jpeg', now=at(2025, 3, 1))

    def test_inactive_habit_is_not_found(self):
        self.habit.is_active = False
        self.habit.save()

        with self.assertRaises(NotFound):
            self.submit(at(2025, 3, 1))

    def test_invalid_image_creates_nothing(self):
        with self.assertRaises(InvalidInput):
            self.submit(at(2025, 3, 1), data=b'definitely not an image')
        self.assertFalse(CheckIn.objects.exists())

    def test_storage_failure_creates_nothing(self):
        with patch('checkins.images.default_storage.save', side_effect=OSError('disk full')):
            with self.assertRaises(StorageError):
                self.submit(at(2025, 3, 1))

        self.assertFalse(CheckIn.objects.exists())

    def test_failure_after_upload_removes_image(self):
        with patch('checkins.services._apply_rewards', side_effect=RuntimeError('boom')), \
                patch('checkins.services.delete_image') as mock_delete:
            with self.assertRaises(RuntimeError):
                self.submit(at(2025, 3, 1))

        mock_delete.assert_called_once()
        self.assertFalse(CheckIn.objects.exists())
        self.profile.refresh_from_db()
        self.assertEqual(self.profile.total_points, 0)

    def test_racing_verified_row_becomes_conflict(self):
        racer = CheckIn.objects.create(
            user=self.user, habit=self.habit, image_url='http://x/r.jpg', image_key='r',
            verification_status=CheckIn.Status.VERIFIED, check_in_date=day_start(at(2025, 3, 1)),
            points_earned=15,
        )

        with patch('checkins.services._clear_previous_attempts'):
            with self.assertRaises(Conflict) as ctx:
                self.submit(at(2025, 3, 1))

        self.assertEqual(ctx.exception.extra['checkIn']['id'], racer.pk)
        self.assertEqual(CheckIn.objects.count(), 1)


class CheckInEndpointTests(TestCase):

    def setUp(self):
        self.client = Client()
        self.headers = auth_headers(subject_id='photo-taker', email='photo@example.com')
        self.client.post('/api/auth/verify/', **self.headers)
        self.user = User.objects.get(username='photo-taker')
        self.habit = Habit.objects.create(user=self.user, name='Make My Bed', verification_prompt='Is the bed made?')

    def upload(self, data=JPEG_BYTES, content_type='image/jpeg', habit_id=None):
        image = SimpleUploadedFile('photo.jpg', data, content_type=content_type)
        return self.client.post(
            '/api/checkins/',
            {'habitId': habit_id or self.habit.pk, 'image': image},
            **self.headers,
        )

    @patch('checkins.services.verify_image', return_value=VERIFIED)
    def test_create_verified(self, mock_verify):
        response = self.upload()

        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertTrue(data['success'])
        self.assertEqual(data['message'], 'Check-in created successfully')
        self.assertEqual(data['checkIn']['verificationStatus'], 'verified')
        self.assertEqual(data['checkIn']['pointsEarned'], 15)
        self.assertEqual(data['streak']['current'], 1)
        self.assertEqual(data['points']['level'], 1)

    @patch('checkins.services.verify_image', return_value=VERIFIED)
    def test_duplicate_is_409_with_existing_check_in(self, mock_verify):
        first = self.upload().json()
        response = self.upload()

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['error'], 'Already successfully checked in today')
        self.assertEqual(response.json()['checkIn']['id'], first['checkIn']['id'])

    @patch('checkins.services.verify_image', return_value=REJECTED)
    def test_rejected_is_still_201(self, mock_verify):
        response = self.upload()

        self.assertEqual(response.status_code, 201)
        self.assertFalse(response.json()['success'])
        self.assertIsNone(response.json()['points'])

    def test_missing_image_is_400(self):
        response = self.client.post('/api/checkins/', {'habitId': self.habit.pk}, **self.headers)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Image file is required')

    def test_missing_habit_id_is_400(self):
        image = SimpleUploadedFile('photo.jpg', JPEG_BYTES, content_type='image/jpeg')
        response = self.client.post('/api/checkins/', {'image': image}, **self.headers)
        self.assertEqual(response.status_code, 400)

    def test_wrong_type_is_400(self):
        response = self.upload(data=b'GIF89a' + b'\x00' * 16, content_type='image/gif')
        self.assertEqual(response.status_code, 400)

    def test_bad_signature_is_400(self):
        response = self.upload(data=b'hello world', content_type='image/jpeg')
        self.assertEqual(response.json()['error'], 'Invalid image file')

    def test_unknown_habit_is_404(self):
        response = self.upload(habit_id=999999)
        self.assertEqual(response.status_code, 404)

    def test_storage_failure_is_500(self):
        with patch('checkins.images.default_storage.save', side_effect=OSError('bucket unavailable')):
            response = self.upload()

        self.assertEqual(response.status_code, 500)
        self.assertFalse(CheckIn.objects.exists())

    def test_requires_token(self):
        response = self.client.get('/api/checkins/')
        self.assertEqual(response.status_code, 401)

    def _make_check_ins(self, days):
        now = timezone.now()
        for offset in range(days):
            CheckIn.objects.create(
                user=self.user, habit=self.habit, image_url=f'http://x/{offset}.jpg', image_key=str(offset),
                verification_status=CheckIn.Status.REJECTED, check_in_date=day_start(now - timedelta(days=offset)),
            )

    def test_list_is_paginated_newest_first(self):
        self._make_check_ins(3)

        response = self.client.get('/api/checkins/?limit=2', **self.headers)

        data = response.json()
        self.assertEqual(len(data['checkIns']), 2)
        self.assertEqual(data['pagination'], {'page': 1, 'limit': 2, 'total': 3, 'totalPages': 2, 'hasMore': True})
        self.assertGreater(data['checkIns'][0]['checkInDate'], data['checkIns'][1]['checkInDate'])

        last_page = self.client.get('/api/checkins/?limit=2&page=2', **self.headers).json()
        self.assertFalse(last_page['pagination']['hasMore'])

    def test_list_rejects_bad_page(self):
        response = self.client.get('/api/checkins/?page=0', **self.headers)
        self.assertEqual(response.status_code, 400)

    def test_today_only_counts_verified(self):
        self._make_check_ins(1)

        response = self.client.get('/api/checkins/today/', **self.headers)

        self.assertFalse(response.json()['hasCheckedIn'])
        self.assertEqual(response.json()['checkIn']['verificationStatus'], 'rejected')

    def test_today_without_habits(self):
        self.habit.is_active = False
        self.habit.save()

        response = self.client.get('/api/checkins/today/', **self.headers)

        self.assertEqual(response.json(), {'hasCheckedIn': False, 'checkIn': None})

    def test_detail_is_scoped_to_owner(self):
        self._make_check_ins(1)
        check_in = CheckIn.objects.get()

        own = self.client.get(f'/api/checkins/{check_in.pk}/', **self.headers)
        other = self.client.get(f'/api/checkins/{check_in.pk}/', **auth_headers(subject_id='someone-else'))

        self.assertEqual(own.json()['checkIn']['habitName'], 'Make My Bed')
        self.assertEqual(other.status_code, 404)
        self.assertEqual(other.json()['error'], 'Check-in not found')


class ExpirePendingCheckInsCommandTests(TestCase):

    def setUp(self):
        user = User.objects.create_user(username='stuck', email='stuck@example.com')
        habit = Habit.objects.create(user=user, name='Journal', verification_prompt='?')
        self.stale = CheckIn.objects.create(
            user=user, habit=habit, image_url='http://x/1.jpg', image_key='1', check_in_date=day_start(timezone.now()),
        )
        CheckIn.objects.filter(pk=self.stale.pk).update(created_at=timezone.now() - timedelta(hours=2))
        self.fresh = CheckIn.objects.create(
            user=user, habit=habit, image_url='http://x/2.jpg', image_key='2', check_in_date=day_start(timezone.now()),
        )

    def test_expires_only_stale_rows(self):
        out = StringIO()
        call_command('expire_pending_checkins', stdout=out)

        self.stale.refresh_from_db()
        self.fresh.refresh_from_db()
        self.assertEqual(self.stale.verification_status, CheckIn.Status.REJECTED)
        self.assertEqual(self.fresh.verification_status, CheckIn.Status.PENDING)
        self.assertIn('Expired 1 pending check-in(s)', out.getvalue())

    def test_dry_run_changes_nothing(self):
        out = StringIO()
        call_command('expire_pending_checkins', '--dry-run', stdout=out)

        self.stale.refresh_from_db()
        self.assertEqual(self.stale.verification_status, CheckIn.Status.PENDING)
        self.assertIn('DRY RUN - 1', out.getvalue())

"""
Tests for the accounts app.

Covers:
- Profile creation via signals
- Bearer token verification (valid, expired, tampered, missing)
- Profile resolution from identity claims
- Auth, profile and stats endpoints
"""
from unittest.mock import patch, MagicMock

from django.core.cache import cache
from django.db import IntegrityError
from django.test import TestCase, Client, override_settings
from django.contrib.auth import get_user_model
import requests

from core.errors import Unauthenticated
from core.testing import auth_headers, make_token
from .identity import IdentityClaims, verify_bearer_token, CERTS_CACHE_KEY
from .models import UserProfile
from .services import resolve_profile

User = get_user_model()


class UserProfileSignalTests(TestCase):
    """Test that UserProfile is automatically created when User is created."""

    def test_profile_created_on_user_creation(self):
        user = User.objects.create_user(username='subject-1', email='test@example.com')

        self.assertIsInstance(user.profile, UserProfile)
        self.assertEqual(user.profile.current_streak, 0)
        self.assertEqual(user.profile.total_points, 0)
        self.assertEqual(user.profile.level, 1)
        self.assertIsNone(user.profile.last_check_in_date)

    def test_profile_not_duplicated_on_user_save(self):
        user = User.objects.create_user(username='subject-1', email='test@example.com')
        profile_id = user.profile.id

        user.email = 'newemail@example.com'
        user.save()

        user.refresh_from_db()
        self.assertEqual(user.profile.id, profile_id)
        self.assertEqual(UserProfile.objects.filter(user=user).count(), 1)

    def test_longest_streak_cannot_fall_below_current(self):
        user = User.objects.create_user(username='subject-1', email='test@example.com')
        profile = user.profile
        profile.current_streak = 5
        profile.longest_streak = 3

        with self.assertRaises(IntegrityError):
            profile.save()


class VerifyBearerTokenTests(TestCase):

    def test_valid_token_returns_claims(self):
        claims = verify_bearer_token(make_token(subject_id='abc', email='a@example.com', name='Alice'))

        self.assertEqual(claims, IdentityClaims(subject_id='abc', email='a@example.com', display_name='Alice'))

    def test_missing_token_raises(self):
        with self.assertRaises(Unauthenticated):
            verify_bearer_token('')

    def test_expired_token_raises(self):
        with self.assertRaises(Unauthenticated) as ctx:
            verify_bearer_token(make_token(expires_in=-60))
        self.assertIn('expired', ctx.exception.message)

    def test_wrong_audience_raises(self):
        with self.assertRaises(Unauthenticated):
            verify_bearer_token(make_token(aud='someone-else'))

    def test_tampered_token_raises(self):
        token = make_token()
        with self.assertRaises(Unauthenticated):
            verify_bearer_token(token[:-4] + 'abcd')

    def test_display_name_falls_back_to_email(self):
        claims = verify_bearer_token(make_token(name=None, email='b@example.com'))
        self.assertEqual(claims.display_name, 'b@example.com')


@override_settings(IDENTITY_TOKEN_ALGORITHMS=['RS256'])
class SigningCertsTests(TestCase):

    def setUp(self):
        cache.delete(CERTS_CACHE_KEY)

    def tearDown(self):
        cache.delete(CERTS_CACHE_KEY)

    @patch('accounts.identity.requests.get', side_effect=requests.ConnectionError('offline'))
    @patch('accounts.identity.jwt.get_unverified_header', return_value={'kid': 'k1', 'alg': 'RS256'})
    def test_cert_fetch_failure_is_unauthenticated(self, mock_header, mock_get):
        with self.assertRaises(Unauthenticated):
            verify_bearer_token('header.payload.signature')

    @patch('accounts.identity.requests.get')
    @patch('accounts.identity.jwt.get_unverified_header', return_value={'kid': 'unknown', 'alg': 'RS256'})
    def test_unknown_key_id_is_unauthenticated(self, mock_header, mock_get):
        mock_get.return_value = MagicMock(status_code=200)
        mock_get.return_value.json.return_value = {'k1': 'cert'}

        with self.assertRaises(Unauthenticated):
            verify_bearer_token('header.payload.signature')

        # Second call is served from the cache.
        with self.assertRaises(Unauthenticated):
            verify_bearer_token('header.payload.signature')
        self.assertEqual(mock_get.call_count, 1)


class ResolveProfileTests(TestCase):

    def test_first_verification_creates_user_and_profile(self):
        profile = resolve_profile(IdentityClaims('sub-9', 'nine@example.com', 'nine@example.com'))

        self.assertEqual(profile.user.username, 'sub-9')
        self.assertEqual(profile.user.email, 'nine@example.com')
        self.assertEqual(profile.external_id, 'sub-9')
        self.assertEqual(profile.display_name, 'nine')

    def test_repeat_verification_reuses_profile(self):
        first = resolve_profile(IdentityClaims('sub-9', 'nine@example.com', 'Nine'))
        second = resolve_profile(IdentityClaims('sub-9', 'nine@example.com', 'Nine'))

        self.assertEqual(first.pk, second.pk)
        self.assertEqual(User.objects.filter(username='sub-9').count(), 1)


class AuthEndpointTests(TestCase):

    def setUp(self):
        self.client = Client()

    def test_verify_creates_profile(self):
        response = self.client.post('/api/auth/verify/', **auth_headers(subject_id='new-user', email='new@example.com', name='Newbie'))

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['message'], 'Authentication successful')
        self.assertEqual(data['user']['externalId'], 'new-user')
        self.assertEqual(data['user']['displayName'], 'Newbie')
        self.assertEqual(data['user']['level'], 1)

    def test_verify_updates_changed_display_name(self):
        self.client.post('/api/auth/verify/', **auth_headers(subject_id='u', name='Old Name'))
        response = self.client.post('/api/auth/verify/', **auth_headers(subject_id='u', name='New Name'))

        self.assertEqual(response.json()['user']['displayName'], 'New Name')

    def test_missing_token_is_401_envelope(self):
        response = self.client.post('/api/auth/verify/')

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()['status'], 401)
        self.assertIn('error', response.json())

    def test_expired_token_is_401(self):
        response = self.client.get('/api/auth/status/', HTTP_AUTHORIZATION=f'Bearer {make_token(expires_in=-10)}')
        self.assertEqual(response.status_code, 401)

    def test_status_reports_identity(self):
        response = self.client.get('/api/auth/status/', **auth_headers(subject_id='who', email='who@example.com'))

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()['authenticated'])
        self.assertEqual(response.json()['user']['subjectId'], 'who')

    def test_unknown_api_route_is_json_404(self):
        response = self.client.get('/api/nope/')

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['error'], 'Route not found')


class ProfileEndpointTests(TestCase):

    def setUp(self):
        self.client = Client()
        self.headers = auth_headers(subject_id='p1', email='p1@example.com', name='Pat')
        self.client.post('/api/auth/verify/', **self.headers)
        self.profile = UserProfile.objects.get(external_id='p1')

    def test_get_profile_includes_progress_and_milestone(self):
        self.profile.total_points = 750
        self.profile.current_streak = 3
        self.profile.longest_streak = 3
        self.profile.recompute_level()
        self.profile.save()

        response = self.client.get('/api/users/profile/', **self.headers)

        self.assertEqual(response.status_code, 200)
        user = response.json()['user']
        self.assertEqual(user['level'], 2)
        self.assertEqual(user['levelProgress'], 50)
        self.assertEqual(user['nextMilestone']['days'], 7)
        self.assertEqual(user['nextMilestone']['daysRemaining'], 4)

    def test_put_profile_updates_display_name(self):
        response = self.client.put(
            '/api/users/profile/',
            data='{"displayName": "Patricia"}',
            content_type='application/json',
            **self.headers,
        )

        self.assertEqual(response.status_code, 200)
        self.profile.refresh_from_db()
        self.assertEqual(self.profile.display_name, 'Patricia')

    def test_put_profile_rejects_blank_name(self):
        response = self.client.put(
            '/api/users/profile/',
            data='{"displayName": "   "}',
            content_type='application/json',
            **self.headers,
        )
        self.assertEqual(response.status_code, 400)

    def test_put_profile_rejects_malformed_json(self):
        response = self.client.put('/api/users/profile/', data='{not json', content_type='application/json', **self.headers)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Invalid JSON')

    def test_stats(self):
        response = self.client.get('/api/users/stats/', **self.headers)

        self.assertEqual(response.status_code, 200)
        stats = response.json()['stats']
        self.assertEqual(stats['totalCheckIns'], 0)
        self.assertEqual(stats['verifiedCheckIns'], 0)
        self.assertEqual(stats['daysSinceJoining'], 0)
        self.assertIsNone(stats['lastCheckInDate'])

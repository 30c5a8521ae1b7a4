"""
Tests for the shared core helpers: calendar days, the model client,
request parsing, rate limiting and the JSON error envelope.
"""
from datetime import datetime
from unittest.mock import patch, MagicMock

import pytz
import requests
from django.conf import settings
from django.core.cache import cache
from django.test import TestCase, Client, RequestFactory, override_settings

from .ai import AIServiceError, call_model, extract_json
from .dates import (
    day_end,
    day_start,
    days_between,
    days_until_milestone,
    format_date,
    is_consecutive_day,
    is_same_day,
    local_date,
)
from .errors import Conflict, InvalidInput
from .http import int_param, json_body, page_params
from .ratelimit import hit
from .testing import auth_headers

NEW_YORK = pytz.timezone('America/New_York')


@override_settings(TIME_ZONE='America/New_York')
class DatesTests(TestCase):

    def test_day_bounds_use_server_timezone(self):
        # 03:00 UTC on the 10th is still the evening of the 9th in New York.
        t = pytz.UTC.localize(datetime(2025, 3, 10, 3, 0))

        self.assertEqual(local_date(t).isoformat(), '2025-03-09')
        self.assertEqual(day_start(t), NEW_YORK.localize(datetime(2025, 3, 9)))
        self.assertEqual(day_end(t).date().isoformat(), '2025-03-09')
        self.assertEqual(format_date(t), '2025-03-09')

    def test_consecutive_across_dst_change(self):
        before = NEW_YORK.localize(datetime(2025, 3, 8, 23, 30))
        after = NEW_YORK.localize(datetime(2025, 3, 9, 23, 30))

        self.assertTrue(is_consecutive_day(before, after))
        self.assertFalse(is_consecutive_day(after, before))
        self.assertEqual(days_between(after, before), 1)

    def test_same_day(self):
        morning = NEW_YORK.localize(datetime(2025, 6, 1, 0, 5))
        night = NEW_YORK.localize(datetime(2025, 6, 1, 23, 55))

        self.assertTrue(is_same_day(morning, night))
        self.assertFalse(is_consecutive_day(morning, night))

    def test_days_until_milestone(self):
        self.assertEqual(days_until_milestone(0), 7)
        self.assertEqual(days_until_milestone(7), 23)
        self.assertEqual(days_until_milestone(400), 330)


@override_settings(ANTHROPIC_API_KEY='test-key')
class CallModelTests(TestCase):

    def _response(self, status_code=200, payload=None):
        response = MagicMock(status_code=status_code, text='error body')
        response.json.return_value = payload or {}
        return response

    @patch('core.ai.requests.post')
    def test_returns_joined_text_blocks(self, mock_post):
        mock_post.return_value = self._response(payload={
            'content': [{'type': 'text', 'text': 'YES\n'}, {'type': 'text', 'text': 'Bed is made.'}],
        })

        reply = call_model([{'type': 'text', 'text': 'hi'}], system='be brief', max_tokens=50)

        self.assertEqual(reply, 'YES\nBed is made.')
        payload = mock_post.call_args.kwargs['json']
        self.assertEqual(payload['system'], 'be brief')
        self.assertEqual(payload['max_tokens'], 50)
        self.assertEqual(mock_post.call_args.kwargs['headers']['x-api-key'], 'test-key')

    @patch('core.ai.requests.post')
    def test_http_error_raises(self, mock_post):
        mock_post.return_value = self._response(status_code=529)
        with self.assertRaises(AIServiceError):
            call_model([{'type': 'text', 'text': 'hi'}])

    @patch('core.ai.requests.post', side_effect=requests.Timeout('slow'))
    def test_transport_error_raises(self, mock_post):
        with self.assertRaises(AIServiceError):
            call_model([{'type': 'text', 'text': 'hi'}])

    @patch('core.ai.requests.post')
    def test_empty_reply_raises(self, mock_post):
        mock_post.return_value = self._response(payload={'content': []})
        with self.assertRaises(AIServiceError):
            call_model([{'type': 'text', 'text': 'hi'}])

    @override_settings(ANTHROPIC_API_KEY=None)
    @patch('core.ai.requests.post')
    def test_missing_key_never_calls_out(self, mock_post):
        with self.assertRaises(AIServiceError):
            call_model([{'type': 'text', 'text': 'hi'}])
        mock_post.assert_not_called()


class ExtractJsonTests(TestCase):

    def test_fenced_json(self):
        self.assertEqual(extract_json('Here:\n```json\n{"a": 1}\n```'), {'a': 1})

    def test_embedded_json(self):
        self.assertEqual(extract_json('Sure! {"a": {"b": 2}} hope that helps'), {'a': {'b': 2}})

    def test_garbage_raises(self):
        with self.assertRaises(AIServiceError):
            extract_json('no json here')
        with self.assertRaises(AIServiceError):
            extract_json('[1, 2]')


class RequestParsingTests(TestCase):

    def setUp(self):
        self.factory = RequestFactory()

    def test_json_body(self):
        request = self.factory.post('/api/x/', data='{"a": 1}', content_type='application/json')
        self.assertEqual(json_body(request), {'a': 1})

    def test_json_body_rejects_malformed_and_non_objects(self):
        with self.assertRaises(InvalidInput):
            json_body(self.factory.post('/api/x/', data='{oops', content_type='application/json'))
        with self.assertRaises(InvalidInput):
            json_body(self.factory.post('/api/x/', data='[1]', content_type='application/json'))

    def test_int_param(self):
        self.assertEqual(int_param('5', 'limit'), 5)
        self.assertEqual(int_param(None, 'limit', default=3), 3)
        with self.assertRaises(InvalidInput):
            int_param('five', 'limit')
        with self.assertRaises(InvalidInput):
            int_param('0', 'limit')

    @override_settings(CHECKIN_MAX_PAGE_SIZE=100)
    def test_page_params_caps_limit(self):
        request = self.factory.get('/api/x/', {'page': '2', 'limit': '500'})
        self.assertEqual(page_params(request), (2, 100))


class ErrorEnvelopeTests(TestCase):

    def test_to_dict_merges_extra(self):
        error = Conflict('Already done', extra={'checkIn': {'id': 1}})
        self.assertEqual(error.to_dict(), {'error': 'Already done', 'status': 409, 'checkIn': {'id': 1}})

    def test_default_message(self):
        self.assertEqual(InvalidInput().to_dict(), {'error': 'Invalid input', 'status': 400})

    def test_index_banner(self):
        response = Client().get('/')
        self.assertEqual(response.json()['status'], 'running')


class RateLimitTests(TestCase):

    def setUp(self):
        cache.clear()

    def tearDown(self):
        cache.clear()

    def test_hit_counts_within_window(self):
        self.assertTrue(hit('unit', 'caller', 2, 60))
        self.assertTrue(hit('unit', 'caller', 2, 60))
        self.assertFalse(hit('unit', 'caller', 2, 60))
        self.assertTrue(hit('unit', 'other-caller', 2, 60))

    @patch('core.ratelimit.time.time')
    def test_window_opens_at_first_request(self, mock_time):
        # 1030 falls in a new minute on the clock but inside the caller's window.
        for now, allowed in [(1000, True), (1001, True), (1030, False), (1059, False), (1061, True)]:
            mock_time.return_value = now
            self.assertEqual(hit('unit', 'caller', 2, 60), allowed, f'at {now}')

    @override_settings(RATE_LIMIT_ENABLED=True, RATE_LIMIT_API_REQUESTS=2)
    def test_view_returns_429_when_exhausted(self):
        client = Client()
        headers = auth_headers(subject_id='busy-user')

        statuses = [client.get('/api/users/profile/', **headers).status_code for _ in range(3)]

        self.assertEqual(statuses, [200, 200, 429])
        response = client.get('/api/users/profile/', **headers)
        self.assertEqual(response.json()['error'], 'Too many requests, please try again later.')


class QueueSettingsTests(TestCase):

    def test_retry_outlasts_task_timeout(self):
        self.assertLess(settings.Q_CLUSTER['timeout'], settings.Q_CLUSTER['retry'])

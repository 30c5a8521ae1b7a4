from unittest.mock import patch

from django.db import OperationalError
from django.test import TestCase, Client


class HealthCheckTests(TestCase):

    def setUp(self):
        self.client = Client()

    def test_healthy_without_auth(self):
        response = self.client.get('/api/health/')
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['status'], 'healthy')
        self.assertEqual(data['database'], 'connected')
        self.assertIn('timestamp', data)

    @patch('health_check.views.connection.ensure_connection', side_effect=OperationalError('db down'))
    def test_unhealthy_when_database_unreachable(self, mock_connect):
        response = self.client.get('/api/health/')
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()['status'], 'unhealthy')

from unittest.mock import patch

from django.test import TestCase
from rest_framework.test import APIClient


class HealthCheckTests(TestCase):
	def setUp(self):
		self.api = APIClient()

	def test_all_services_healthy(self):
		response = self.api.get('/health/')

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['status'], 'healthy')
		self.assertEqual(
			response.data['services'],
			{'database': 'healthy', 'channels': 'healthy', 'celery': 'healthy'},
		)

	def test_missing_channel_layer_is_unavailable(self):
		with patch('moving_backend.views.get_channel_layer', return_value=None):
			response = self.api.get('/health/')

		self.assertEqual(response.status_code, 503)
		self.assertEqual(response.data['status'], 'unhealthy')
		self.assertEqual(response.data['services']['channels'], 'unhealthy: no channel layer')
		self.assertEqual(response.data['services']['database'], 'healthy')

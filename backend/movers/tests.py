from datetime import timedelta

from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from movers import services
from moves.models import MoveRequest, MoveRequestStatus
from moves.tests.helpers import PICKUP, make_client, make_move, make_mover, make_request
from services.exceptions import ForbiddenError, ValidationError


class MoverServiceTests(TestCase):
	def setUp(self):
		self.mover = make_mover('mover_a', online=False)
		self.profile = self.mover.mover_profile

	def test_set_online(self):
		services.set_mover_online(self.profile, True)

		self.profile.refresh_from_db()
		self.assertTrue(self.profile.is_online)

	def test_update_location(self):
		before = self.profile.last_location_update

		services.update_mover_location(self.profile, 28.7, 77.1)

		self.profile.refresh_from_db()
		self.assertAlmostEqual(float(self.profile.current_latitude), 28.7)
		self.assertGreaterEqual(self.profile.last_location_update, before)

	def test_update_location_out_of_range(self):
		with self.assertRaises(ValidationError):
			services.update_mover_location(self.profile, 100, 77.1)

	def test_client_has_no_mover_profile(self):
		with self.assertRaises(ForbiddenError):
			services.get_mover_profile(make_client())


class OpenRequestsTests(TestCase):
	def setUp(self):
		self.client_user = make_client()
		self.mover = make_mover('mover_a')
		self.profile = self.mover.mover_profile

	def test_lists_live_requests_newest_first_and_expires_stale(self):
		older = make_request(make_move(self.client_user), self.mover, seconds_left=30)
		newer = make_request(make_move(self.client_user), self.mover, seconds_left=50)
		stale = make_request(make_move(self.client_user), self.mover, seconds_left=-1)
		make_request(make_move(self.client_user), self.mover, status=MoveRequestStatus.DECLINED)
		make_request(make_move(self.client_user), make_mover('mover_b'))

		offers = services.list_open_requests(self.profile)

		self.assertEqual([r.id for r in offers], [newer.id, older.id])
		stale.refresh_from_db()
		self.assertEqual(stale.status, MoveRequestStatus.EXPIRED)

	@override_settings(OPEN_REQUESTS_PAGE_SIZE=2)
	def test_page_size(self):
		for _ in range(3):
			make_request(make_move(self.client_user), self.mover)

		self.assertEqual(len(services.list_open_requests(self.profile)), 2)


class NearbyMoversTests(TestCase):
	def test_nearby_movers_closest_first(self):
		far = make_mover('far', km_north=3.0)
		near = make_mover('near', km_north=1.0)
		make_mover('offline', km_north=0.5, online=False)

		nearby = services.find_nearby_movers(*PICKUP, radius_km=5)

		self.assertEqual([(p.id, d) for p, d in nearby], [
			(near.mover_profile.id, 1.0),
			(far.mover_profile.id, 3.0),
		])

	def test_invalid_point(self):
		with self.assertRaises(ValidationError):
			services.find_nearby_movers(91, 0)


class MoverApiTests(TestCase):
	def setUp(self):
		self.api = APIClient()
		self.client_user = make_client()
		self.mover = make_mover('mover_a', online=False)

	def test_go_online_and_report_location(self):
		self.api.force_authenticate(user=self.mover)

		response = self.api.put('/api/movers/status/', {'is_online': True}, format='json')
		self.assertEqual(response.status_code, 200)
		self.assertTrue(response.data['is_online'])

		response = self.api.post('/api/movers/location/', {'latitude': '28.62', 'longitude': '77.21'}, format='json')
		self.assertEqual(response.status_code, 200)

		response = self.api.get('/api/movers/profile/')
		self.assertEqual(response.data['user']['username'], 'mover_a')
		self.assertTrue(response.data['is_online'])
		self.assertEqual(response.data['current_latitude'], '28.620000')

	def test_offline_mover_gets_no_requests(self):
		make_request(make_move(self.client_user), self.mover)
		self.api.force_authenticate(user=self.mover)

		response = self.api.get('/api/movers/requests/')

		self.assertEqual(response.data['count'], 0)

	def test_decline_endpoint(self):
		request = make_request(make_move(self.client_user), self.mover)
		self.api.force_authenticate(user=self.mover)

		response = self.api.post(f'/api/movers/requests/{request.id}/decline/')

		self.assertEqual(response.status_code, 200)
		self.assertEqual(MoveRequest.objects.get(id=request.id).status, MoveRequestStatus.DECLINED)

	def test_clients_cannot_use_mover_endpoints(self):
		self.api.force_authenticate(user=self.client_user)

		self.assertEqual(self.api.get('/api/movers/profile/').status_code, 403)
		self.assertEqual(self.api.get('/api/movers/requests/').status_code, 403)

	def test_nearby_endpoint_for_clients(self):
		make_mover('near', km_north=1.0)
		self.api.force_authenticate(user=self.client_user)

		response = self.api.get('/api/movers/nearby/', {'lat': PICKUP[0], 'lng': PICKUP[1], 'radius_km': 5})

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['count'], 1)
		self.assertEqual(response.data['movers'][0]['username'], 'near')
		self.assertEqual(response.data['movers'][0]['distance_km'], 1.0)

	def test_no_current_move(self):
		self.api.force_authenticate(user=self.mover)

		response = self.api.get('/api/movers/current-move/')

		self.assertEqual(response.status_code, 404)

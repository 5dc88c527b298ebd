from datetime import timedelta
from unittest.mock import patch

from django.db import DatabaseError
from django.db.models import QuerySet
from django.test import TestCase, override_settings
from django.utils import timezone

from common.utils import Coordinate
from moves.models import Move, MoveRequest, MoveRequestStatus, MoveStatus
from services.exceptions import (
	ConflictError,
	DependencyError,
	ForbiddenError,
	NotFoundError,
	ValidationError,
)
from services.matching import OfferSet, broadcast, broadcast_move, find_candidates

from .helpers import PICKUP, make_client, make_move, make_mover


class FindCandidatesTests(TestCase):
	def setUp(self):
		self.near = make_mover('near', km_north=0.5)
		self.mid = make_mover('mid', km_north=2.0)
		self.edge = make_mover('edge', km_north=5.0)
		self.far = make_mover('far', km_north=30.0)
		self.offline = make_mover('offline', km_north=1.0, online=False)
		self.unverified = make_mover('unverified', km_north=1.0, verified=False)
		self.nowhere = make_mover('nowhere', position=False)
		self.pickup = Coordinate(*PICKUP)

	def test_ranked_closest_first_within_radius(self):
		candidates = find_candidates(self.pickup)

		ids = [c.mover_profile_id for c in candidates]
		self.assertEqual(ids, [
			self.near.mover_profile.id,
			self.mid.mover_profile.id,
			self.edge.mover_profile.id,
		])
		distances = [c.distance_km for c in candidates]
		self.assertEqual(distances, sorted(distances))
		self.assertTrue(all(d <= 15 for d in distances))

	def test_display_distance_is_rounded(self):
		near = find_candidates(self.pickup)[0]
		self.assertAlmostEqual(near.distance_km, 0.5, places=2)
		self.assertEqual(near.display_distance_km, 0.5)

	def test_radius_and_max_results(self):
		self.assertEqual(len(find_candidates(self.pickup, radius_km=1)), 1)
		self.assertEqual(len(find_candidates(self.pickup, max_results=2)), 2)
		self.assertEqual(len(find_candidates(self.pickup, radius_km=50)), 4)

	def test_ties_broken_by_profile_id(self):
		twin = make_mover('twin', km_north=0.5)

		ids = [c.mover_profile_id for c in find_candidates(self.pickup, radius_km=1)]

		self.assertEqual(ids, sorted([self.near.mover_profile.id, twin.mover_profile.id]))

	def test_nobody_in_range_is_empty(self):
		self.assertEqual(find_candidates(Coordinate(0.0, 0.0)), [])

	def test_invalid_arguments(self):
		with self.assertRaises(ValidationError):
			find_candidates(self.pickup, max_results=0)
		with self.assertRaises(ValidationError):
			find_candidates(self.pickup, radius_km=0)
		with self.assertRaises(ValidationError):
			find_candidates(Coordinate(95.0, 0.0))

	@override_settings(MOVER_SEARCH_RADIUS_KM=3)
	def test_radius_setting(self):
		self.assertEqual(len(find_candidates(self.pickup)), 2)


class BroadcastTests(TestCase):
	def setUp(self):
		self.client_user = make_client()
		self.movers = [
			make_mover('mover_a', km_north=0.5),
			make_mover('mover_b', km_north=2.0),
			make_mover('mover_c', km_north=5.0),
		]
		make_mover('mover_far', km_north=30.0)
		self.move = make_move(self.client_user, status=MoveStatus.PAID)

	def test_broadcast_creates_one_round(self):
		before = timezone.now()
		offers = broadcast(self.move)

		self.assertEqual(len(offers), 3)
		self.assertEqual(
			[r.mover_profile_id for r in offers],
			[m.mover_profile.id for m in self.movers],
		)
		self.assertEqual({r.dispatch_round for r in offers}, {offers.dispatch_round})
		for request in offers:
			self.assertEqual(request.status, MoveRequestStatus.PENDING)
			self.assertGreaterEqual(request.sent_at, before)
			self.assertEqual(request.expires_at - request.sent_at, timedelta(seconds=60))

		self.assertEqual(MoveRequest.objects.filter(move=self.move).count(), 3)
		self.move.refresh_from_db()
		self.assertEqual(self.move.status, MoveStatus.PAID)
		self.assertIsNone(self.move.mover_profile_id)

	def test_no_movers_in_range_is_empty_round(self):
		move = make_move(self.client_user, pickup=(0.0, 0.0))

		offers = broadcast(move)

		self.assertTrue(offers.is_empty)
		self.assertIsNone(offers.expires_at)
		self.assertFalse(MoveRequest.objects.filter(move=move).exists())
		move.refresh_from_db()
		self.assertEqual(move.status, MoveStatus.PAID)

	def test_missing_pickup_is_validation_error(self):
		move = make_move(self.client_user, pickup=None)

		with self.assertRaises(ValidationError):
			broadcast(move)

	def test_live_round_blocks_rebroadcast(self):
		broadcast(self.move)

		with self.assertRaises(ConflictError):
			broadcast(self.move)

		self.assertEqual(MoveRequest.objects.filter(move=self.move).count(), 3)

	def test_rebroadcast_after_round_expired(self):
		first = broadcast(self.move)
		MoveRequest.objects.filter(move=self.move).update(
			expires_at=timezone.now() - timedelta(seconds=1)
		)

		second = broadcast(self.move)

		self.assertNotEqual(first.dispatch_round, second.dispatch_round)
		self.assertEqual(
			MoveRequest.objects.filter(move=self.move, status=MoveRequestStatus.EXPIRED).count(), 3
		)
		self.assertEqual(
			MoveRequest.objects.filter(move=self.move, status=MoveRequestStatus.PENDING).count(), 3
		)

	def test_rebroadcast_after_all_declined(self):
		broadcast(self.move)
		MoveRequest.objects.filter(move=self.move).update(status=MoveRequestStatus.DECLINED)

		self.assertEqual(len(broadcast(self.move)), 3)

	def test_assigned_or_finished_move_is_not_dispatched(self):
		assigned = make_move(
			self.client_user,
			status=MoveStatus.MOVER_ACCEPTED,
			mover_profile=self.movers[0].mover_profile,
		)
		cancelled = make_move(self.client_user, status=MoveStatus.CANCELLED_BY_CLIENT)

		for move in (assigned, cancelled):
			with self.assertRaises(ConflictError):
				broadcast(move)

	def test_unpaid_move_is_not_dispatched(self):
		move = make_move(self.client_user, status=MoveStatus.DRAFT)

		for status in (MoveStatus.DRAFT, MoveStatus.PENDING_PAYMENT):
			Move.objects.filter(pk=move.pk).update(status=status)
			with self.assertRaises(ConflictError) as ctx:
				broadcast(move)
			self.assertEqual(ctx.exception.data['status'], status)

		self.assertFalse(MoveRequest.objects.filter(move=move).exists())

		# Once paid, the first broadcast goes out right away
		Move.objects.filter(pk=move.pk).update(status=MoveStatus.PAID)
		self.assertEqual(len(broadcast(move)), 3)

	def test_checks_run_against_stored_move(self):
		stale = Move.objects.get(pk=self.move.pk)
		Move.objects.filter(pk=self.move.pk).update(
			status=MoveStatus.CANCELLED_BY_CLIENT,
		)

		with self.assertRaises(ConflictError):
			broadcast(stale)

		self.assertFalse(MoveRequest.objects.filter(move=self.move).exists())

	def test_move_row_locked_during_round(self):
		with patch.object(
			QuerySet, 'select_for_update', autospec=True, side_effect=QuerySet.select_for_update
		) as lock:
			broadcast(self.move)

		lock.assert_called_once()
		self.assertEqual(lock.call_args[0][0].model, Move)

	@override_settings(MOVE_REQUEST_TIMEOUT_SECONDS=15, MAX_MOVERS_PER_BROADCAST=2)
	def test_timeout_and_fanout_settings(self):
		offers = broadcast(self.move)

		self.assertEqual(len(offers), 2)
		request = offers.requests[0]
		self.assertEqual(request.expires_at - request.sent_at, timedelta(seconds=15))

	def test_store_failure_creates_nothing(self):
		real_create = MoveRequest.objects.create
		calls = []

		def flaky_create(**kwargs):
			calls.append(kwargs)
			if len(calls) == 2:
				raise DatabaseError('connection lost')
			return real_create(**kwargs)

		with patch(
			'services.matching.offer_dispatch.MoveRequest.objects.create',
			side_effect=flaky_create,
		):
			with self.assertRaises(DependencyError):
				broadcast(self.move)

		self.assertFalse(MoveRequest.objects.filter(move=self.move).exists())


class BroadcastMoveTests(TestCase):
	def setUp(self):
		self.client_user = make_client()
		self.other = make_client('other_client')
		make_mover('mover_a', km_north=0.5)
		self.move = make_move(self.client_user)

	def test_only_owner_can_broadcast(self):
		with self.assertRaises(ForbiddenError):
			broadcast_move(self.move.id, self.other)

		self.assertEqual(len(broadcast_move(self.move.id, self.client_user)), 1)

	def test_unknown_move(self):
		with self.assertRaises(NotFoundError):
			broadcast_move('not-a-uuid', self.client_user)


class OfferSetTests(TestCase):
	def setUp(self):
		self.client_user = make_client()
		self.mover_a = make_mover('mover_a', km_north=0.5)
		self.mover_b = make_mover('mover_b', km_north=2.0)
		self.move = make_move(self.client_user)

	def test_latest_round_and_settlement(self):
		offers = broadcast(self.move)

		latest = OfferSet.latest(self.move.id)
		self.assertEqual(latest.dispatch_round, offers.dispatch_round)
		self.assertEqual(len(latest), 2)
		self.assertFalse(latest.is_settled())

		later = timezone.now() + timedelta(seconds=61)
		self.assertTrue(latest.is_expired(later))
		self.assertEqual(latest.live_requests(later), [])
		self.assertTrue(latest.is_settled(later))

		MoveRequest.objects.filter(id=offers.requests[0].id).update(status=MoveRequestStatus.ACCEPTED)
		latest.refresh()
		self.assertEqual(latest.accepted_request().id, offers.requests[0].id)
		self.assertTrue(latest.is_settled())

	def test_never_broadcast(self):
		latest = OfferSet.latest(self.move.id)

		self.assertTrue(latest.is_empty)
		self.assertTrue(latest.is_expired())


class BerlinPickupTests(TestCase):
	"""Pickup at Berlin Mitte, movers due north at 2.1, 9.9 and 20 km."""

	def test_only_movers_inside_radius_in_distance_order(self):
		from accounts.models import User
		from movers.models import MoverProfile, VerificationStatus
		from .helpers import KM_LAT

		pickup = Coordinate(52.52, 13.405)
		profiles = []
		for name, km in (('far', 20.0), ('mid', 9.9), ('near', 2.1)):
			user = User.objects.create_user(username=name, password='mover1234', role='mover')
			profiles.append(MoverProfile.objects.create(
				user=user,
				verification_status=VerificationStatus.VERIFIED,
				is_online=True,
				current_latitude=round(pickup.latitude + km * KM_LAT, 6),
				current_longitude=pickup.longitude,
			))
		far, mid, near = profiles

		candidates = find_candidates(pickup, max_results=10, radius_km=15)

		self.assertEqual([c.mover_profile_id for c in candidates], [near.id, mid.id])
		self.assertEqual([c.display_distance_km for c in candidates], [2.1, 9.9])

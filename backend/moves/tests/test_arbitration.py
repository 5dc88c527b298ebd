from datetime import timedelta
from unittest.mock import patch

from django.test import TestCase
from django.utils import timezone

from moves.models import Move, MoveRequest, MoveRequestStatus, MoveStatus, MoveStatusHistory
from realtime.models import Notification
from services.exceptions import (
	ConflictError,
	ForbiddenError,
	MoveNotAssignableError,
	NotFoundError,
	OfferExpiredError,
	RequestNotPendingError,
	StaleMoveError,
)
from services.matching import broadcast
from services.move_management import (
	accept,
	accept_move_request,
	decline,
	decline_move_request,
	decline_sibling_requests,
)

from .helpers import make_client, make_move, make_mover, make_request


class AcceptTests(TestCase):
	def setUp(self):
		self.client_user = make_client()
		self.mover_a = make_mover('mover_a', km_north=0.5)
		self.mover_b = make_mover('mover_b', km_north=2.0)
		self.mover_c = make_mover('mover_c', km_north=5.0)
		self.profile_a = self.mover_a.mover_profile
		self.profile_b = self.mover_b.mover_profile
		self.move = make_move(self.client_user, status=MoveStatus.PAID)
		self.offers = broadcast(self.move)
		self.request_a, self.request_b, self.request_c = self.offers.requests

	def test_accept_binds_mover_and_declines_siblings(self):
		result = accept(self.request_a.id, self.profile_a.id)

		self.assertEqual(result.as_dict(), {
			'move_id': str(self.move.id),
			'request_id': str(self.request_a.id),
		})

		self.move.refresh_from_db()
		self.assertEqual(self.move.status, MoveStatus.MOVER_ACCEPTED)
		self.assertEqual(self.move.mover_profile_id, self.profile_a.id)

		statuses = dict(MoveRequest.objects.filter(move=self.move).values_list('id', 'status'))
		self.assertEqual(statuses, {
			self.request_a.id: MoveRequestStatus.ACCEPTED,
			self.request_b.id: MoveRequestStatus.DECLINED,
			self.request_c.id: MoveRequestStatus.DECLINED,
		})

		history = list(
			MoveStatusHistory.objects.filter(move=self.move).values_list('from_status', 'to_status', 'changed_by')
		)
		self.assertEqual(history, [
			('paid', 'mover_assigned', str(self.mover_a.id)),
			('mover_assigned', 'mover_accepted', str(self.mover_a.id)),
		])

	def test_client_is_notified(self):
		accept(self.request_a.id, self.profile_a.id)

		notification = Notification.objects.get(user=self.client_user)
		self.assertEqual(notification.title, 'Mover Accepted')
		self.assertEqual(notification.kind, 'system')
		self.assertEqual(notification.data['move_id'], str(self.move.id))

	def test_second_accept_loses(self):
		accept(self.request_a.id, self.profile_a.id)

		with self.assertRaises(RequestNotPendingError):
			accept(self.request_b.id, self.profile_b.id)

		self.move.refresh_from_db()
		self.assertEqual(self.move.mover_profile_id, self.profile_a.id)
		self.assertEqual(
			MoveRequest.objects.filter(move=self.move, status=MoveRequestStatus.ACCEPTED).count(), 1
		)

	def test_second_accept_loses_when_sweep_failed(self):
		with patch(
			'services.move_management.arbitration.decline_sibling_requests',
			side_effect=RuntimeError('sweep down'),
		):
			accept(self.request_a.id, self.profile_a.id)

		# Sibling still pending, but the move is already taken
		self.request_b.refresh_from_db()
		self.assertEqual(self.request_b.status, MoveRequestStatus.PENDING)

		with self.assertRaises(MoveNotAssignableError):
			accept(self.request_b.id, self.profile_b.id)

		self.request_b.refresh_from_db()
		self.assertEqual(self.request_b.status, MoveRequestStatus.PENDING)
		self.move.refresh_from_db()
		self.assertEqual(self.move.mover_profile_id, self.profile_a.id)

	def test_concurrent_accept_single_winner(self):
		# Mover B read the move before mover A's accept was written
		stale_move = Move.objects.get(pk=self.move.pk)

		with patch(
			'services.move_management.arbitration.decline_sibling_requests',
			side_effect=RuntimeError('sweep down'),
		):
			accept(self.request_a.id, self.profile_a.id)

		with patch(
			'services.move_management.arbitration.Move.objects.get',
			return_value=stale_move,
		):
			with self.assertRaises(StaleMoveError):
				accept(self.request_b.id, self.profile_b.id)

		# B's request acceptance was rolled back with the failed move write
		self.request_b.refresh_from_db()
		self.assertEqual(self.request_b.status, MoveRequestStatus.PENDING)
		self.assertIsNone(self.request_b.responded_at)

		self.move.refresh_from_db()
		self.assertEqual(self.move.status, MoveStatus.MOVER_ACCEPTED)
		self.assertEqual(self.move.mover_profile_id, self.profile_a.id)
		self.assertEqual(
			MoveRequest.objects.filter(move=self.move, status=MoveRequestStatus.ACCEPTED).count(), 1
		)
		self.assertEqual(MoveStatusHistory.objects.filter(move=self.move).count(), 2)

	def test_reaccept_fails_without_side_effects(self):
		accept(self.request_a.id, self.profile_a.id)
		history_count = MoveStatusHistory.objects.filter(move=self.move).count()

		with self.assertRaises(RequestNotPendingError) as ctx:
			accept(self.request_a.id, self.profile_a.id)

		self.assertEqual(ctx.exception.message, 'Request is no longer pending')
		self.assertEqual(MoveStatusHistory.objects.filter(move=self.move).count(), history_count)
		self.move.refresh_from_db()
		self.assertEqual(self.move.status, MoveStatus.MOVER_ACCEPTED)

	def test_sweep_failure_does_not_fail_accept(self):
		with patch(
			'services.move_management.arbitration.decline_sibling_requests',
			side_effect=RuntimeError('sweep down'),
		):
			result = accept(self.request_a.id, self.profile_a.id)

		self.assertEqual(result.siblings_declined, 0)
		self.move.refresh_from_db()
		self.assertEqual(self.move.status, MoveStatus.MOVER_ACCEPTED)

	def test_notification_failure_does_not_fail_accept(self):
		with patch('realtime.notifications.deliver_notification_task') as task:
			task.delay.side_effect = RuntimeError('broker down')
			accept(self.request_a.id, self.profile_a.id)
		task.delay.assert_called_once()

		self.move.refresh_from_db()
		self.assertEqual(self.move.status, MoveStatus.MOVER_ACCEPTED)
		self.assertFalse(Notification.objects.exists())

	def test_expired_request(self):
		MoveRequest.objects.filter(id=self.request_a.id).update(
			expires_at=timezone.now() - timedelta(seconds=1)
		)

		with self.assertRaises(OfferExpiredError) as ctx:
			accept(self.request_a.id, self.profile_a.id)

		self.assertIsInstance(ctx.exception, ConflictError)
		self.assertEqual(ctx.exception.message, 'Request has expired')
		self.request_a.refresh_from_db()
		self.assertEqual(self.request_a.status, MoveRequestStatus.EXPIRED)
		self.move.refresh_from_db()
		self.assertEqual(self.move.status, MoveStatus.PAID)
		self.assertIsNone(self.move.mover_profile_id)

	def test_foreign_request(self):
		with self.assertRaises(ForbiddenError) as ctx:
			accept(self.request_b.id, self.profile_a.id)

		self.assertEqual(ctx.exception.message, 'Request does not belong to this mover')

	def test_unknown_request(self):
		with self.assertRaises(NotFoundError):
			accept('00000000-0000-0000-0000-000000000000', self.profile_a.id)

	def test_cancelled_move_not_assignable(self):
		Move.objects.filter(pk=self.move.pk).update(status=MoveStatus.CANCELLED_BY_CLIENT)

		with self.assertRaises(MoveNotAssignableError):
			accept(self.request_a.id, self.profile_a.id)

		self.request_a.refresh_from_db()
		self.assertEqual(self.request_a.status, MoveRequestStatus.PENDING)

	def test_accept_on_assigned_move_for_same_mover(self):
		Move.objects.filter(pk=self.move.pk).update(
			status=MoveStatus.MOVER_ASSIGNED, mover_profile=self.profile_a
		)

		accept(self.request_a.id, self.profile_a.id)

		self.move.refresh_from_db()
		self.assertEqual(self.move.status, MoveStatus.MOVER_ACCEPTED)
		self.assertEqual(
			list(MoveStatusHistory.objects.filter(move=self.move).values_list('to_status', flat=True)),
			['mover_accepted'],
		)


class DeclineTests(TestCase):
	def setUp(self):
		self.client_user = make_client()
		self.mover_a = make_mover('mover_a', km_north=0.5)
		self.mover_b = make_mover('mover_b', km_north=2.0)
		self.move = make_move(self.client_user)
		self.request_a = make_request(self.move, self.mover_a)
		self.request_b = make_request(self.move, self.mover_b)

	def test_decline_leaves_move_open(self):
		decline(self.request_a.id, self.mover_a.mover_profile.id)

		self.request_a.refresh_from_db()
		self.assertEqual(self.request_a.status, MoveRequestStatus.DECLINED)
		self.assertIsNotNone(self.request_a.responded_at)
		self.move.refresh_from_db()
		self.assertEqual(self.move.status, MoveStatus.PAID)

		# The other mover can still take it
		accept(self.request_b.id, self.mover_b.mover_profile.id)
		self.move.refresh_from_db()
		self.assertEqual(self.move.mover_profile_id, self.mover_b.mover_profile.id)

	def test_decline_twice(self):
		decline(self.request_a.id, self.mover_a.mover_profile.id)

		with self.assertRaises(RequestNotPendingError):
			decline(self.request_a.id, self.mover_a.mover_profile.id)

	def test_decline_expired(self):
		expired = make_request(self.move, make_mover('late'), seconds_left=-5)

		with self.assertRaises(OfferExpiredError):
			decline(expired.id, expired.mover_profile_id)

		expired.refresh_from_db()
		self.assertEqual(expired.status, MoveRequestStatus.EXPIRED)

	def test_decline_foreign_request(self):
		with self.assertRaises(ForbiddenError):
			decline(self.request_b.id, self.mover_a.mover_profile.id)


class SiblingSweepTests(TestCase):
	def test_past_due_siblings_expire_others_decline(self):
		client_user = make_client()
		move = make_move(client_user)
		winner = make_request(move, make_mover('winner'), status=MoveRequestStatus.ACCEPTED)
		live = make_request(move, make_mover('live'))
		stale = make_request(move, make_mover('stale'), seconds_left=-5)
		answered = make_request(move, make_mover('answered'), status=MoveRequestStatus.DECLINED)

		declined = decline_sibling_requests(move.id, winner.id)

		self.assertEqual(declined, 1)
		for request, expected in (
			(winner, MoveRequestStatus.ACCEPTED),
			(live, MoveRequestStatus.DECLINED),
			(stale, MoveRequestStatus.EXPIRED),
			(answered, MoveRequestStatus.DECLINED),
		):
			request.refresh_from_db()
			self.assertEqual(request.status, expected)


class UserWrapperTests(TestCase):
	def setUp(self):
		self.client_user = make_client()
		self.mover = make_mover('mover_a')
		self.move = make_move(self.client_user)
		self.request = make_request(self.move, self.mover)

	def test_accept_as_user(self):
		result = accept_move_request(self.request.id, self.mover)

		self.assertEqual(result.move_id, str(self.move.id))

	def test_client_cannot_answer(self):
		with self.assertRaises(ForbiddenError):
			accept_move_request(self.request.id, self.client_user)
		with self.assertRaises(ForbiddenError):
			decline_move_request(self.request.id, self.client_user)

	def test_mover_without_profile(self):
		from accounts.models import User

		bare = User.objects.create_user(username='bare', password='x', role='mover')

		with self.assertRaises(NotFoundError):
			decline_move_request(self.request.id, bare)

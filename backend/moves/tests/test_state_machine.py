from unittest.mock import patch

from django.test import TestCase

from moves.models import Move, MoveStatus, MoveStatusHistory
from services.exceptions import (
	ConflictError,
	InvalidTransitionError,
	StaleMoveError,
	ValidationError,
)
from services.move_management.state_machine import (
	TERMINAL_STATUSES,
	TRANSITIONS,
	allowed_transitions,
	can_transition,
	transition,
)

from .helpers import make_client, make_move, make_mover

S = MoveStatus

EXPECTED_TABLE = {
	'draft': ['pending_payment', 'cancelled_by_client'],
	'pending_payment': ['paid', 'cancelled_by_client'],
	'paid': ['mover_assigned', 'cancelled_by_client'],
	'mover_assigned': ['mover_accepted', 'cancelled_by_mover'],
	'mover_accepted': ['mover_en_route', 'cancelled_by_mover', 'cancelled_by_client'],
	'mover_en_route': ['mover_arrived', 'cancelled_by_mover'],
	'mover_arrived': ['loading'],
	'loading': ['in_transit'],
	'in_transit': ['arrived_destination'],
	'arrived_destination': ['unloading'],
	'unloading': ['completed'],
	'completed': ['disputed'],
	'disputed': ['completed'],
	'cancelled_by_client': [],
	'cancelled_by_mover': [],
}

# Happy path once a mover accepted
DELIVERY_PATH = [
	S.MOVER_EN_ROUTE,
	S.MOVER_ARRIVED,
	S.LOADING,
	S.IN_TRANSIT,
	S.ARRIVED_DESTINATION,
	S.UNLOADING,
	S.COMPLETED,
]


class TransitionTableTests(TestCase):
	def test_table_covers_every_status(self):
		self.assertEqual(set(TRANSITIONS), set(S.values))

	def test_table_is_exact(self):
		for from_status, expected in EXPECTED_TABLE.items():
			self.assertEqual(
				[str(s) for s in allowed_transitions(from_status)], expected, from_status
			)

	def test_every_pair_checked(self):
		for from_status in S.values:
			for to_status in S.values:
				self.assertEqual(
					can_transition(from_status, to_status),
					to_status in EXPECTED_TABLE[from_status],
					f'{from_status} -> {to_status}',
				)

	def test_terminal_statuses(self):
		self.assertEqual(set(TERMINAL_STATUSES), {'cancelled_by_client', 'cancelled_by_mover'})

	def test_unknown_status_has_no_transitions(self):
		self.assertEqual(allowed_transitions('teleported'), ())


class TransitionTests(TestCase):
	def setUp(self):
		self.client_user = make_client()
		self.mover = make_mover('mover_one')
		self.profile = self.mover.mover_profile

	def test_transition_writes_status_and_history(self):
		move = make_move(self.client_user, status=S.DRAFT)

		outcome = transition(move, S.PENDING_PAYMENT, self.client_user.id, note='checkout')

		move.refresh_from_db()
		self.assertEqual(move.status, S.PENDING_PAYMENT)
		self.assertEqual(outcome.previous_status, S.DRAFT)
		entry = MoveStatusHistory.objects.get(move=move)
		self.assertEqual(entry.from_status, 'draft')
		self.assertEqual(entry.to_status, 'pending_payment')
		self.assertEqual(entry.changed_by, str(self.client_user.id))
		self.assertEqual(entry.note, 'checkout')
		self.assertIsNone(outcome.notification)

	def test_invalid_transition_leaves_move_unchanged(self):
		move = make_move(self.client_user, status=S.DRAFT)

		with self.assertRaises(InvalidTransitionError) as ctx:
			transition(move, S.COMPLETED, self.client_user.id)

		self.assertIsInstance(ctx.exception, ConflictError)
		self.assertEqual(ctx.exception.status_code, 409)
		self.assertEqual(
			ctx.exception.message,
			'Invalid transition: draft → completed. Allowed: pending_payment, cancelled_by_client',
		)
		self.assertEqual(ctx.exception.as_dict()['allowed'], ['pending_payment', 'cancelled_by_client'])
		move.refresh_from_db()
		self.assertEqual(move.status, S.DRAFT)
		self.assertFalse(MoveStatusHistory.objects.filter(move=move).exists())

	def test_terminal_status_lists_no_allowed_transitions(self):
		move = make_move(self.client_user, status=S.CANCELLED_BY_CLIENT)

		with self.assertRaises(InvalidTransitionError) as ctx:
			transition(move, S.PAID, self.client_user.id)

		self.assertTrue(ctx.exception.message.endswith('Allowed: none'))

	def test_unknown_status_is_validation_error(self):
		move = make_move(self.client_user, status=S.DRAFT)

		with self.assertRaises(ValidationError):
			transition(move, 'teleported', self.client_user.id)

	def test_assignment_requires_mover(self):
		move = make_move(self.client_user, status=S.PAID)

		with self.assertRaises(ValidationError):
			transition(move, S.MOVER_ASSIGNED, 'system')

		move.refresh_from_db()
		self.assertEqual(move.status, S.PAID)
		self.assertIsNone(move.mover_profile_id)

	def test_assignment_binds_mover(self):
		move = make_move(self.client_user, status=S.PAID)

		transition(move, S.MOVER_ASSIGNED, 'system', mover_profile_id=self.profile.id)

		move.refresh_from_db()
		self.assertEqual(move.status, S.MOVER_ASSIGNED)
		self.assertEqual(move.mover_profile_id, self.profile.id)

	def test_stale_read_is_rejected(self):
		move = make_move(self.client_user, status=S.DRAFT)
		stale = Move.objects.get(pk=move.pk)
		transition(move, S.PENDING_PAYMENT, self.client_user.id)

		with self.assertRaises(StaleMoveError):
			transition(stale, S.CANCELLED_BY_CLIENT, self.client_user.id)

		move.refresh_from_db()
		self.assertEqual(move.status, S.PENDING_PAYMENT)
		self.assertEqual(MoveStatusHistory.objects.filter(move=move).count(), 1)

	def test_paid_and_completed_timestamps(self):
		move = make_move(self.client_user, status=S.PENDING_PAYMENT)
		transition(move, S.PAID, self.client_user.id)
		self.assertIsNotNone(move.paid_at)

		move = make_move(self.client_user, status=S.UNLOADING, mover_profile=self.profile)
		outcome = transition(move, S.COMPLETED, self.mover.id)
		move.refresh_from_db()
		self.assertIsNotNone(move.completed_at)
		self.assertEqual(outcome.notification.kind, 'move_completed')

	def test_full_run_keeps_mover_and_history_order(self):
		move = make_move(self.client_user, status=S.DRAFT)
		transition(move, S.PENDING_PAYMENT, self.client_user.id)
		transition(move, S.PAID, self.client_user.id)
		self.assertIsNone(move.mover_profile_id)

		transition(move, S.MOVER_ASSIGNED, 'system', mover_profile_id=self.profile.id)
		transition(move, S.MOVER_ACCEPTED, self.mover.id)
		for status in DELIVERY_PATH:
			outcome = transition(move, status, self.mover.id)
			self.assertEqual(move.mover_profile_id, self.profile.id)
			self.assertIsNotNone(outcome.notification)
			self.assertEqual(outcome.notification.user_id, self.client_user.id)

		transition(move, S.DISPUTED, self.client_user.id)
		transition(move, S.COMPLETED, 'staff')

		history = list(
			MoveStatusHistory.objects.filter(move=move).values_list('from_status', 'to_status')
		)
		self.assertEqual(history[0], ('draft', 'pending_payment'))
		self.assertEqual(history[-1], ('disputed', 'completed'))
		for (_, previous_to), (next_from, _) in zip(history, history[1:]):
			self.assertEqual(previous_to, next_from)

	def test_silent_and_notifying_transitions(self):
		move = make_move(self.client_user, status=S.MOVER_ACCEPTED, mover_profile=self.profile)

		outcome = transition(move, S.CANCELLED_BY_CLIENT, self.client_user.id)
		self.assertIsNone(outcome.notification)

		move = make_move(self.client_user, status=S.MOVER_ACCEPTED, mover_profile=self.profile)
		outcome = transition(move, S.CANCELLED_BY_MOVER, self.mover.id)
		self.assertEqual(outcome.notification.title, 'Move Cancelled')
		self.assertEqual(outcome.notification.kind, 'system')
		self.assertEqual(outcome.notification.data['move_id'], str(move.pk))
		self.assertEqual(outcome.notification.data['status'], 'cancelled_by_mover')

	def test_store_failure_is_dependency_error(self):
		from django.db import DatabaseError
		from services.exceptions import DependencyError

		move = make_move(self.client_user, status=S.DRAFT)
		with patch(
			'services.move_management.state_machine.MoveStatusHistory.objects.create',
			side_effect=DatabaseError('disk full'),
		):
			with self.assertRaises(DependencyError):
				transition(move, S.PENDING_PAYMENT, self.client_user.id)

		move.refresh_from_db()
		self.assertEqual(move.status, S.DRAFT)

	def test_completed_move_cannot_go_back_en_route(self):
		move = make_move(self.client_user, status=S.COMPLETED, mover_profile=self.profile)

		with self.assertRaises(InvalidTransitionError) as ctx:
			transition(move, S.MOVER_EN_ROUTE, self.mover.id)

		self.assertEqual(ctx.exception.from_status, 'completed')
		self.assertEqual(ctx.exception.to_status, 'mover_en_route')
		self.assertEqual(ctx.exception.allowed, ['disputed'])
		move.refresh_from_db()
		self.assertEqual(move.status, S.COMPLETED)

from unittest.mock import AsyncMock, patch

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.test import TestCase

from moves.models import MoveStatus
from moves.tests.helpers import make_client, make_move
from services.move_management.state_machine import build_notification_intent

from .models import Notification
from .notifications import emit_notification, send_notification
from .tasks import deliver_notification_task


class NotificationSinkTests(TestCase):
	def setUp(self):
		self.user = make_client()

	def test_send_stores_notification(self):
		queued = send_notification(self.user.id, 'system', 'Hello', 'World', {'move_id': 'x'})

		self.assertTrue(queued)
		notification = Notification.objects.get(user=self.user)
		self.assertEqual(notification.title, 'Hello')
		self.assertEqual(notification.data, {'move_id': 'x'})
		self.assertFalse(notification.is_read)

	def test_missing_user_is_ignored(self):
		self.assertFalse(send_notification(None, 'system', 'Hello'))
		self.assertFalse(Notification.objects.exists())

	def test_queue_failure_is_swallowed(self):
		with patch('realtime.notifications.deliver_notification_task') as task:
			task.delay.side_effect = ConnectionError('broker down')
			self.assertFalse(send_notification(self.user.id, 'system', 'Hello'))

	def test_emit_intent(self):
		move = make_move(self.user, status=MoveStatus.COMPLETED)
		intent = build_notification_intent(move, MoveStatus.COMPLETED)

		self.assertTrue(emit_notification(intent))
		self.assertFalse(emit_notification(None))

		notification = Notification.objects.get(user=self.user)
		self.assertEqual(notification.kind, 'move_completed')
		self.assertEqual(notification.data['status'], 'completed')


class DeliverNotificationTaskTests(TestCase):
	def setUp(self):
		self.user = make_client()

	def test_pushes_to_user_group(self):
		layer = get_channel_layer()
		channel = async_to_sync(layer.new_channel)()
		async_to_sync(layer.group_add)(f'user_{self.user.id}', channel)

		notification_id = deliver_notification_task(self.user.id, 'system', 'Mover Arrived', 'At pickup')

		message = async_to_sync(layer.receive)(channel)
		self.assertEqual(message['type'], 'notification')
		self.assertEqual(message['notification_id'], notification_id)
		self.assertEqual(message['title'], 'Mover Arrived')
		self.assertEqual(message['body'], 'At pickup')

	def test_channel_failure_keeps_stored_notification(self):
		with patch('realtime.tasks.get_channel_layer') as get_layer:
			get_layer.return_value.group_send = AsyncMock(side_effect=RuntimeError('layer down'))
			notification_id = deliver_notification_task(self.user.id, 'system', 'Hello')

		self.assertTrue(Notification.objects.filter(id=notification_id).exists())

"""WebSocket consumer delivering move notifications to clients and movers."""

import logging
from typing import Dict, Any

from channels.db import database_sync_to_async

from .base import BaseConsumer

logger = logging.getLogger(__name__)


class NotificationConsumer(BaseConsumer):
    """
    Single endpoint for both roles.

    Handles:
        - ping: keepalive
        - mark_read: flag a delivered notification as read
    """

    async def handle_message(self, msg_type: str, data: Dict[str, Any]):
        if msg_type == "ping":
            await self.send_success("pong")
        elif msg_type == "mark_read":
            await self._handle_mark_read(data)
        else:
            await self.send_error(f"Unknown message type: {msg_type}")

    async def _handle_mark_read(self, data: Dict[str, Any]):
        notification_id = data.get("notification_id")
        if notification_id is None:
            await self.send_error("mark_read requires notification_id")
            return

        updated = await self._mark_read(notification_id)
        if not updated:
            await self.send_error("Notification not found")
            return

        await self.send_success("notification_read", notification_id=notification_id)

    @database_sync_to_async
    def _mark_read(self, notification_id) -> int:
        from realtime.models import Notification

        return Notification.objects.filter(
            id=notification_id, user_id=self.user_id
        ).update(is_read=True)

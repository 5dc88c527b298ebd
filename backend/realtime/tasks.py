"""Celery tasks for notification delivery."""

import logging

from asgiref.sync import async_to_sync
from celery import shared_task
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)


@shared_task(ignore_result=True)
def deliver_notification_task(user_id: int, kind: str, title: str, body: str = "", data: dict = None):
    """
    Persist a notification and push it to the user's personal group: user_<user_id>

    Scheduled by realtime.notifications.send_notification; callers never wait
    on it, so failures here are logged and dropped.
    """
    from realtime.models import Notification

    try:
        notification = Notification.objects.create(
            user_id=user_id,
            kind=kind,
            title=title,
            body=body or "",
            data=data or {},
        )
    except Exception:
        logger.exception("Failed to store notification for user %s (%s)", user_id, title)
        return None

    channel_layer = get_channel_layer()
    if channel_layer is None:
        logger.warning("No channel layer available for notification %s", notification.id)
        return notification.id

    payload = {
        "type": "notification",
        "notification_id": notification.id,
        "kind": kind,
        "title": title,
        "body": notification.body,
        "data": notification.data,
    }

    try:
        logger.debug("WS -> user_%s: %s", user_id, payload)
        async_to_sync(channel_layer.group_send)(f"user_{user_id}", payload)
    except Exception:
        logger.exception("Failed to push notification %s to user_%s", notification.id, user_id)

    return notification.id

"""
Notification sink used by the dispatch and lifecycle services.

The core only produces notification intents; this module hands them to the
Celery worker, which stores the Notification row and pushes it over the
channel layer. Delivery is fire-and-forget: nothing here raises.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .tasks import deliver_notification_task

logger = logging.getLogger(__name__)


def send_notification(
    user_id: int | None,
    kind: str,
    title: str,
    body: str = "",
    data: Optional[Dict[str, Any]] = None,
) -> bool:
    """
    Queue a notification for one user.

    Args:
        user_id: Recipient user ID
        kind: Notification kind (system, move_completed, review)
        title: Short title
        body: Message text
        data: Structured payload (move_id, status, ...)

    Returns:
        True if the notification was queued, False otherwise
    """
    if not user_id:
        return False

    try:
        deliver_notification_task.delay(user_id, kind, title, body, data or {})
    except Exception:
        logger.exception("Failed to queue notification '%s' for user %s", title, user_id)
        return False

    return True


def emit_notification(intent) -> bool:
    """Deliver a NotificationIntent produced by the move state machine."""
    if intent is None:
        return False

    return send_notification(
        intent.user_id,
        intent.kind,
        intent.title,
        intent.body,
        dict(intent.data),
    )

"""
Realtime app: notification delivery to clients and movers.

Key Components:
    - notifications.py: notification sink used by the services layer
    - tasks.py: Celery task storing and pushing a notification
    - consumers/: WebSocket consumer joined to the user's personal group
    - middleware.py: JWT/Cookie authentication for WebSocket connections

Usage:
    from realtime.notifications import send_notification, emit_notification
"""

from django.db import connection
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework import status
from channels.layers import get_channel_layer

from moving_backend.celery import app as celery_app

NOTIFICATION_TASK = "realtime.tasks.deliver_notification_task"


def _check_database():
    connection.ensure_connection()


def _check_channels():
    if get_channel_layer() is None:
        raise RuntimeError("no channel layer")


def _check_celery():
    if NOTIFICATION_TASK not in celery_app.tasks:
        raise RuntimeError("notification task not registered")


CHECKS = {
    "database": _check_database,
    "channels": _check_channels,
    "celery": _check_celery,
}


@api_view(["GET"])
@permission_classes([AllowAny])
def health_check(request):
    """Database, channel layer and notification task registry status"""
    services = {}
    for name, check in CHECKS.items():
        try:
            check()
            services[name] = "healthy"
        except Exception as e:
            services[name] = f"unhealthy: {e}"

    healthy = all(state == "healthy" for state in services.values())
    return Response(
        {
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
    )

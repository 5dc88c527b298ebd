"""
ASGI entrypoint: HTTP through Django, WebSockets through Channels.

WebSocket connections are authenticated by JWTOrCookieAuthMiddleware
(?token=<access>) wrapped around the session AuthMiddlewareStack.
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "moving_backend.settings")

# Initialise Django before importing anything that touches models
django_asgi_app = get_asgi_application()

from channels.auth import AuthMiddlewareStack  # noqa: E402
from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402
from channels.security.websocket import AllowedHostsOriginValidator  # noqa: E402

from realtime.middleware import JWTOrCookieAuthMiddleware  # noqa: E402
from realtime.routing import websocket_urlpatterns  # noqa: E402

application = ProtocolTypeRouter({
    "http": django_asgi_app,
    "websocket": AllowedHostsOriginValidator(
        AuthMiddlewareStack(
            JWTOrCookieAuthMiddleware(URLRouter(websocket_urlpatterns))
        )
    ),
})

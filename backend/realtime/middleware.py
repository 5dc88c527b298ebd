"""WebSocket authentication middleware (JWT in query string, session fallback)."""

import logging
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import AccessToken

User = get_user_model()
logger = logging.getLogger(__name__)


@database_sync_to_async
def _get_active_user(user_id):
    return User.objects.filter(id=user_id, is_active=True).first()


class JWTOrCookieAuthMiddleware(BaseMiddleware):
    """
    Authenticate WebSocket connections using either:
    1. JWT access token in querystring (?token=...) - mobile apps
    2. Session populated by AuthMiddlewareStack - browser
    """

    async def __call__(self, scope, receive, send):
        params = parse_qs(scope.get("query_string", b"").decode())
        token_list = params.get("token")

        if token_list:
            user = None
            try:
                access = AccessToken(token_list[0])
                user = await _get_active_user(access["user_id"])
            except (TokenError, KeyError) as exc:
                logger.debug("JWT auth failed: %s", exc)
            scope["user"] = user or AnonymousUser()
        elif "user" not in scope:
            scope["user"] = AnonymousUser()

        return await super().__call__(scope, receive, send)

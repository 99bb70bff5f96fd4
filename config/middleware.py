import logging
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from rest_framework.authtoken.models import Token

logger = logging.getLogger(__name__)


@database_sync_to_async
def get_user_from_token(token_key):
    try:
        return Token.objects.select_related("user").get(key=token_key).user
    except Token.DoesNotExist:
        return None


def token_from_scope(scope):
    """DRF token from the ``token`` query parameter or an ``Authorization: Token ...`` header."""
    query_params = parse_qs(scope.get("query_string", b"").decode())
    if "token" in query_params:
        return query_params["token"][0]
    headers = dict(scope.get("headers", []))
    auth_header = headers.get(b"authorization", b"").decode()
    if auth_header.startswith("Token "):
        return auth_header[len("Token "):].strip()
    return None


class TokenAuthMiddleware(BaseMiddleware):
    """
    Token authentication for WebSocket connections.
    Runs before AuthMiddlewareStack, which keeps a user set here.
    """

    async def __call__(self, scope, receive, send):
        if scope["type"] != "websocket":
            return await super().__call__(scope, receive, send)

        token_key = token_from_scope(scope)
        if token_key:
            user = await get_user_from_token(token_key)
            if user:
                scope["user"] = user
            else:
                logger.info("Invalid token for WebSocket connection")
        return await super().__call__(scope, receive, send)


def TokenAuthMiddlewareStack(inner):
    return TokenAuthMiddleware(inner)

import os

import django

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
# models must be loaded before the routing modules are imported
django.setup()

from channels.auth import AuthMiddlewareStack  # noqa: E402
from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402
from django.core.asgi import get_asgi_application  # noqa: E402

from .middleware import TokenAuthMiddlewareStack  # noqa: E402
from .routing import websocket_urlpatterns  # noqa: E402

application = ProtocolTypeRouter(
    {
        "http": get_asgi_application(),
        "websocket": TokenAuthMiddlewareStack(AuthMiddlewareStack(URLRouter(websocket_urlpatterns))),
    }
)

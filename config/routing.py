from django.urls import path

from notifications import consumers

websocket_urlpatterns = [
    path("ws/user/<int:user_id>/", consumers.UserConsumer.as_asgi()),
]

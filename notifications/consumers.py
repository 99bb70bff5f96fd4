import json
import logging

from channels.generic.websocket import AsyncWebsocketConsumer

from .services import user_group

logger = logging.getLogger(__name__)


class UserConsumer(AsyncWebsocketConsumer):
    """Per-user socket that receives notification pushes."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.group_name = None
        self.user_id = None

    async def connect(self):
        user = self.scope.get("user")
        if not user or user.is_anonymous:
            logger.info("Notification socket rejected: not authenticated")
            await self.close()
            return

        try:
            self.user_id = int(self.scope["url_route"]["kwargs"]["user_id"])
        except (ValueError, KeyError, TypeError):
            await self.close()
            return

        # users may only listen on their own channel
        if user.id != self.user_id:
            logger.warning("User %s attempted to join the channel of user %s", user.id, self.user_id)
            await self.close()
            return

        self.group_name = user_group(self.user_id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()

    async def disconnect(self, code):
        if self.group_name:
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def receive(self, text_data=None, bytes_data=None):
        pass

    async def notification(self, event):
        await self.send(
            text_data=json.dumps({"type": "notification", "notification": event.get("notification", {})})
        )

import uuid

from django.conf import settings
from django.db import models


class Notification(models.Model):
    """In-app notification, pushed live over the user's websocket group when possible."""

    TYPE_TOURNAMENT_CREATED = "tournament_created"
    TYPE_TOURNAMENT_REGISTRATION = "tournament_registration"
    TYPE_TOURNAMENT_REMINDER = "tournament_reminder"
    TYPE_TOURNAMENT_RESULT = "tournament_result"
    TYPE_TOURNAMENT_CANCELLED = "tournament_cancelled"
    TYPE_TOURNAMENT_START = "tournament_start"
    TYPE_SYSTEM_MESSAGE = "system_message"

    NOTIFICATION_TYPES = [
        (TYPE_TOURNAMENT_CREATED, "Tournament Created"),
        (TYPE_TOURNAMENT_REGISTRATION, "Tournament Registration"),
        (TYPE_TOURNAMENT_REMINDER, "Tournament Reminder"),
        (TYPE_TOURNAMENT_RESULT, "Tournament Result"),
        (TYPE_TOURNAMENT_CANCELLED, "Tournament Cancelled"),
        (TYPE_TOURNAMENT_START, "Tournament Start"),
        (TYPE_SYSTEM_MESSAGE, "System Message"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="notifications")
    notification_type = models.CharField(max_length=50, choices=NOTIFICATION_TYPES)
    title = models.CharField(max_length=200)
    message = models.TextField()
    data = models.JSONField(default=dict, blank=True)
    read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    expires_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "read", "-created_at"], name="notif_user_read_created_idx"),
            models.Index(fields=["user", "-created_at"], name="notif_user_created_idx"),
        ]

    def __str__(self):
        return f"{self.notification_type} for {self.user_id} ({'read' if self.read else 'unread'})"

    def mark_as_read(self):
        self.read = True
        self.save(update_fields=["read"])

from rest_framework import serializers

from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = ["id", "notification_type", "title", "message", "data", "read", "created_at", "expires_at"]
        read_only_fields = ["id", "created_at"]

from django.db.models import Q
from django.utils import timezone
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import Notification
from .serializers import NotificationSerializer


def live_notifications(user):
    """Notifications that have not expired yet."""
    return Notification.objects.filter(user=user).filter(
        Q(expires_at__isnull=True) | Q(expires_at__gte=timezone.now())
    )


class NotificationListView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        notifications = live_notifications(request.user)
        if request.query_params.get("unread") in ("1", "true"):
            notifications = notifications.filter(read=False)
        notification_type = request.query_params.get("type")
        if notification_type:
            notifications = notifications.filter(notification_type=notification_type)
        serializer = NotificationSerializer(notifications.order_by("-created_at")[:50], many=True)
        return Response(
            {
                "results": serializer.data,
                "unread_count": live_notifications(request.user).filter(read=False).count(),
            }
        )


class NotificationMarkReadView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, notification_id=None):
        """Mark a notification as read, or all of them when no id is given."""
        if notification_id:
            try:
                notification = Notification.objects.get(id=notification_id, user=request.user)
            except Notification.DoesNotExist:
                return Response({"detail": "Notification not found"}, status=status.HTTP_404_NOT_FOUND)
            notification.mark_as_read()
            return Response({"status": "marked as read"})
        updated = Notification.objects.filter(user=request.user, read=False).update(read=True)
        return Response({"status": "all marked as read", "updated": updated})


class NotificationUnreadCountView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        return Response({"unread_count": live_notifications(request.user).filter(read=False).count()})


class NotificationDeleteView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def delete(self, request, notification_id):
        deleted, _ = Notification.objects.filter(id=notification_id, user=request.user).delete()
        if not deleted:
            return Response({"detail": "Notification not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response({"status": "deleted"})


class NotificationClearReadView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def delete(self, request):
        deleted, _ = Notification.objects.filter(user=request.user, read=True).delete()
        return Response({"deleted": deleted})

from django.urls import path

from .views import (
    NotificationClearReadView,
    NotificationDeleteView,
    NotificationListView,
    NotificationMarkReadView,
    NotificationUnreadCountView,
)

urlpatterns = [
    path("", NotificationListView.as_view(), name="notification-list"),
    path("unread-count/", NotificationUnreadCountView.as_view(), name="notification-unread-count"),
    path("mark-read/", NotificationMarkReadView.as_view(), name="notification-mark-all-read"),
    path("clear-read/", NotificationClearReadView.as_view(), name="notification-clear-read"),
    path("<uuid:notification_id>/mark-read/", NotificationMarkReadView.as_view(), name="notification-mark-read"),
    path("<uuid:notification_id>/", NotificationDeleteView.as_view(), name="notification-delete"),
]

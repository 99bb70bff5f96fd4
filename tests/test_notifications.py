from datetime import timedelta

import pytest
from django.db import DatabaseError
from django.utils import timezone

from notifications import services
from notifications.models import Notification
from tournaments.exceptions import NotificationDeliveryFailure


@pytest.mark.django_db
def test_notification_lists_visible_items(auth_client):
    client, user = auth_client()
    Notification.objects.create(
        user=user,
        notification_type=Notification.TYPE_TOURNAMENT_REMINDER,
        title="Starting soon",
        message="Get ready",
    )
    Notification.objects.create(
        user=user,
        notification_type=Notification.TYPE_SYSTEM_MESSAGE,
        title="Old",
        message="Expired",
        expires_at=timezone.now() - timedelta(hours=1),
    )
    response = client.get("/api/notifications/")
    assert response.status_code == 200
    results = response.data.get("results", [])
    assert len(results) == 1
    assert results[0]["notification_type"] == Notification.TYPE_TOURNAMENT_REMINDER
    assert response.data["unread_count"] == 1


@pytest.mark.django_db
def test_notification_mark_read_and_delete(auth_client):
    client, user = auth_client()
    note1 = Notification.objects.create(
        user=user,
        notification_type=Notification.TYPE_TOURNAMENT_RESULT,
        title="You won",
        message="Prize credited",
    )
    note2 = Notification.objects.create(
        user=user,
        notification_type=Notification.TYPE_TOURNAMENT_CANCELLED,
        title="Cancelled",
        message="Cancelled",
    )

    mark_one = client.post(f"/api/notifications/{note1.id}/mark-read/")
    assert mark_one.status_code == 200
    note1.refresh_from_db()
    assert note1.read is True

    unread = client.get("/api/notifications/unread-count/")
    assert unread.data.get("unread_count") == 1

    mark_all = client.post("/api/notifications/mark-read/")
    assert mark_all.status_code == 200
    note2.refresh_from_db()
    assert note2.read is True

    delete_resp = client.delete(f"/api/notifications/{note1.id}/")
    assert delete_resp.status_code == 200
    assert Notification.objects.filter(id=note1.id).exists() is False


@pytest.mark.django_db
def test_users_cannot_touch_each_others_notifications(auth_client, create_user):
    client, _ = auth_client()
    other = create_user()
    note = Notification.objects.create(
        user=other, notification_type=Notification.TYPE_SYSTEM_MESSAGE, title="Hi", message="Private"
    )
    assert client.post(f"/api/notifications/{note.id}/mark-read/").status_code == 404
    assert client.delete(f"/api/notifications/{note.id}/").status_code == 404


@pytest.mark.django_db
def test_create_notification_survives_push_failure(create_user, monkeypatch):
    user = create_user()

    def no_layer():
        raise RuntimeError("redis down")

    monkeypatch.setattr(services, "get_channel_layer", no_layer)
    assert services.push_notification(Notification(user=user, title="x", message="y")) is False

    monkeypatch.setattr(services, "get_channel_layer", lambda: None)
    note = services.create_notification(user, Notification.TYPE_SYSTEM_MESSAGE, "Hello", "World", expires_in_hours=1)
    assert note.pk is not None
    assert note.expires_at is not None


@pytest.mark.django_db
def test_storage_failure_is_reported_and_bulk_send_continues(create_user, monkeypatch):
    first, second = create_user(), create_user()
    real_create = Notification.objects.create

    def flaky_create(**kwargs):
        if kwargs["user"] == first:
            raise DatabaseError("disk full")
        return real_create(**kwargs)

    monkeypatch.setattr(Notification.objects, "create", flaky_create)
    with pytest.raises(NotificationDeliveryFailure):
        services.create_notification(first, Notification.TYPE_SYSTEM_MESSAGE, "a", "b")

    assert services.notify_users([first, second], Notification.TYPE_SYSTEM_MESSAGE, "a", "b") == 1
    assert Notification.objects.filter(user=second).count() == 1

from datetime import datetime, timedelta, timezone as dt_timezone

import pytest
from django.utils import timezone

from notifications.models import Notification
from tournaments import reminders
from tournaments.models import Tournament
from tournaments.status import TournamentSnapshot

START = datetime(2025, 5, 1, 18, 0, tzinfo=dt_timezone.utc)


def snapshot(**kwargs):
    values = {"status": Tournament.STATUS_UPCOMING, "start_at": START, "duration_ms": 3_600_000}
    values.update(kwargs)
    return TournamentSnapshot(**values)


@pytest.mark.parametrize(
    "before,expected",
    [
        (timedelta(minutes=6), False),
        (timedelta(minutes=5), True),
        (timedelta(seconds=30), True),
        (timedelta(0), False),
        (-timedelta(minutes=1), False),
    ],
)
def test_starting_within_window(before, expected):
    assert reminders.is_starting_within_minutes(snapshot(), START - before, 5) is expected


def test_reminder_not_due_twice_or_when_not_upcoming():
    now = START - timedelta(minutes=2)
    assert reminders.reminder_due(snapshot(), now, 5) is True
    assert reminders.reminder_due(snapshot(five_minute_reminder_sent=True), now, 5) is False
    assert reminders.reminder_due(snapshot(status=Tournament.STATUS_CANCELLED), now, 5) is False


@pytest.mark.django_db
def test_send_due_reminders_notifies_once(create_tournament, create_user):
    player = create_user()
    soon = create_tournament(start_at=timezone.now() + timedelta(minutes=4), participants=[player])
    create_tournament(start_at=timezone.now() + timedelta(hours=2), participants=[player])

    assert reminders.send_due_reminders() == 1
    assert reminders.send_due_reminders() == 0

    soon.refresh_from_db()
    assert soon.five_minute_reminder_sent is True
    notes = Notification.objects.filter(notification_type=Notification.TYPE_TOURNAMENT_REMINDER)
    assert set(notes.values_list("user_id", flat=True)) == {player.pk, soon.organizer_id}
    assert notes.filter(user=player).count() == 1


@pytest.mark.django_db
def test_claim_reminder_is_exclusive(create_tournament):
    tournament = create_tournament(start_at=timezone.now() + timedelta(minutes=3))
    other_worker_copy = Tournament.objects.get(pk=tournament.pk)
    assert reminders.claim_reminder(tournament) is True
    assert reminders.claim_reminder(other_worker_copy) is False


@pytest.mark.django_db
def test_cancelled_tournament_gets_no_reminder(create_tournament):
    create_tournament(start_at=timezone.now() + timedelta(minutes=3), status=Tournament.STATUS_CANCELLED)
    assert reminders.send_due_reminders() == 0
    assert not Notification.objects.exists()


@pytest.mark.django_db
def test_reminder_failure_is_isolated(create_tournament, monkeypatch):
    first = create_tournament(start_at=timezone.now() + timedelta(minutes=2))
    second = create_tournament(start_at=timezone.now() + timedelta(minutes=3))
    calls = []

    def notify(tournament, minutes):
        calls.append(tournament.pk)
        if tournament.pk == first.pk:
            raise RuntimeError("push failed")

    monkeypatch.setattr(reminders, "notify_tournament_starting_soon", notify)
    assert reminders.send_due_reminders() == 1
    assert sorted(calls) == sorted([first.pk, second.pk])

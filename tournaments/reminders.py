import logging
from datetime import datetime, timedelta

from django.conf import settings
from django.utils import timezone

from notifications.services import notify_tournament_starting_soon

from .models import Tournament
from .status import TournamentSnapshot

logger = logging.getLogger(__name__)


def reminder_minutes() -> int:
    return getattr(settings, "TOURNAMENT_REMINDER_MINUTES", 5)


def is_starting_within_minutes(snapshot: TournamentSnapshot, now: datetime, minutes: int) -> bool:
    remaining = snapshot.start_at - now
    return timedelta(0) < remaining <= timedelta(minutes=minutes)


def reminder_due(snapshot: TournamentSnapshot, now: datetime, minutes: int | None = None) -> bool:
    if snapshot.status != Tournament.STATUS_UPCOMING or snapshot.five_minute_reminder_sent:
        return False
    return is_starting_within_minutes(snapshot, now, minutes or reminder_minutes())


def claim_reminder(tournament: Tournament) -> bool:
    """Flip the reminder flag; only the caller that flips it may send."""
    claimed = Tournament.objects.filter(
        pk=tournament.pk,
        status=Tournament.STATUS_UPCOMING,
        five_minute_reminder_sent=False,
    ).update(five_minute_reminder_sent=True)
    if claimed:
        tournament.five_minute_reminder_sent = True
    return bool(claimed)


def send_due_reminders(now: datetime | None = None) -> int:
    now = now or timezone.now()
    minutes = reminder_minutes()
    candidates = Tournament.objects.filter(
        status=Tournament.STATUS_UPCOMING,
        five_minute_reminder_sent=False,
        start_at__gt=now,
        start_at__lte=now + timedelta(minutes=minutes),
    )
    sent = 0
    for tournament in candidates.iterator():
        try:
            if not reminder_due(tournament.snapshot(), now, minutes):
                continue
            if not claim_reminder(tournament):
                continue
            notify_tournament_starting_soon(tournament, minutes)
            sent += 1
            logger.info("%s-minute reminder sent for tournament %s", minutes, tournament.pk)
        except Exception:
            logger.exception("Error sending reminder for tournament %s", tournament.pk)
    return sent

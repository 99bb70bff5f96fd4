import logging
from dataclasses import dataclass
from datetime import datetime

from django.utils import timezone

from .clock import end_instant
from .models import Tournament

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = {Tournament.STATUS_COMPLETED, Tournament.STATUS_CANCELLED}
STATUS_ORDER = {
    Tournament.STATUS_UPCOMING: 0,
    Tournament.STATUS_ACTIVE: 1,
    Tournament.STATUS_COMPLETED: 2,
}


@dataclass(frozen=True)
class TournamentSnapshot:
    status: str
    start_at: datetime
    duration_ms: int
    manual_status_override: bool = False
    five_minute_reminder_sent: bool = False
    timezone: str = "UTC"

    @property
    def end_at(self) -> datetime:
        return end_instant(self.start_at, self.duration_ms)


def status_for_instant(snapshot: TournamentSnapshot, now: datetime) -> str:
    if now >= snapshot.end_at:
        return Tournament.STATUS_COMPLETED
    if now >= snapshot.start_at:
        return Tournament.STATUS_ACTIVE
    return Tournament.STATUS_UPCOMING


def compute_status(snapshot: TournamentSnapshot, now: datetime) -> tuple[str, bool]:
    """Status that should hold at ``now`` and whether it differs from the stored one."""
    current = snapshot.status
    if snapshot.manual_status_override or current in TERMINAL_STATUSES:
        return current, False
    target = status_for_instant(snapshot, now)
    if STATUS_ORDER[target] <= STATUS_ORDER.get(current, 0):
        return current, False
    return target, True


def refresh_status(tournament: Tournament, now: datetime | None = None) -> bool:
    """Write back the time-derived status; returns whether this call changed it.

    The update is conditioned on the status that was read, so a concurrent
    reconciliation that got there first turns this into a no-op.
    """
    now = now or timezone.now()
    previous = tournament.status
    new_status, changed = compute_status(tournament.snapshot(), now)
    if not changed:
        return False
    updated = Tournament.objects.filter(pk=tournament.pk, status=previous, manual_status_override=False).update(
        status=new_status, updated_at=now
    )
    if not updated:
        tournament.refresh_from_db(fields=["status", "manual_status_override"])
        return False
    tournament.status = new_status
    logger.info("Tournament %s status updated: %s -> %s", tournament.pk, previous, new_status)
    return True


def reconcile_statuses(now: datetime | None = None) -> int:
    now = now or timezone.now()
    candidates = Tournament.objects.filter(
        status__in=[Tournament.STATUS_UPCOMING, Tournament.STATUS_ACTIVE],
        manual_status_override=False,
    )
    updated = 0
    for tournament in candidates.iterator():
        try:
            if refresh_status(tournament, now):
                updated += 1
        except Exception:
            logger.exception("Error updating status of tournament %s", tournament.pk)
    if updated:
        logger.info("Updated status for %s tournaments", updated)
    return updated

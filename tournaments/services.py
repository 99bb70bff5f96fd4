"""
Tournament lifecycle operations used by the API views.

Money movement (organizer funding, entry fees) always happens inside the
same atomic block as the row it pays for. Notifications are queued with
``transaction.on_commit`` and are best-effort.
"""
import logging
from decimal import Decimal, InvalidOperation
from functools import partial

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from notifications.services import (
    notify_tournament_cancelled,
    notify_tournament_created,
    notify_tournament_registration,
)
from wallet.models import Transaction
from wallet.services import balance_of, debit, generate_reference

from .clock import DEFAULT_TIMEZONE, coerce_date, parse_time_of_day, resolve_timezone, start_instant
from .exceptions import (
    AlreadyRegistered,
    ConfirmationRequired,
    EntryFeeExceedsPool,
    InsufficientFunds,
    InvalidDuration,
    InvalidResults,
    InvalidStatusTransition,
    NotOrganizer,
    ParticipantNotOnRoster,
    RegistrationClosed,
    ResultsLocked,
    TopUpRequired,
    WrongTournamentStatus,
)
from .models import Tournament, TournamentParticipant, TournamentResult
from .payouts import RankedResult, compute_payouts
from .prizes import normalize_prize_schedule, to_amount, total_pool
from .status import STATUS_ORDER, TERMINAL_STATUSES, refresh_status

logger = logging.getLogger(__name__)

MS_PER_MINUTE = 60 * 1000


def min_duration_minutes() -> int:
    return getattr(settings, "TOURNAMENT_MIN_DURATION_MINUTES", 5)


def duration_to_ms(minutes) -> int:
    """Duration in minutes (as sent by clients) to stored milliseconds."""
    try:
        value = Decimal(str(minutes).strip())
    except (InvalidOperation, ValueError):
        raise InvalidDuration("Duration must be a valid number in minutes.", received=str(minutes))
    if not value.is_finite():
        raise InvalidDuration("Duration must be a valid number in minutes.", received=str(minutes))
    minimum = min_duration_minutes()
    if value < minimum:
        raise InvalidDuration(
            f"Tournament duration must be at least {minimum} minutes.",
            received=str(minutes),
            minimum_minutes=minimum,
        )
    return int(value * MS_PER_MINUTE)


def _notify(func, *args):
    try:
        func(*args)
    except Exception:
        logger.warning("Notification %s failed", func.__name__, exc_info=True)


def notify_after_commit(func, *args):
    transaction.on_commit(partial(_notify, func, *args))


def _ensure_organizer(tournament: Tournament, actor):
    if not tournament.is_organizer(actor.pk):
        raise NotOrganizer()


def create_tournament(organizer, data: dict) -> Tournament:
    """Validate, price and persist a new tournament, funding it from the organizer's wallet."""
    start_time = data.get("start_time")
    parse_time_of_day(start_time)
    tz_name = data.get("timezone") or DEFAULT_TIMEZONE
    resolve_timezone(tz_name)
    start_date = coerce_date(data.get("start_date"))
    duration_ms = duration_to_ms(data.get("duration"))

    prize_type = data.get("prize_type")
    schedule = normalize_prize_schedule(prize_type, data.get("prizes"))
    pool = total_pool(schedule)
    entry_fee = to_amount(data.get("entry_fee"), "entry_fee")
    if entry_fee > pool:
        raise EntryFeeExceedsPool(entry_fee=str(entry_fee), total_prize_pool=str(pool))

    funding_method = data.get("funding_method") or Tournament.FUNDING_WALLET
    if funding_method == Tournament.FUNDING_TOPUP and pool > 0:
        raise TopUpRequired(amount_needed=str(pool))

    with transaction.atomic():
        tournament = Tournament.objects.create(
            title=data["title"],
            category=data["category"],
            rules=data["rules"],
            tournament_link=data["tournament_link"],
            password=data.get("password") or None,
            organizer=organizer,
            start_date=start_date,
            start_time=start_time.strip(),
            timezone=tz_name,
            duration_ms=duration_ms,
            start_at=start_instant(start_date, start_time, tz_name),
            prize_type=prize_type,
            prizes=schedule.as_dict(),
            total_prize_pool=pool,
            entry_fee=entry_fee,
            funding_method=funding_method,
        )
        if pool > 0:
            debit(
                organizer.pk,
                pool,
                type=Transaction.TYPE_FUNDING,
                tournament=tournament,
                reference=generate_reference("FUND"),
                details={"description": f"Funding for tournament: {tournament.title}"},
            )
        notify_after_commit(notify_tournament_created, tournament)

    logger.info("Tournament %s created by %s with pool %s", tournament.pk, organizer.pk, pool)
    return tournament


def register_participant(tournament: Tournament, user, confirmed: bool = False) -> TournamentParticipant:
    refresh_status(tournament)
    if tournament.status != Tournament.STATUS_UPCOMING:
        raise RegistrationClosed(current_status=tournament.status)
    if TournamentParticipant.objects.filter(tournament=tournament, user=user).exists():
        raise AlreadyRegistered()

    fee = tournament.entry_fee
    if fee > 0:
        balance = balance_of(user.pk)
        if balance < fee:
            raise InsufficientFunds(
                "Insufficient wallet balance. Please top up to register.",
                wallet_balance=str(balance),
                entry_fee=str(fee),
            )
        if not confirmed:
            raise ConfirmationRequired(
                requires_confirmation=True,
                tournament={"id": tournament.pk, "title": tournament.title, "entry_fee": str(fee)},
            )

    with transaction.atomic():
        try:
            with transaction.atomic():
                participant = TournamentParticipant.objects.create(tournament=tournament, user=user)
        except IntegrityError:
            raise AlreadyRegistered()
        if fee > 0:
            debit(
                user.pk,
                fee,
                type=Transaction.TYPE_ENTRY,
                tournament=tournament,
                reference=generate_reference("ENTRY"),
            )
        notify_after_commit(notify_tournament_registration, tournament, user)

    logger.info("User %s registered for tournament %s", user.pk, tournament.pk)
    return participant


def _ranked_results(results) -> list:
    if not isinstance(results, (list, tuple)) or not results:
        raise InvalidResults()
    ranked = [RankedResult.coerce(r) for r in results]
    for result in ranked:
        if result.position < 1:
            raise InvalidResults("Positions start at 1.", participant_id=result.participant_id)
    ids = [r.participant_id for r in ranked]
    if len(set(ids)) != len(ids):
        raise InvalidResults("Each participant may appear only once.")
    return ranked


def submit_results(tournament: Tournament, actor, results) -> list:
    """Store final standings, complete the tournament and return the payout lines they produce."""
    _ensure_organizer(tournament, actor)
    if tournament.prizes_distributed:
        raise ResultsLocked()
    if tournament.status == Tournament.STATUS_CANCELLED:
        raise WrongTournamentStatus("Cancelled tournaments have no results.", current_status=tournament.status)

    ranked = _ranked_results(results)
    roster = set(TournamentParticipant.objects.filter(tournament=tournament).values_list("user_id", flat=True))
    outsiders = sorted({r.participant_id for r in ranked} - roster)
    if outsiders:
        raise ParticipantNotOnRoster(invalid_user_ids=outsiders)

    lines = compute_payouts(tournament.prize_type, tournament.schedule(), ranked)

    with transaction.atomic():
        locked = Tournament.objects.select_for_update().get(pk=tournament.pk)
        if locked.prizes_distributed:
            raise ResultsLocked()
        TournamentResult.objects.filter(tournament=tournament).delete()
        TournamentResult.objects.bulk_create(
            [
                TournamentResult(
                    tournament=tournament,
                    user_id=r.participant_id,
                    position=r.position,
                    score=r.score,
                    category=r.category,
                )
                for r in ranked
            ]
        )
        Tournament.objects.filter(pk=tournament.pk).update(status=Tournament.STATUS_COMPLETED, updated_at=timezone.now())

    tournament.status = Tournament.STATUS_COMPLETED
    logger.info("Results for tournament %s stored (%d entries)", tournament.pk, len(ranked))
    return lines


def stored_results(tournament: Tournament) -> list:
    return [
        RankedResult(participant_id=r.user_id, position=r.position, score=r.score, category=r.category)
        for r in tournament.results.all()
    ]


def payouts_for(tournament: Tournament) -> list:
    return compute_payouts(tournament.prize_type, tournament.schedule(), stored_results(tournament))


def cancel_tournament(tournament: Tournament, actor, reason: str = "") -> Tournament:
    _ensure_organizer(tournament, actor)
    refresh_status(tournament)
    cancellable = [Tournament.STATUS_UPCOMING, Tournament.STATUS_ACTIVE]
    with transaction.atomic():
        updated = Tournament.objects.filter(pk=tournament.pk, status__in=cancellable).update(
            status=Tournament.STATUS_CANCELLED, updated_at=timezone.now()
        )
        if not updated:
            tournament.refresh_from_db(fields=["status"])
            raise WrongTournamentStatus(
                "Only upcoming or active tournaments can be cancelled.", current_status=tournament.status
            )
        notify_after_commit(notify_tournament_cancelled, tournament, reason)
    tournament.status = Tournament.STATUS_CANCELLED
    logger.info("Tournament %s cancelled by %s", tournament.pk, actor.pk)
    return tournament


def set_manual_status(tournament: Tournament, actor, status: str, override: bool = True) -> Tournament:
    """Pin the status by hand, or hand control back to the clock with ``override=False``."""
    _ensure_organizer(tournament, actor)
    if not override:
        Tournament.objects.filter(pk=tournament.pk).update(manual_status_override=False, updated_at=timezone.now())
        tournament.manual_status_override = False
        refresh_status(tournament)
        return tournament

    if status == Tournament.STATUS_CANCELLED:
        return cancel_tournament(tournament, actor)
    if status not in STATUS_ORDER:
        raise InvalidStatusTransition(f"Unknown status: {status}", requested_status=status)
    current = tournament.status
    if current in TERMINAL_STATUSES or STATUS_ORDER[status] < STATUS_ORDER[current]:
        raise InvalidStatusTransition(current_status=current, requested_status=status)

    updated = Tournament.objects.filter(pk=tournament.pk, status=current).update(
        status=status, manual_status_override=True, updated_at=timezone.now()
    )
    if not updated:
        tournament.refresh_from_db(fields=["status"])
        raise InvalidStatusTransition(current_status=tournament.status, requested_status=status)
    tournament.status = status
    tournament.manual_status_override = True
    logger.info("Tournament %s status set by organizer: %s -> %s", tournament.pk, current, status)
    return tournament


def reschedule_tournament(
    tournament: Tournament, actor, start_date=None, start_time=None, timezone_name=None, duration=None
) -> Tournament:
    _ensure_organizer(tournament, actor)
    refresh_status(tournament)
    if tournament.status != Tournament.STATUS_UPCOMING:
        raise WrongTournamentStatus("Only upcoming tournaments can be rescheduled.", current_status=tournament.status)

    if start_time is not None:
        parse_time_of_day(start_time)
        tournament.start_time = start_time.strip()
    if timezone_name is not None:
        resolve_timezone(timezone_name or DEFAULT_TIMEZONE)
        tournament.timezone = timezone_name or DEFAULT_TIMEZONE
    if start_date is not None:
        tournament.start_date = coerce_date(start_date)
    if duration is not None:
        tournament.duration_ms = duration_to_ms(duration)

    tournament.start_at = tournament.compute_start_at()
    if tournament.start_at > timezone.now():
        tournament.five_minute_reminder_sent = False
    tournament.save(
        update_fields=[
            "start_date",
            "start_time",
            "timezone",
            "duration_ms",
            "start_at",
            "five_minute_reminder_sent",
            "updated_at",
        ]
    )
    logger.info("Tournament %s rescheduled to %s", tournament.pk, tournament.start_at.isoformat())
    return tournament

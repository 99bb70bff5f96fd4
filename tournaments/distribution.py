"""
Prize distribution: apply a list of payout lines to wallet balances exactly
once per tournament, all-or-nothing.

Every check and every credit runs inside one ``transaction.atomic()`` block
holding a row lock on the tournament. The ``prizes_distributed`` flag is
flipped with a compare-and-set before any money moves, so even on databases
without row locks a second caller finds nothing to update and backs off.
Winner notifications are queued with ``transaction.on_commit`` and never
affect the outcome.
"""
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal, InvalidOperation
from functools import partial

from django.db import transaction
from django.utils import timezone

from notifications.services import notify_tournament_winner
from wallet.models import Transaction
from wallet.services import balance_of, credit

from .exceptions import (
    AlreadyDistributed,
    InvalidPayoutLine,
    InvalidPrizeAmount,
    NotOrganizer,
    ParticipantNotOnRoster,
    TournamentNotFound,
    WrongTournamentStatus,
)
from .models import Tournament, TournamentParticipant
from .payouts import PayoutLine, payout_total, prize_for_position
from .prizes import MAX_AMOUNT, SpecialSchedule, round_money, to_position

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReceiptLine:
    participant_id: int
    position: int
    amount: Decimal
    transaction_id: int
    reference: str
    new_balance: Decimal

    def as_dict(self) -> dict:
        return {
            "participant_id": self.participant_id,
            "position": self.position,
            "amount": str(self.amount),
            "transaction_id": self.transaction_id,
            "reference": self.reference,
            "new_balance": str(self.new_balance),
        }


@dataclass(frozen=True)
class DistributionReceipt:
    tournament_id: int
    total_distributed: Decimal
    distributed_at: datetime
    lines: list = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "tournament_id": self.tournament_id,
            "total_distributed": str(self.total_distributed),
            "distributed_at": self.distributed_at.isoformat(),
            "lines": [line.as_dict() for line in self.lines],
        }


def _decimal_or_none(value):
    if value is None or value == "":
        return None
    amount = Decimal(str(value))
    if not amount.is_finite():
        raise InvalidOperation(value)
    return amount


def _money(amount: Decimal, received) -> Decimal:
    if abs(amount) > MAX_AMOUNT:
        raise InvalidPayoutLine("Prize amount is too large.", received=repr(received))
    return round_money(amount)


def coerce_payout_line(value, schedule=None) -> PayoutLine:
    """Accept a ``PayoutLine`` or a request dict (``participant_id``/``user_id``/``userId``).

    A request line pays, in order of preference, a positive ``customAmount``,
    an explicit ``amount``, or the prize ``schedule`` holds for its
    ``position`` (a rank such as ``"1st"``, or a category on special
    schedules). The amount is rounded to cents.
    """
    if isinstance(value, PayoutLine):
        return replace(value, amount=_money(value.amount, value))
    if not isinstance(value, dict):
        raise InvalidPayoutLine(received=repr(value))
    participant_id = value.get("participant_id", value.get("user_id", value.get("userId")))
    raw_position = value.get("position")
    category = str(value.get("category") or "")
    try:
        participant_id = int(participant_id)
        position = to_position(raw_position)
        custom = _decimal_or_none(value.get("customAmount", value.get("custom_amount")))
        amount = _decimal_or_none(value.get("amount"))
    except (TypeError, ValueError, InvalidOperation, InvalidPrizeAmount):
        raise InvalidPayoutLine("Each payout needs a participant and a numeric amount.", received=value)

    if custom is not None and custom > 0:
        amount = custom
    elif amount is None:
        if schedule is None:
            raise InvalidPayoutLine("Each payout needs a participant and a numeric amount.", received=value)
        if isinstance(schedule, SpecialSchedule):
            category = category or str(raw_position or "")
            amount = prize_for_position(schedule, category)
        else:
            amount = prize_for_position(schedule, raw_position)
    return PayoutLine(participant_id, position, _money(amount, value), category)


def has_prize_ledger_entries(tournament_id) -> bool:
    return Transaction.objects.filter(
        tournament_id=tournament_id,
        type__in=Transaction.PRIZE_TYPES,
        status=Transaction.STATUS_COMPLETED,
    ).exists()


def prize_reference(tournament_id, participant_id, distributed_at: datetime, index: int) -> str:
    epoch_ms = int(distributed_at.timestamp() * 1000)
    return f"PRIZE-{tournament_id}-{participant_id}-{epoch_ms}-{index}"


def _notify_winner(tournament: Tournament, line: ReceiptLine):
    try:
        notify_tournament_winner(line.participant_id, tournament, line.position, line.amount)
    except Exception:
        logger.warning(
            "Prize notification failed for user %s in tournament %s",
            line.participant_id,
            tournament.pk,
            exc_info=True,
        )


def distribute_prizes(tournament_id, payout_lines, actor_id) -> DistributionReceipt:
    """Credit every payout line to its participant, once per tournament.

    Raises ``TournamentNotFound``, ``NotOrganizer``, ``WrongTournamentStatus``,
    ``AlreadyDistributed``, ``ParticipantNotOnRoster`` or
    ``InvalidPayoutLine``; any of them leaves balances untouched.
    """
    with transaction.atomic():
        try:
            tournament = Tournament.objects.select_for_update().get(pk=tournament_id)
        except Tournament.DoesNotExist:
            raise TournamentNotFound(tournament_id=tournament_id)

        if not tournament.is_organizer(actor_id):
            raise NotOrganizer("Only the tournament organizer can distribute prizes.")
        if tournament.status != Tournament.STATUS_COMPLETED:
            raise WrongTournamentStatus(
                "Tournament must be completed before distributing prizes.",
                current_status=tournament.status,
            )
        if tournament.prizes_distributed or has_prize_ledger_entries(tournament.pk):
            raise AlreadyDistributed(
                distributed_at=(
                    tournament.prize_distribution_date.isoformat() if tournament.prize_distribution_date else None
                ),
            )

        schedule = tournament.schedule()
        lines = [coerce_payout_line(line, schedule) for line in payout_lines or []]

        roster = set(
            TournamentParticipant.objects.filter(tournament=tournament).values_list("user_id", flat=True)
        )
        outsiders = sorted({line.participant_id for line in lines} - roster)
        if outsiders:
            raise ParticipantNotOnRoster(invalid_user_ids=outsiders)

        if not lines:
            raise InvalidPayoutLine("No prizes to distribute.")
        for line in lines:
            if line.amount <= 0:
                raise InvalidPayoutLine(
                    f"Invalid prize amount for position {line.category or line.position}.",
                    participant_id=line.participant_id,
                    position=line.position,
                    amount=str(line.amount),
                )

        distributed_at = timezone.now()
        claimed = Tournament.objects.filter(pk=tournament.pk, prizes_distributed=False).update(
            prizes_distributed=True,
            prize_distribution_date=distributed_at,
            distributed_by_id=actor_id,
            updated_at=distributed_at,
        )
        if not claimed:
            raise AlreadyDistributed()

        receipt_lines = []
        for index, line in enumerate(lines):
            entry = credit(
                line.participant_id,
                line.amount,
                type=Transaction.TYPE_PRIZE,
                tournament=tournament,
                reference=prize_reference(tournament.pk, line.participant_id, distributed_at, index),
                details={"position": line.position, "category": line.category, "distributed_by": actor_id},
            )
            receipt_lines.append(
                ReceiptLine(
                    participant_id=line.participant_id,
                    position=line.position,
                    amount=line.amount,
                    transaction_id=entry.pk,
                    reference=entry.reference,
                    new_balance=balance_of(line.participant_id),
                )
            )

        for receipt_line in receipt_lines:
            transaction.on_commit(partial(_notify_winner, tournament, receipt_line))

    tournament.prizes_distributed = True
    tournament.prize_distribution_date = distributed_at
    tournament.distributed_by_id = actor_id

    total = payout_total(receipt_lines)
    logger.info(
        "Distributed %s across %d prizes for tournament %s", total, len(receipt_lines), tournament.pk
    )
    return DistributionReceipt(
        tournament_id=tournament.pk,
        total_distributed=total,
        distributed_at=distributed_at,
        lines=receipt_lines,
    )

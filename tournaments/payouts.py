from dataclasses import dataclass
from decimal import Decimal

from .exceptions import InvalidPrizeType, InvalidResults
from .prizes import (
    FIXED,
    PERCENTAGE,
    SPECIAL,
    ZERO,
    FixedSchedule,
    PercentageSchedule,
    SpecialSchedule,
    round_money,
    to_position,
)

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class RankedResult:
    participant_id: int
    position: int
    score: float = 0
    category: str = ""

    @classmethod
    def coerce(cls, value):
        if isinstance(value, cls):
            return value
        if not isinstance(value, dict):
            raise InvalidResults(received=repr(value))
        participant_id = value.get("participant_id", value.get("user_id", value.get("userId")))
        try:
            position = int(value.get("position"))
            participant_id = int(participant_id)
        except (TypeError, ValueError):
            raise InvalidResults("Each result needs a participant and a numeric position.", received=value)
        return cls(
            participant_id=participant_id,
            position=position,
            score=value.get("score") or 0,
            category=str(value.get("category") or ""),
        )


@dataclass(frozen=True)
class PayoutLine:
    participant_id: int
    position: int
    amount: Decimal
    category: str = ""

    def as_dict(self) -> dict:
        data = {"participant_id": self.participant_id, "position": self.position, "amount": str(self.amount)}
        if self.category:
            data["category"] = self.category
        return data


def percent_of(base: Decimal, percentage: Decimal) -> Decimal:
    return round_money(base * percentage / HUNDRED)


def payout_total(lines) -> Decimal:
    return sum((line.amount for line in lines), ZERO)


def _emit(lines: list, result: RankedResult, position: int, amount, category: str = ""):
    amount = round_money(amount)
    if amount > 0:
        lines.append(PayoutLine(result.participant_id, position, amount, category))


def _first_at_position(results) -> dict:
    by_position = {}
    for result in results:
        by_position.setdefault(result.position, result)
    return by_position


def _fixed_lines(schedule: FixedSchedule, results: list) -> list:
    lines = []
    for rank, result in enumerate(results[: len(schedule.amounts)], start=1):
        _emit(lines, result, rank, schedule.amounts[rank - 1])
    by_position = _first_at_position(results)
    for extra in schedule.additional:
        result = by_position.get(extra.position)
        if result is not None:
            _emit(lines, result, extra.position, extra.amount)
    return lines


def _percentage_lines(schedule: PercentageSchedule, results: list) -> list:
    lines = []
    base = schedule.base_prize_pool
    for rank, result in enumerate(results[: len(schedule.percentages)], start=1):
        _emit(lines, result, rank, percent_of(base, schedule.percentage_for_rank(rank)))
    by_position = _first_at_position(results)
    for extra in schedule.additional:
        result = by_position.get(extra.position)
        if result is not None:
            _emit(lines, result, extra.position, percent_of(base, extra.percentage))
    return lines


def match_category(label: str, results: list):
    """First result whose category names this special prize.

    Exact label matches win over case-insensitive substring matches in
    either direction.
    """
    if not label:
        return None
    for result in results:
        if result.category == label:
            return result
    wanted = label.lower()
    for result in results:
        category = result.category.strip().lower()
        if category and (category in wanted or wanted in category):
            return result
    return None


def _special_lines(schedule: SpecialSchedule, results: list) -> list:
    lines = []
    for prize in schedule.special_prizes:
        winner = match_category(prize.category, results)
        if winner is None:
            continue
        _emit(lines, winner, winner.position, _special_amount(schedule, prize), prize.category)
    return lines


def _special_amount(schedule: SpecialSchedule, prize) -> Decimal:
    if schedule.is_fixed or not prize.is_percentage:
        return prize.amount
    return percent_of(schedule.base_prize_pool, prize.amount)


def special_prize_for(schedule: SpecialSchedule, label: str):
    """Special prize named by ``label``, exact category first, then a case-insensitive substring."""
    label = (label or "").strip()
    if not label:
        return None
    for prize in schedule.special_prizes:
        if prize.category == label:
            return prize
    wanted = label.lower()
    for prize in schedule.special_prizes:
        category = prize.category.strip().lower()
        if category and (wanted in category or category in wanted):
            return prize
    return None


def _additional_for(entries, rank: int):
    return next((entry for entry in entries if entry.position == rank), None)


def prize_for_position(schedule, position) -> Decimal:
    """Scheduled prize for a rank label ("1st", 2) or, on special schedules, a category label.

    Ranked places fall back to the ``additional`` entries when the ranked
    amount is zero. Returns 0 when the schedule pays nothing for it.
    """
    if isinstance(schedule, SpecialSchedule):
        prize = special_prize_for(schedule, str(position or ""))
        return round_money(_special_amount(schedule, prize)) if prize is not None else ZERO
    rank = to_position(position)
    if rank < 1:
        return ZERO
    if isinstance(schedule, FixedSchedule):
        if rank <= len(schedule.amounts) and schedule.amounts[rank - 1] > 0:
            return round_money(schedule.amounts[rank - 1])
        extra = _additional_for(schedule.additional, rank)
        return round_money(extra.amount) if extra is not None else ZERO
    if isinstance(schedule, PercentageSchedule):
        percentage = schedule.percentage_for_rank(rank)
        if percentage <= 0:
            extra = _additional_for(schedule.additional, rank)
            percentage = extra.percentage if extra is not None else ZERO
        return percent_of(schedule.base_prize_pool, percentage)
    raise InvalidPrizeType(prize_type=type(schedule).__name__)


CALCULATORS = {
    FIXED: _fixed_lines,
    PERCENTAGE: _percentage_lines,
    SPECIAL: _special_lines,
}


def compute_payouts(prize_type: str, schedule, results) -> list[PayoutLine]:
    """Payout lines for ranked results; never contains a zero amount."""
    calculator = CALCULATORS.get(prize_type)
    if calculator is None or getattr(schedule, "prize_type", None) != prize_type:
        raise InvalidPrizeType(prize_type=prize_type)
    ranked = sorted((RankedResult.coerce(r) for r in results), key=lambda r: r.position)
    return calculator(schedule, ranked)

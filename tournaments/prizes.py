"""
Prize schedule normalization.

Organizers send prize configuration in one of three shapes (``fixed``,
``percentage``, ``special``), and fixed schedules additionally exist in two
historical encodings: the ordered ``amounts`` list and the legacy
``1st``..``5th`` rank keys. Every shape is decoded into one of the frozen
schedule classes below; ``as_dict`` produces the canonical stored form, which
decodes back to an equal schedule.
"""
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import ClassVar

from .exceptions import InvalidPrizeAmount, InvalidPrizeType

FIXED = "fixed"
PERCENTAGE = "percentage"
SPECIAL = "special"
PRIZE_TYPES = (FIXED, PERCENTAGE, SPECIAL)

RANK_LABELS = ("1st", "2nd", "3rd", "4th", "5th")
ZERO = Decimal("0")
CENT = Decimal("0.01")
# largest value a DecimalField(max_digits=14, decimal_places=2) holds
MAX_AMOUNT = Decimal("999999999999.99")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def round_money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _field(data: dict, *names, default=None):
    for name in names:
        if name in data:
            return data[name]
    return default


def to_amount(value, field: str = "amount", exact: bool = False) -> Decimal:
    """Coerce to a non-negative Decimal; absent or non-numeric values become 0.

    Money is rounded to cents unless ``exact`` is set (percentages keep
    their precision). Values too large to store raise ``InvalidPrizeAmount``.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return ZERO
    if not number.is_finite():
        return ZERO
    if number < 0:
        raise InvalidPrizeAmount(field=field, received=str(value))
    if number > MAX_AMOUNT:
        raise InvalidPrizeAmount("Prize amount is too large.", field=field, received=str(value))
    return number if exact else round_money(number)


def to_position(value, field: str = "position") -> int:
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        try:
            number = int(value)
        except (ValueError, OverflowError):
            return 0
    else:
        match = _LEADING_INT.match(str(value))
        if not match:
            return 0
        number = int(match.group(1))
    if number < 0:
        raise InvalidPrizeAmount("Prize positions must be non-negative integers.", field=field, received=str(value))
    return number


def _as_list(value) -> list:
    return value if isinstance(value, list) else []


@dataclass(frozen=True)
class PositionAmount:
    position: int
    amount: Decimal


@dataclass(frozen=True)
class PositionPercentage:
    position: int
    percentage: Decimal


@dataclass(frozen=True)
class SpecialPrize:
    category: str
    amount: Decimal
    is_percentage: bool = False


@dataclass(frozen=True)
class FixedSchedule:
    prize_type: ClassVar[str] = FIXED

    amounts: tuple = ()
    additional: tuple = ()

    def as_dict(self) -> dict:
        return {
            FIXED: {
                "amounts": [str(a) for a in self.amounts],
                "additional": [{"position": p.position, "amount": str(p.amount)} for p in self.additional],
            }
        }


@dataclass(frozen=True)
class PercentageSchedule:
    prize_type: ClassVar[str] = PERCENTAGE

    base_prize_pool: Decimal = ZERO
    # index 0 is the 1st place percentage
    percentages: tuple = (ZERO,) * len(RANK_LABELS)
    additional: tuple = ()

    def percentage_for_rank(self, rank: int) -> Decimal:
        if 1 <= rank <= len(self.percentages):
            return self.percentages[rank - 1]
        return ZERO

    def as_dict(self) -> dict:
        body = {"basePrizePool": str(self.base_prize_pool)}
        body.update({label: str(pct) for label, pct in zip(RANK_LABELS, self.percentages)})
        body["additional"] = [
            {"position": p.position, "percentage": str(p.percentage)} for p in self.additional
        ]
        return {PERCENTAGE: body}


@dataclass(frozen=True)
class SpecialSchedule:
    prize_type: ClassVar[str] = SPECIAL

    is_fixed: bool = True
    base_prize_pool: Decimal = ZERO
    special_prizes: tuple = ()

    def as_dict(self) -> dict:
        return {
            SPECIAL: {
                "isFixed": self.is_fixed,
                "basePrizePool": str(self.base_prize_pool),
                "specialPrizes": [
                    {"category": p.category, "amount": str(p.amount), "isPercentage": p.is_percentage}
                    for p in self.special_prizes
                ],
            }
        }


def _decode_fixed_amounts(data: dict) -> tuple:
    return tuple(to_amount(a, "amounts") for a in data["amounts"])


def _decode_fixed_legacy(data: dict) -> tuple:
    # only ranks that were sent; an omitted rank is not a zero prize
    return tuple(to_amount(data[label], label) for label in RANK_LABELS if label in data)


def _decode_fixed(data: dict) -> FixedSchedule:
    if isinstance(data.get("amounts"), list):
        amounts = _decode_fixed_amounts(data)
    else:
        amounts = _decode_fixed_legacy(data)
    additional = tuple(
        PositionAmount(
            position=to_position(_field(item, "position")),
            amount=to_amount(_field(item, "amount"), "additional.amount"),
        )
        for item in _as_list(data.get("additional"))
        if isinstance(item, dict)
    )
    return FixedSchedule(amounts=amounts, additional=additional)


def _decode_percentage(data: dict) -> PercentageSchedule:
    additional = tuple(
        PositionPercentage(
            position=to_position(_field(item, "position")),
            percentage=to_amount(_field(item, "percentage"), "additional.percentage", exact=True),
        )
        for item in _as_list(data.get("additional"))
        if isinstance(item, dict)
    )
    return PercentageSchedule(
        base_prize_pool=to_amount(_field(data, "basePrizePool", "base_prize_pool"), "basePrizePool"),
        percentages=tuple(to_amount(data.get(label), label, exact=True) for label in RANK_LABELS),
        additional=additional,
    )


def _decode_special(data: dict) -> SpecialSchedule:
    is_fixed = _field(data, "isFixed", "is_fixed")
    is_fixed = is_fixed if isinstance(is_fixed, bool) else True
    prizes = []
    for item in _as_list(_field(data, "specialPrizes", "special_prizes")):
        if not isinstance(item, dict):
            continue
        is_percentage = _field(item, "isPercentage", "is_percentage") is True
        prizes.append(
            SpecialPrize(
                category=str(_field(item, "category", default="") or ""),
                amount=to_amount(
                    _field(item, "amount"), "specialPrizes.amount", exact=is_percentage and not is_fixed
                ),
                is_percentage=is_percentage,
            )
        )
    return SpecialSchedule(
        is_fixed=is_fixed,
        base_prize_pool=to_amount(_field(data, "basePrizePool", "base_prize_pool"), "basePrizePool"),
        special_prizes=tuple(prizes),
    )


DECODERS = {
    FIXED: _decode_fixed,
    PERCENTAGE: _decode_percentage,
    SPECIAL: _decode_special,
}


def normalize_prize_schedule(prize_type: str, raw):
    """Decode caller-supplied prize configuration into a canonical schedule.

    ``raw`` is either the body for ``prize_type`` or an envelope keyed by it,
    e.g. ``{"fixed": {"amounts": [...]}}``.
    """
    decoder = DECODERS.get(prize_type)
    if decoder is None:
        raise InvalidPrizeType(prize_type=prize_type)
    data = raw if isinstance(raw, dict) else {}
    if isinstance(data.get(prize_type), dict):
        data = data[prize_type]
    schedule = decoder(data)
    pool = total_pool(schedule)
    if pool > MAX_AMOUNT:
        raise InvalidPrizeAmount("Total prize pool is too large.", field="prizes", received=str(pool))
    return schedule


def load_schedule(prize_type: str, stored):
    return normalize_prize_schedule(prize_type, stored)


def total_pool(schedule) -> Decimal:
    """Amount committed (and reserved from the organizer) for a schedule."""
    if isinstance(schedule, FixedSchedule):
        return sum(schedule.amounts, ZERO) + sum((p.amount for p in schedule.additional), ZERO)
    if isinstance(schedule, PercentageSchedule):
        return schedule.base_prize_pool
    if isinstance(schedule, SpecialSchedule):
        if schedule.is_fixed:
            return sum((p.amount for p in schedule.special_prizes), ZERO)
        return schedule.base_prize_pool
    raise InvalidPrizeType(prize_type=type(schedule).__name__)

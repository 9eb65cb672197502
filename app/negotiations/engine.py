"""Rule-based price negotiation for a single carrier offer.

Pure and synchronous: no I/O, no shared state. The caller persists the
resulting round and emits the matching event.

Rules, checked in this order (the order is the tie-break policy):

1. round >= MAX_ROUNDS             -> TRANSFER to a human, price ignored
2. offer <= asking * (1 + 8%)      -> ACCEPT
3. otherwise                       -> COUNTER at asking * (1 + ladder[round - 1])
"""

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from numbers import Real
from typing import Union

from app.errors import InvalidArgument

MAX_ROUNDS = 3
ACCEPTANCE_THRESHOLD = 0.08
# Markup over the asking rate we counter with, indexed by round - 1.
COUNTER_PERCENTAGES: tuple[float, ...] = (0.03, 0.055)


@dataclass(frozen=True)
class Accept:
    reason: str
    action: str = "ACCEPT"


@dataclass(frozen=True)
class Counter:
    counter_offer: int
    reason: str
    action: str = "COUNTER"


@dataclass(frozen=True)
class Transfer:
    reason: str
    action: str = "TRANSFER"


Decision = Union[Accept, Counter, Transfer]


def _require_positive_rate(name: str, value) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidArgument(f"{name} must be a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value) or value <= 0:
        raise InvalidArgument(f"{name} must be a positive number, got {value!r}")
    return value


def _require_round(value) -> int:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidArgument(f"round must be a whole number, got {value!r}")
    if not math.isfinite(value) or value != int(value):
        raise InvalidArgument(f"round must be a whole number, got {value!r}")
    if value < 1:
        raise InvalidArgument(f"round must be >= 1, got {value!r}")
    return int(value)


def counter_percentage(round_number: int) -> float:
    """Ladder step for a round, reusing the last step past the end of the ladder.

    With MAX_ROUNDS = 3 only rounds 1 and 2 ever reach the counter branch, so
    the clamp is not exercised through evaluate().
    """
    index = min(round_number - 1, len(COUNTER_PERCENTAGES) - 1)
    return COUNTER_PERCENTAGES[index]


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_counter_offer(asking_rate: float, round_number: int) -> int:
    # Decimal over str() so 1000 * 1.055 is exactly 1055, not 1055.0000000000002
    markup = Decimal(1) + Decimal(str(counter_percentage(round_number)))
    return round_half_up(Decimal(str(asking_rate)) * markup)


def within_acceptance_band(asking_rate: float, offered_rate: float) -> bool:
    """True when the offer is at most ACCEPTANCE_THRESHOLD above asking (inclusive)."""
    ceiling = Decimal(str(asking_rate)) * (Decimal(1) + Decimal(str(ACCEPTANCE_THRESHOLD)))
    return Decimal(str(offered_rate)) <= ceiling


def evaluate(asking_rate: float, offered_rate: float, round_number: int) -> Decision:
    """Decide how to answer a carrier's offer in a given negotiation round.

    Raises InvalidArgument for non-positive rates or a round that is not a
    whole number >= 1.
    """
    asking_rate = _require_positive_rate("loadboard_rate", asking_rate)
    offered_rate = _require_positive_rate("carrier_offer", offered_rate)
    round_number = _require_round(round_number)

    if round_number >= MAX_ROUNDS:
        return Transfer(
            reason=(
                f"Maximum negotiation rounds ({MAX_ROUNDS}) reached. "
                "Transferring to sales representative."
            )
        )

    percent_above = (offered_rate - asking_rate) / asking_rate * 100
    threshold_percent = ACCEPTANCE_THRESHOLD * 100

    if within_acceptance_band(asking_rate, offered_rate):
        if offered_rate < asking_rate:
            reason = (
                f"Carrier offer ${offered_rate:,.2f} is {abs(percent_above):.2f}% below "
                f"loadboard rate ${asking_rate:,.2f}. Accepting offer."
            )
        elif offered_rate == asking_rate:
            reason = f"Carrier offer matches loadboard rate ${asking_rate:,.2f}. Accepting offer."
        else:
            reason = (
                f"Carrier offer ${offered_rate:,.2f} is {percent_above:.2f}% above "
                f"loadboard rate, within the {threshold_percent:g}% acceptance band. "
                "Accepting offer."
            )
        return Accept(reason=reason)

    counter_offer = compute_counter_offer(asking_rate, round_number)
    return Counter(
        counter_offer=counter_offer,
        reason=(
            f"Carrier offer ${offered_rate:,.2f} is {percent_above:.2f}% above loadboard "
            f"rate ${asking_rate:,.2f}. Counter-offering at ${counter_offer:,}."
        ),
    )

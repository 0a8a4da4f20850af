"""
Pot-by-pot settlement.

Each pot is contested only by its eligible, non-folded seats. Ties split the
pot evenly; the odd chips all go to the first winner clockwise from the
button, which is also the first seat to act after the flop.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from .cards import HandValue, best_hand, describe_hand
from .errors import InvariantViolation
from .pots import PotLedger
from .schemas import Hand, Payout, Seat

logger = logging.getLogger(__name__)


def odd_chip_order(order: Sequence[str], button_seat_id: str) -> List[str]:
    """Seat ids clockwise starting with the seat left of the button."""
    start = (order.index(button_seat_id) + 1) % len(order)
    return list(order[start:]) + list(order[:start])


def split_pot(amount: int, winners: Sequence[str]) -> Dict[str, int]:
    """Even split with the whole remainder on ``winners[0]``."""
    if not winners:
        raise InvariantViolation(f"pot of {amount} has no winner")
    share, remainder = divmod(amount, len(winners))
    shares = {seat_id: share for seat_id in winners}
    shares[winners[0]] += remainder
    return shares


def settle_showdown(
    *,
    ledger: PotLedger,
    hands: Mapping[str, Hand],
    seats: Mapping[str, Seat],
    community_cards: Sequence[str],
    payout_order: Sequence[str],
    emit: Optional[Callable[..., None]] = None,
) -> List[Payout]:
    payouts: List[Payout] = []
    values: Dict[str, HandValue] = {}
    index = 0
    while ledger.pots:
        pot = ledger.pop_pot()
        if pot.amount == 0:
            index += 1
            continue
        contenders = [seat_id for seat_id in payout_order if seat_id in pot.eligible and not hands[seat_id].folded]
        if not contenders:
            raise InvariantViolation(f"pot {index} of {pot.amount} has no eligible contender")

        if len(contenders) == 1:
            winners = contenders
        else:
            for seat_id in contenders:
                if seat_id not in values:
                    values[seat_id] = best_hand(list(hands[seat_id].hole_cards) + list(community_cards))
            best = max(values[seat_id] for seat_id in contenders)
            winners = [seat_id for seat_id in contenders if values[seat_id] == best]

        shares = split_pot(pot.amount, winners)
        for seat_id in winners:
            seats[seat_id].stack += shares[seat_id]
            described = describe_hand(values[seat_id]) if seat_id in values else None
            payouts.append(Payout(seat_id=seat_id, amount=shares[seat_id], pot_index=index, hand=described))
        logger.debug("pot %d (%d) -> %s", index, pot.amount, shares)
        if emit is not None:
            emit(
                "pot_settled",
                {
                    "pot_index": index,
                    "amount": pot.amount,
                    "contenders": contenders,
                    "shares": shares,
                    "hands": {seat_id: describe_hand(values[seat_id]) for seat_id in contenders if seat_id in values},
                },
            )
        index += 1
    return payouts


def award_uncontested(
    *,
    ledger: PotLedger,
    survivor: str,
    seats: Mapping[str, Seat],
    emit: Optional[Callable[..., None]] = None,
) -> List[Payout]:
    """Everyone else folded: every pot goes to ``survivor`` without a showdown."""
    payouts: List[Payout] = []
    index = 0
    while ledger.pots:
        pot = ledger.pop_pot()
        if pot.amount > 0:
            seats[survivor].stack += pot.amount
            payouts.append(Payout(seat_id=survivor, amount=pot.amount, pot_index=index))
            if emit is not None:
                emit(
                    "pot_settled",
                    {"pot_index": index, "amount": pot.amount, "contenders": [survivor], "shares": {survivor: pot.amount}},
                )
        index += 1
    return payouts

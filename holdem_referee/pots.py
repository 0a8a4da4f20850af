"""
Main pot / side pot bookkeeping.

Chips committed during a street are held as a flat street total plus a
per-seat tally. When the street closes, ``settle_street`` slices that total
into tiers at every all-in level, so a seat that is all-in for X only ever
becomes eligible for chips matched up to X.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Sequence

from .schemas import Hand, Pot

logger = logging.getLogger(__name__)


class PotLedger:
    def __init__(self, seat_order: Sequence[str]) -> None:
        self._order = list(seat_order)
        self._pots: List[Pot] = [Pot(amount=0)]
        self._street: Dict[str, int] = {}

    @property
    def pots(self) -> List[Pot]:
        return list(self._pots)

    @property
    def street_total(self) -> int:
        return sum(self._street.values())

    @property
    def total(self) -> int:
        return sum(pot.amount for pot in self._pots) + self.street_total

    def committed(self, seat_id: str) -> int:
        return self._street.get(seat_id, 0)

    def commit(self, seat_id: str, amount: int) -> None:
        self._street[seat_id] = self._street.get(seat_id, 0) + amount

    def settle_street(self, hands: Mapping[str, Hand]) -> List[Pot]:
        folded = {seat_id for seat_id, hand in hands.items() if hand.folded}
        for pot in self._pots:
            pot.eligible = [seat_id for seat_id in pot.eligible if seat_id not in folded]

        street = {seat_id: amount for seat_id, amount in self._street.items() if amount > 0}
        if street:
            top = max(street.values())
            caps = sorted(
                {
                    street[seat_id]
                    for seat_id, hand in hands.items()
                    if hand.all_in and not hand.folded and 0 < street.get(seat_id, 0) < top
                }
            )
            previous = 0
            for level in caps + [top]:
                amount = sum(min(c, level) - min(c, previous) for c in street.values())
                eligible = [
                    seat_id
                    for seat_id in self._order
                    if street.get(seat_id, 0) >= level and seat_id not in folded
                ]
                self._add_tier(amount, eligible)
                previous = level

        self._street.clear()
        return self.pots

    def _add_tier(self, amount: int, eligible: List[str]) -> None:
        current = self._pots[-1]
        if current.amount == 0 or not eligible or set(current.eligible) == set(eligible):
            current.amount += amount
            if eligible and not current.eligible:
                current.eligible = eligible
            return
        logger.debug("side pot of %d opened for %s", amount, eligible)
        self._pots.append(Pot(amount=amount, eligible=eligible))

    def pop_pot(self) -> Pot:
        return self._pots.pop(0)

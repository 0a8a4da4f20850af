"""
Turn-taking state machine for a single betting street.

One seat is ever awaiting action. Each turn goes

    AWAITING_ACTION(seat) -> VALIDATED -> APPLIED -> NEXT_SEAT

until either a single non-folded seat is left (HAND_OVER) or every seat that
can still act has acted and matched the street's highest commitment
(STREET_COMPLETE).
"""

from __future__ import annotations

import enum
import logging
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from .errors import InvariantViolation
from .gateway import ILLEGAL_REPAIRS, TIMEOUT, DecisionGateway
from .pots import PotLedger
from .schemas import Action, ActionRecord, Bet, Check, Fold, Hand, Seat, SeatView, action_kind

logger = logging.getLogger(__name__)

EmitFn = Callable[..., None]


class TurnState(enum.Enum):
    AWAITING_ACTION = enum.auto()
    VALIDATED = enum.auto()
    APPLIED = enum.auto()
    NEXT_SEAT = enum.auto()
    STREET_COMPLETE = enum.auto()
    HAND_OVER = enum.auto()


class BettingRound:
    def __init__(
        self,
        *,
        street: str,
        seats: Sequence[Seat],
        hands: Mapping[str, Hand],
        ledger: PotLedger,
        gateway: DecisionGateway,
        first_to_act: str,
        min_raise: int,
        positions: Mapping[str, str],
        community_cards: Sequence[str],
        narrative: List[str],
        actions: List[ActionRecord],
        chips_in_play: int,
        emit: EmitFn,
    ) -> None:
        self.street = street
        self._seats: Dict[str, Seat] = {seat.seat_id: seat for seat in seats}
        self._order = [seat.seat_id for seat in seats]
        self._hands = hands
        self._ledger = ledger
        self._gateway = gateway
        self._first = first_to_act
        self._min_raise = min_raise
        self._positions = positions
        self._community = tuple(community_cards)
        self._narrative = narrative
        self._actions = actions
        self._chips_in_play = chips_in_play
        self._emit = emit
        self.state = TurnState.AWAITING_ACTION
        self.highest = max((hand.committed for hand in hands.values()), default=0)
        self.turns: List[str] = []

    async def run(self) -> TurnState:
        cursor = self._order.index(self._first)
        while True:
            if self._contenders() <= 1:
                self.state = TurnState.HAND_OVER
                return self.state
            seat_id = self._next_to_act(cursor)
            if seat_id is None:
                self.state = TurnState.STREET_COMPLETE
                return self.state
            await self._take_turn(seat_id)
            self.state = TurnState.NEXT_SEAT
            cursor = (self._order.index(seat_id) + 1) % len(self._order)

    def _contenders(self) -> int:
        return sum(1 for hand in self._hands.values() if not hand.folded)

    def _needs_action(self, hand: Hand) -> bool:
        return hand.can_act and (not hand.acted or hand.committed < self.highest)

    def _next_to_act(self, cursor: int) -> Optional[str]:
        able = [seat_id for seat_id in self._order if self._hands[seat_id].can_act]
        if len(able) == 1 and self._hands[able[0]].committed >= self.highest:
            # nobody left to bet against
            return None
        for offset in range(len(self._order)):
            seat_id = self._order[(cursor + offset) % len(self._order)]
            if self._needs_action(self._hands[seat_id]):
                return seat_id
        return None

    def _view(self, seat: Seat, hand: Hand) -> SeatView:
        return SeatView(
            seat_id=seat.seat_id,
            name=seat.name,
            street=self.street,
            hole_cards=tuple(hand.hole_cards),
            community_cards=self._community,
            to_call=self.highest - hand.committed,
            pot=self._ledger.total,
            stack=seat.stack,
            committed=hand.committed,
            min_raise=self._min_raise,
            position=self._positions.get(seat.seat_id, ""),
            narrative=tuple(self._narrative),
            notes=seat.notes or None,
        )

    async def _take_turn(self, seat_id: str) -> None:
        seat = self._seats[seat_id]
        hand = self._hands[seat_id]
        if not hand.can_act:
            raise InvariantViolation(f"seat {seat_id} asked to act while folded or all-in")

        self.state = TurnState.AWAITING_ACTION
        self.turns.append(seat_id)
        view = self._view(seat, hand)
        self._emit("awaiting_action", {"seat": seat_id, "to_call": view.to_call}, active_seat=seat_id)

        decision = await self._gateway.decide(view)
        self.state = TurnState.VALIDATED
        if decision.repair is not None:
            if decision.repair == TIMEOUT:
                seat.timeouts += 1
            elif decision.repair in ILLEGAL_REPAIRS:
                seat.illegal_actions += 1
            self._emit(
                "repair",
                {
                    "seat": seat_id,
                    "kind": decision.repair,
                    "attempted": _proposal_payload(decision.proposal),
                    "resolved": action_kind(decision.action),
                    "elapsed_ms": decision.elapsed_ms,
                },
                active_seat=seat_id,
            )

        label = self._apply(seat, hand, decision.action, view.to_call)
        self.state = TurnState.APPLIED
        self._check_chips()
        amount = decision.action.amount if isinstance(decision.action, Bet) else 0
        self._actions.append(
            ActionRecord(
                seat_id=seat_id,
                street=self.street,
                kind=label,
                amount=amount,
                reasoning=decision.action.reasoning,
            )
        )
        self._emit(
            "action",
            {
                "seat": seat_id,
                "street": self.street,
                "action": action_kind(decision.action),
                "label": label,
                "amount": amount,
                "to_call": view.to_call,
                "stack_after": seat.stack,
                "committed": hand.committed,
                "all_in": hand.all_in,
                "reasoning": decision.action.reasoning,
                "elapsed_ms": decision.elapsed_ms,
            },
            active_seat=seat_id,
        )

    def _apply(self, seat: Seat, hand: Hand, action: Action, to_call: int) -> str:
        if isinstance(action, Fold):
            hand.folded = True
            hand.acted = True
            self._narrative.append(f"Player {seat.name} folded")
            return "fold"

        if isinstance(action, Check):
            if to_call != 0:
                raise InvariantViolation(f"seat {seat.seat_id} checked facing {to_call}")
            hand.acted = True
            self._narrative.append(f"Player {seat.name} checked")
            return "check"

        amount = action.amount
        if amount <= 0 or amount > seat.stack:
            raise InvariantViolation(f"seat {seat.seat_id} bet {amount} with stack {seat.stack}")
        previous_high = self.highest
        seat.stack -= amount
        hand.committed += amount
        hand.total_committed += amount
        self._ledger.commit(seat.seat_id, amount)
        hand.acted = True
        if seat.stack == 0:
            hand.all_in = True

        if hand.committed > self.highest:
            self.highest = hand.committed
            for other_id, other in self._hands.items():
                if other_id != seat.seat_id and other.can_act:
                    other.acted = False

        if hand.committed <= previous_high:
            label = "call"
            text = f"Player {seat.name} called {amount}"
        elif previous_high == 0:
            label = "bet"
            text = f"Player {seat.name} bet {amount}"
        else:
            label = "raise"
            text = f"Player {seat.name} raised to {hand.committed}"
        if hand.all_in:
            text += " and is all-in"
        self._narrative.append(text)
        return label

    def _check_chips(self) -> None:
        on_table = sum(seat.stack for seat in self._seats.values()) + self._ledger.total
        if on_table != self._chips_in_play:
            raise InvariantViolation(
                f"chip conservation broken on the {self.street}: {on_table} != {self._chips_in_play}"
            )


def _proposal_payload(proposal) -> Optional[Dict[str, object]]:
    if proposal is None:
        return None
    return {"kind": proposal.kind, "amount": proposal.amount}

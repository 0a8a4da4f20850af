"""
Dataclasses for the referee's data model.

Seats and per-seat hands are mutable engine state. Everything handed to a
decision-maker (``SeatView``, ``RoundSummary``) is a frozen projection, and
everything coming back is narrowed to ``Proposal`` at the gateway and then to
one of the closed ``Action`` variants by the repair policy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Sequence, Tuple, Union

STREETS = ("preflop", "flop", "turn", "river")

EMPTY_SEAT = "empty"
HUMAN_SEAT = "human"

ProposalKind = Literal["bet", "call", "raise", "check", "fold"]
PROPOSAL_KINDS: Tuple[str, ...] = ("bet", "call", "raise", "check", "fold")


@dataclass(slots=True)
class Seat:
    seat_id: str
    name: str
    binding: str
    stack: int
    position: int = 0
    notes: str = ""
    # per-game counters maintained by the engine
    timeouts: int = 0
    illegal_actions: int = 0

    @property
    def is_empty(self) -> bool:
        return self.binding == EMPTY_SEAT


@dataclass(slots=True)
class Hand:
    seat_id: str
    hole_cards: List[str]
    folded: bool = False
    all_in: bool = False
    acted: bool = False
    committed: int = 0
    total_committed: int = 0

    @property
    def can_act(self) -> bool:
        return not self.folded and not self.all_in


@dataclass(slots=True)
class Pot:
    amount: int
    eligible: List[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class Proposal:
    """What a decision-maker asked for, before validation.

    ``amount`` is the number of chips to put in now for ``bet`` and the
    increment over the call for ``raise``; it is ignored for other kinds.
    """

    kind: ProposalKind
    amount: Optional[int] = None
    reasoning: str = ""


@dataclass(frozen=True, slots=True)
class Bet:
    amount: int
    reasoning: str = ""


@dataclass(frozen=True, slots=True)
class Check:
    reasoning: str = ""


@dataclass(frozen=True, slots=True)
class Fold:
    reasoning: str = ""


Action = Union[Bet, Check, Fold]


def action_kind(action: Action) -> str:
    if isinstance(action, Bet):
        return "bet"
    if isinstance(action, Check):
        return "check"
    return "fold"


@dataclass(frozen=True, slots=True)
class SeatView:
    seat_id: str
    name: str
    street: str
    hole_cards: Tuple[str, ...]
    community_cards: Tuple[str, ...]
    to_call: int
    pot: int
    stack: int
    committed: int
    min_raise: int
    position: str
    narrative: Tuple[str, ...]
    notes: Optional[str] = None

    @property
    def legal_kinds(self) -> Tuple[str, ...]:
        if self.to_call == 0:
            return ("bet", "check")
        return ("call", "raise", "fold")


@dataclass(frozen=True, slots=True)
class TableSnapshot:
    street: str
    button: int
    community_cards: Tuple[str, ...]
    stacks: Dict[str, int]
    active_seat: Optional[str]
    pot_total: int

    def to_payload(self) -> Dict[str, Any]:
        return {
            "street": self.street,
            "button": self.button,
            "community_cards": list(self.community_cards),
            "stacks": dict(self.stacks),
            "active_seat": self.active_seat,
            "pot_total": self.pot_total,
        }


@dataclass(frozen=True, slots=True)
class Payout:
    seat_id: str
    amount: int
    pot_index: int
    hand: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ActionRecord:
    seat_id: str
    street: str
    kind: str
    amount: int
    reasoning: str


@dataclass(frozen=True, slots=True)
class RoundSummary:
    """What a seat gets to reflect on once a hand is settled."""

    hand_id: str
    seat_id: str
    hole_cards: Tuple[str, ...]
    community_cards: Tuple[str, ...]
    final_pot: int
    winners: Tuple[Tuple[str, int], ...]
    actions: Tuple[ActionRecord, ...]
    narrative: Tuple[str, ...]


@dataclass(slots=True)
class HandResult:
    hand_id: str
    button: int
    community_cards: List[str]
    starting_stacks: Dict[str, int]
    final_stacks: Dict[str, int]
    payouts: List[Payout]
    actions: List[ActionRecord]
    narrative: List[str]
    events: List[Dict[str, Any]]
    showdown: bool
    hole_cards: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def deltas(self) -> Dict[str, int]:
        return {
            seat_id: self.final_stacks[seat_id] - self.starting_stacks[seat_id]
            for seat_id in self.final_stacks
        }

    @property
    def pot_total(self) -> int:
        return sum(payout.amount for payout in self.payouts)

    def winners(self) -> List[Tuple[str, int]]:
        totals: Dict[str, int] = {}
        for payout in self.payouts:
            totals[payout.seat_id] = totals.get(payout.seat_id, 0) + payout.amount
        return list(totals.items())


def seat_order(seats: Sequence[Seat]) -> List[str]:
    return [seat.seat_id for seat in sorted(seats, key=lambda s: s.position)]

"""
Texas Hold'em round orchestrator.

Runs one hand end to end: blinds, hole cards, the four betting streets with
their community reveals, and settlement. Decision-makers are reached only
through the injected ``DecisionGateway`` and every discrete event is handed to
the injected event sink together with a table snapshot.
"""

from __future__ import annotations

import functools
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .betting import BettingRound, TurnState
from .cards import Deck
from .errors import ConfigError, InvariantViolation
from .gateway import DecisionGateway
from .logging_utils import EventSink
from .pots import PotLedger
from .schemas import (
    STREETS,
    ActionRecord,
    Hand,
    HandResult,
    Payout,
    Seat,
    TableSnapshot,
)
from .showdown import award_uncontested, odd_chip_order, settle_showdown

logger = logging.getLogger(__name__)

BOARD_CARDS = {"flop": 3, "turn": 1, "river": 1}


@dataclass(slots=True)
class TableConfig:
    seat_count: int = 6
    small_blind: int = 5
    big_blind: int = 10
    min_raise: int = 5
    starting_stack: int = 2000
    time_per_decision_ms: int = 60000
    table_id: str = "table-1"

    def validate(self) -> None:
        if self.seat_count < 2:
            raise ConfigError("a table needs at least two seats")
        if self.small_blind < 0 or self.big_blind < 0 or self.min_raise < 0:
            raise ConfigError("blinds and minimum raise must be non-negative")
        if self.small_blind > self.big_blind:
            raise ConfigError("small blind cannot exceed the big blind")
        if self.starting_stack <= 0:
            raise ConfigError("starting stack must be positive")
        if self.time_per_decision_ms <= 0:
            raise ConfigError("time_per_decision_ms must be positive")


@dataclass(slots=True)
class Round:
    """Everything that belongs to one hand. Owned by the engine."""

    hand_id: str
    button_seat: str
    button_position: int
    seats: List[Seat]
    hands: Dict[str, Hand]
    ledger: PotLedger
    street: str = "preflop"
    community_cards: List[str] = field(default_factory=list)
    narrative: List[str] = field(default_factory=list)
    actions: List[ActionRecord] = field(default_factory=list)
    events: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def order(self) -> List[str]:
        return [seat.seat_id for seat in self.seats]

    def seat(self, seat_id: str) -> Seat:
        for seat in self.seats:
            if seat.seat_id == seat_id:
                return seat
        raise KeyError(seat_id)

    def survivors(self) -> List[str]:
        return [seat_id for seat_id in self.order if not self.hands[seat_id].folded]


def seat_after(order: Sequence[str], seat_id: str, steps: int = 1) -> str:
    return order[(order.index(seat_id) + steps) % len(order)]


def position_labels(order: Sequence[str], button_seat: str) -> Dict[str, str]:
    start = order.index(button_seat)
    rotated = list(order[start:]) + list(order[:start])
    labels = {rotated[0]: "Button"}
    labels[rotated[1 % len(rotated)]] = "Small Blind"
    labels[rotated[2 % len(rotated)]] = "Big Blind"
    middle = rotated[3:]
    if len(middle) <= 1:
        names = ["Under the Gun"][: len(middle)]
    elif len(middle) == 2:
        names = ["Under the Gun", "Cutoff"]
    else:
        extra = [f"Under the Gun +{idx}" for idx in range(1, len(middle) - 2)]
        names = ["Under the Gun"] + extra + ["Hijack", "Cutoff"]
    labels.update(zip(middle, names))
    return labels


def table_participants(seats: Sequence[Seat]) -> List[Seat]:
    ids = [seat.seat_id for seat in seats]
    if len(set(ids)) != len(ids):
        raise ConfigError(f"duplicate seat ids in {ids}")
    active = sorted((seat for seat in seats if not seat.is_empty and seat.stack > 0), key=lambda s: s.position)
    if len(active) < 2:
        raise ConfigError("a hand needs at least two occupied seats with chips")
    return active


class HoldemEngine:
    """
    Plays single hands for one table.

    The engine keeps no state between hands; a session (or any caller) owns
    the seats and hands them in with a fresh deck for every hand.
    """

    def __init__(
        self,
        config: TableConfig,
        gateway: DecisionGateway,
        events: Optional[EventSink] = None,
    ) -> None:
        config.validate()
        self.config = config
        self.gateway = gateway
        self.events = events

    async def play_hand(
        self,
        seats: Sequence[Seat],
        button_position: int,
        deck: Deck,
        hand_id: Optional[str] = None,
    ) -> HandResult:
        if len(deck) != 52:
            raise ValueError("every hand needs a fresh 52-card deck")
        players = table_participants(seats)
        button = next(
            (seat for seat in players if seat.position >= button_position),
            players[0],
        )
        rnd = Round(
            hand_id=hand_id or f"{self.config.table_id}-{uuid.uuid4().hex[:8]}",
            button_seat=button.seat_id,
            button_position=button.position,
            seats=players,
            hands={seat.seat_id: Hand(seat_id=seat.seat_id, hole_cards=[]) for seat in players},
            ledger=PotLedger([seat.seat_id for seat in players]),
        )
        starting = {seat.seat_id: seat.stack for seat in players}
        chips_in_play = sum(starting.values())
        positions = position_labels(rnd.order, rnd.button_seat)

        logger.info("hand %s starting, button %s", rnd.hand_id, rnd.button_seat)
        self._emit(
            rnd,
            "hand_start",
            {
                "table_id": self.config.table_id,
                "button_seat": rnd.button_seat,
                "seats": {seat.seat_id: {"name": seat.name, "stack": seat.stack} for seat in players},
                "blinds": {"sb": self.config.small_blind, "bb": self.config.big_blind},
            },
        )

        sb_seat = seat_after(rnd.order, rnd.button_seat, 1)
        bb_seat = seat_after(rnd.order, rnd.button_seat, 2)
        self._post_blind(rnd, sb_seat, self.config.small_blind, "small blind")
        self._post_blind(rnd, bb_seat, self.config.big_blind, "big blind")

        self._deal_hole_cards(rnd, deck, sb_seat)

        outcome = TurnState.STREET_COMPLETE
        for street in STREETS:
            rnd.street = street
            if street != "preflop":
                self._reveal(rnd, deck, street)
                for hand in rnd.hands.values():
                    hand.acted = False
                first = seat_after(rnd.order, rnd.button_seat, 1)
            else:
                first = seat_after(rnd.order, rnd.button_seat, 3)

            betting = BettingRound(
                street=street,
                seats=rnd.seats,
                hands=rnd.hands,
                ledger=rnd.ledger,
                gateway=self.gateway,
                first_to_act=first,
                min_raise=self.config.min_raise,
                positions=positions,
                community_cards=rnd.community_cards,
                narrative=rnd.narrative,
                actions=rnd.actions,
                chips_in_play=chips_in_play,
                emit=functools.partial(self._emit, rnd),
            )
            outcome = await betting.run()

            pots = rnd.ledger.settle_street(rnd.hands)
            for hand in rnd.hands.values():
                hand.committed = 0
            self._emit(
                rnd,
                "street_complete",
                {
                    "street": street,
                    "outcome": outcome.name.lower(),
                    "pots": [{"amount": pot.amount, "eligible": list(pot.eligible)} for pot in pots],
                },
            )
            if outcome is TurnState.HAND_OVER:
                break

        rnd.street = "showdown"
        payouts = self._settle(rnd, outcome)

        final = {seat.seat_id: seat.stack for seat in players}
        if sum(final.values()) != chips_in_play or rnd.ledger.total != 0:
            raise InvariantViolation(
                f"hand {rnd.hand_id} ended with {sum(final.values())} chips on the table, expected {chips_in_play}"
            )
        self._emit(
            rnd,
            "hand_end",
            {
                "final_stacks": final,
                "payouts": [{"seat": p.seat_id, "amount": p.amount, "pot_index": p.pot_index, "hand": p.hand} for p in payouts],
            },
        )
        return HandResult(
            hand_id=rnd.hand_id,
            button=rnd.button_position,
            community_cards=list(rnd.community_cards),
            starting_stacks=starting,
            final_stacks=final,
            payouts=payouts,
            actions=list(rnd.actions),
            narrative=list(rnd.narrative),
            events=list(rnd.events),
            showdown=outcome is not TurnState.HAND_OVER,
            hole_cards={seat_id: list(hand.hole_cards) for seat_id, hand in rnd.hands.items()},
        )

    def _post_blind(self, rnd: Round, seat_id: str, amount: int, blind_type: str) -> None:
        seat = rnd.seat(seat_id)
        hand = rnd.hands[seat_id]
        posted = min(amount, seat.stack)
        seat.stack -= posted
        hand.committed += posted
        hand.total_committed += posted
        rnd.ledger.commit(seat_id, posted)
        if seat.stack == 0:
            hand.all_in = True
        reasoning = f"Posted the {blind_type}"
        rnd.actions.append(
            ActionRecord(seat_id=seat_id, street="preflop", kind="blind", amount=posted, reasoning=reasoning)
        )
        rnd.narrative.append(f"Player {seat.name} posted the {blind_type}")
        self._emit(rnd, "blind", {"seat": seat_id, "amount": posted, "type": blind_type, "reasoning": reasoning})

    def _deal_hole_cards(self, rnd: Round, deck: Deck, first_seat: str) -> None:
        start = rnd.order.index(first_seat)
        for offset in range(len(rnd.order)):
            seat_id = rnd.order[(start + offset) % len(rnd.order)]
            rnd.hands[seat_id].hole_cards = deck.deal(2)
            self._emit(rnd, "deal_hole", {"seat": seat_id, "cards": list(rnd.hands[seat_id].hole_cards)})

    def _reveal(self, rnd: Round, deck: Deck, street: str) -> None:
        cards = deck.deal(BOARD_CARDS[street])
        rnd.community_cards.extend(cards)
        if street == "flop":
            rnd.narrative.append(f"The flop cards are {', '.join(cards)}")
        else:
            rnd.narrative.append(f"The {street} card is {cards[0]}")
        self._emit(rnd, "street_transition", {"street": street, "cards": cards, "board": list(rnd.community_cards)})

    def _settle(self, rnd: Round, outcome: TurnState) -> List[Payout]:
        survivors = rnd.survivors()
        seats = {seat.seat_id: seat for seat in rnd.seats}
        emit = functools.partial(self._emit, rnd)
        if len(survivors) == 1:
            return award_uncontested(ledger=rnd.ledger, survivor=survivors[0], seats=seats, emit=emit)
        if outcome is TurnState.HAND_OVER:
            raise InvariantViolation("hand reported over with more than one contender")
        return settle_showdown(
            ledger=rnd.ledger,
            hands=rnd.hands,
            seats=seats,
            community_cards=rnd.community_cards,
            payout_order=odd_chip_order(rnd.order, rnd.button_seat),
            emit=emit,
        )

    def _snapshot(self, rnd: Round, active_seat: Optional[str]) -> TableSnapshot:
        return TableSnapshot(
            street=rnd.street,
            button=rnd.button_position,
            community_cards=tuple(rnd.community_cards),
            stacks={seat.seat_id: seat.stack for seat in rnd.seats},
            active_seat=active_seat,
            pot_total=rnd.ledger.total,
        )

    def _emit(
        self,
        rnd: Round,
        event_type: str,
        payload: Dict[str, Any],
        active_seat: Optional[str] = None,
    ) -> None:
        body = dict(payload)
        body["hand_id"] = rnd.hand_id
        body["snapshot"] = self._snapshot(rnd, active_seat).to_payload()
        rnd.events.append({"type": event_type, "payload": body})
        if self.events is not None:
            self.events.log(event_type, body)

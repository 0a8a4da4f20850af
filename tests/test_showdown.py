"""
Tests for pot-by-pot settlement.
"""

import pytest

from holdem_referee.errors import InvariantViolation
from holdem_referee.pots import PotLedger
from holdem_referee.schemas import Hand, Seat
from holdem_referee.showdown import award_uncontested, odd_chip_order, settle_showdown, split_pot


def _table(holes, stacks=None, folded=(), all_in=()):
    seats = {
        seat_id: Seat(seat_id=seat_id, name=seat_id, binding="call", stack=(stacks or {}).get(seat_id, 0), position=idx)
        for idx, seat_id in enumerate(holes)
    }
    hands = {
        seat_id: Hand(seat_id=seat_id, hole_cards=cards, folded=seat_id in folded, all_in=seat_id in all_in)
        for seat_id, cards in holes.items()
    }
    return seats, hands


class TestSplitting:
    def test_even_split(self):
        assert split_pot(100, ["A", "B"]) == {"A": 50, "B": 50}

    def test_remainder_goes_to_first_winner(self):
        assert split_pot(25, ["C", "A"]) == {"C": 13, "A": 12}
        assert split_pot(11, ["B", "C", "A"]) == {"B": 5, "C": 3, "A": 3}

    def test_no_winner_is_fatal(self):
        with pytest.raises(InvariantViolation):
            split_pot(10, [])

    def test_odd_chip_order_starts_left_of_button(self):
        assert odd_chip_order(["A", "B", "C", "D"], "C") == ["D", "A", "B", "C"]
        assert odd_chip_order(["A", "B"], "B") == ["A", "B"]


class TestSettleShowdown:
    board = ["2c", "7d", "9h", "Js", "4c"]

    def test_best_hand_takes_each_pot(self):
        seats, hands = _table(
            {"A": ["Kh", "Kd"], "B": ["Ah", "As"], "C": ["3d", "5s"]},
            all_in=("A", "B", "C"),
        )
        ledger = PotLedger(["A", "B", "C"])
        ledger.commit("A", 100)
        ledger.commit("B", 40)
        ledger.commit("C", 100)
        ledger.settle_street(hands)
        payouts = settle_showdown(
            ledger=ledger,
            hands=hands,
            seats=seats,
            community_cards=self.board,
            payout_order=["B", "C", "A"],
        )
        assert [(p.seat_id, p.amount, p.pot_index) for p in payouts] == [("B", 120, 0), ("A", 120, 1)]
        assert {seat_id: seat.stack for seat_id, seat in seats.items()} == {"A": 120, "B": 120, "C": 0}
        assert payouts[0].hand.startswith("One Pair")
        assert ledger.total == 0

    def test_tie_splits_with_odd_chip_clockwise(self):
        seats, hands = _table(
            {"A": ["2h", "3h"], "B": ["2d", "3d"], "C": ["2s", "3s"]},
            folded=("B",),
        )
        ledger = PotLedger(["A", "B", "C"])
        ledger.commit("A", 10)
        ledger.commit("B", 5)
        ledger.commit("C", 10)
        ledger.settle_street(hands)
        settle_showdown(
            ledger=ledger,
            hands=hands,
            seats=seats,
            community_cards=["As", "Ks", "Qs", "Js", "Ts"],
            payout_order=["B", "C", "A"],
        )
        assert seats["C"].stack == 13
        assert seats["A"].stack == 12
        assert seats["B"].stack == 0

    def test_single_contender_skips_evaluation(self):
        seats, hands = _table({"A": [], "B": []}, folded=("B",))
        ledger = PotLedger(["A", "B"])
        ledger.commit("A", 10)
        ledger.commit("B", 10)
        ledger.settle_street(hands)
        payouts = settle_showdown(
            ledger=ledger, hands=hands, seats=seats, community_cards=[], payout_order=["A", "B"]
        )
        assert [(p.seat_id, p.amount, p.hand) for p in payouts] == [("A", 20, None)]

    def test_emits_pot_settled(self):
        seats, hands = _table({"A": ["Kh", "Kd"], "B": ["Ah", "As"]})
        ledger = PotLedger(["A", "B"])
        ledger.commit("A", 50)
        ledger.commit("B", 50)
        ledger.settle_street(hands)
        emitted = []
        settle_showdown(
            ledger=ledger,
            hands=hands,
            seats=seats,
            community_cards=self.board,
            payout_order=["A", "B"],
            emit=lambda event_type, payload: emitted.append((event_type, payload)),
        )
        assert emitted[0][0] == "pot_settled"
        assert emitted[0][1]["shares"] == {"B": 100}


class TestUncontested:
    def test_survivor_takes_every_pot(self):
        seats, hands = _table({"A": [], "B": [], "C": []}, folded=("B", "C"))
        ledger = PotLedger(["A", "B", "C"])
        ledger.commit("A", 30)
        ledger.commit("B", 10)
        ledger.commit("C", 30)
        ledger.settle_street(hands)
        payouts = award_uncontested(ledger=ledger, survivor="A", seats=seats)
        assert sum(p.amount for p in payouts) == 70
        assert seats["A"].stack == 70
        assert ledger.total == 0

"""
End-to-end hand tests for the round orchestrator.
"""

import pytest

from conftest import ScriptedAgent, proposal
from holdem_referee.agents.random_agent import RandomAgent
from holdem_referee.cards import Deck
from holdem_referee.engine import HoldemEngine, TableConfig, position_labels
from holdem_referee.errors import ConfigError, InvariantViolation
from holdem_referee.gateway import Decision
from holdem_referee.schemas import Bet


def _agents(*scripts):
    return {f"seat{idx}": ScriptedAgent(script) for idx, script in enumerate(scripts)}


def _turns(events, street):
    return [
        record["payload"]["seat"]
        for record in events.of_type("awaiting_action")
        if record["payload"]["snapshot"]["street"] == street
    ]


class TestHandFlow:
    def test_three_way_check_down_splits_with_odd_chip(self, run, make_seats, make_engine):
        """SB folds preflop; the other two chop a board royal flush, pot of 25."""
        seats = make_seats([1000, 1000, 1000])
        engine, events = make_engine(_agents([proposal("call")], [proposal("fold")], []))
        deck = Deck.stacked(["2c", "3c", "2d", "3d", "2h", "3h", "As", "Ks", "Qs", "Js", "Ts"])
        result = run(engine.play_hand(seats, 0, deck, hand_id="h1"))

        assert result.showdown
        assert result.community_cards == ["As", "Ks", "Qs", "Js", "Ts"]
        assert result.final_stacks == {"seat0": 1002, "seat1": 995, "seat2": 1003}
        assert _turns(events, "preflop") == ["seat0", "seat1", "seat2"]
        assert _turns(events, "flop") == ["seat2", "seat0"]
        assert result.hole_cards["seat1"] == ["2c", "3c"]

    def test_heads_up_check_down(self, run, make_seats, make_engine):
        seats = make_seats([1000, 1000])
        engine, events = make_engine(_agents([], []))
        deck = Deck.stacked(["Ah", "Ad", "Kh", "Kd", "2c", "7d", "9h", "Js", "4c"])
        result = run(engine.play_hand(seats, 0, deck))

        # button posts the big blind heads-up; the other seat acts first both preflop and after
        assert _turns(events, "preflop") == ["seat1", "seat0"]
        assert _turns(events, "flop") == ["seat1", "seat0"]
        assert result.final_stacks == {"seat0": 990, "seat1": 1010}
        assert result.winners() == [("seat1", 20)]

    def test_early_fold_skips_board(self, run, make_seats, make_engine):
        seats = make_seats([1000, 1000])
        engine, _ = make_engine(_agents([], [proposal("fold")]))
        result = run(engine.play_hand(seats, 0, Deck.from_seed(1, 0)))

        assert not result.showdown
        assert result.community_cards == []
        assert result.final_stacks == {"seat0": 1005, "seat1": 995}
        assert "Player P1 posted the small blind" in result.narrative
        assert "Player P1 folded" in result.narrative

    def test_raise_below_minimum_folds_and_keeps_stack(self, run, make_seats, make_engine):
        seats = make_seats([1000, 1000])
        engine, events = make_engine(_agents([], [proposal("raise", 3)]), min_raise=5)
        result = run(engine.play_hand(seats, 0, Deck.from_seed(2, 0)))

        assert result.final_stacks == {"seat0": 1005, "seat1": 995}
        assert seats[1].illegal_actions == 1
        assert [r["payload"]["kind"] for r in events.of_type("repair")] == ["under_min_raise"]

    def test_tiny_opening_bet_becomes_check(self, run, make_seats, make_engine):
        seats = make_seats([1000, 1000])
        engine, events = make_engine(_agents([], [proposal("call"), proposal("bet", 3)]), min_raise=5)
        deck = Deck.stacked(["Ah", "Ad", "Kh", "Kd", "2c", "7d", "9h", "Js", "4c"])
        result = run(engine.play_hand(seats, 0, deck))

        assert result.final_stacks == {"seat0": 990, "seat1": 1010}
        assert [r["payload"]["resolved"] for r in events.of_type("repair")] == ["check"]
        assert seats[1].illegal_actions == 1

    def test_all_in_side_pot_runout(self, run, make_seats, make_engine):
        """Stacks 100/40/100; the short stack wins the main pot, kings win the side pot."""
        seats = make_seats([100, 40, 100])
        engine, events = make_engine(_agents([proposal("raise", 90)], [], []))
        deck = Deck.stacked(["Ah", "As", "3d", "5s", "Kh", "Kd", "2c", "7d", "9h", "Js", "4c"])
        result = run(engine.play_hand(seats, 0, deck))

        assert result.final_stacks == {"seat0": 120, "seat1": 120, "seat2": 0}
        assert [(p.seat_id, p.amount, p.pot_index) for p in result.payouts] == [
            ("seat1", 120, 0),
            ("seat0", 120, 1),
        ]
        assert _turns(events, "flop") == []
        assert len(result.community_cards) == 5

    def test_covering_stack_not_asked_after_all_ins(self, run, make_seats, make_engine):
        seats = make_seats([100, 40, 1000])
        engine, events = make_engine(_agents([proposal("raise", 90)], [], []))
        deck = Deck.stacked(["Ah", "As", "3d", "5s", "Kh", "Kd", "2c", "7d", "9h", "Js", "4c"])
        result = run(engine.play_hand(seats, 0, deck))

        assert all(r["payload"]["snapshot"]["street"] == "preflop" for r in events.of_type("awaiting_action"))
        assert result.final_stacks == {"seat0": 120, "seat1": 120, "seat2": 900}

    def test_short_blind_is_all_in(self, run, make_seats, make_engine):
        seats = make_seats([1000, 3, 1000])
        engine, _ = make_engine(_agents([], [], []))
        result = run(engine.play_hand(seats, 0, Deck.from_seed(3, 0)))

        blinds = [a for a in result.actions if a.kind == "blind"]
        assert [(a.seat_id, a.amount, a.reasoning) for a in blinds] == [
            ("seat1", 3, "Posted the small blind"),
            ("seat2", 10, "Posted the big blind"),
        ]
        assert sum(result.final_stacks.values()) == 2003


class TestConservation:
    @pytest.mark.parametrize("seed", range(12))
    def test_random_play_conserves_chips(self, run, make_seats, make_engine, seed):
        stacks = [50, 200, 1000, 35, 500, 80]
        seats = make_seats(stacks)
        agents = {seat.seat_id: RandomAgent(seed=seed * 10 + idx) for idx, seat in enumerate(seats)}
        engine, events = make_engine(agents)
        result = run(engine.play_hand(seats, seed % 6, Deck.from_seed(seed, 0)))

        assert sum(result.final_stacks.values()) == sum(stacks)
        assert sum(a.amount for a in result.actions) == result.pot_total
        for record in events.records:
            snapshot = record["payload"]["snapshot"]
            assert sum(snapshot["stacks"].values()) + snapshot["pot_total"] == sum(stacks)

    def test_rogue_gateway_aborts_hand(self, run, make_seats):
        class RogueGateway:
            async def decide(self, view):
                return Decision(action=Bet(amount=view.stack + 1), repair=None, elapsed_ms=0, proposal=None)

        engine = HoldemEngine(TableConfig(), RogueGateway())
        with pytest.raises(InvariantViolation):
            run(engine.play_hand(make_seats([100, 100]), 0, Deck.from_seed(0, 0)))


class TestSeating:
    def test_empty_and_busted_seats_sit_out(self, run, make_seats, make_engine):
        seats = make_seats([1000, 0, 1000, 1000], bindings=["x", "empty", "x", "x"])
        seats[3].stack = 0
        engine, _ = make_engine(_agents([], [], [], []))
        result = run(engine.play_hand(seats, 0, Deck.from_seed(4, 0)))
        assert set(result.hole_cards) == {"seat0", "seat2"}

    def test_button_on_empty_seat_moves_forward(self, run, make_seats, make_engine):
        seats = make_seats([1000, 0, 1000, 1000], bindings=["x", "empty", "x", "x"])
        engine, events = make_engine(_agents([], [], [], []))
        run(engine.play_hand(seats, 1, Deck.from_seed(5, 0)))
        start = events.of_type("hand_start")[0]["payload"]
        assert start["button_seat"] == "seat2"

    def test_needs_two_players(self, run, make_seats, make_engine):
        engine, _ = make_engine({})
        with pytest.raises(ConfigError):
            run(engine.play_hand(make_seats([1000, 0]), 0, Deck.from_seed(0, 0)))

    def test_duplicate_seat_ids_rejected(self, run, make_seats, make_engine):
        seats = make_seats([1000, 1000])
        seats[1].seat_id = "seat0"
        engine, _ = make_engine({})
        with pytest.raises(ConfigError):
            run(engine.play_hand(seats, 0, Deck.from_seed(0, 0)))

    def test_used_deck_rejected(self, run, make_seats, make_engine):
        deck = Deck.from_seed(0, 0)
        deck.deal(1)
        engine, _ = make_engine({})
        with pytest.raises(ValueError):
            run(engine.play_hand(make_seats([1000, 1000]), 0, deck))

    def test_bad_blinds_rejected(self, make_engine):
        with pytest.raises(ConfigError):
            make_engine({}, small_blind=20, big_blind=10)


class TestPositions:
    def test_six_handed(self):
        order = [f"s{i}" for i in range(6)]
        assert position_labels(order, "s0") == {
            "s0": "Button",
            "s1": "Small Blind",
            "s2": "Big Blind",
            "s3": "Under the Gun",
            "s4": "Hijack",
            "s5": "Cutoff",
        }

    def test_heads_up_button_is_big_blind(self):
        assert position_labels(["a", "b"], "a") == {"a": "Big Blind", "b": "Small Blind"}

    def test_eight_handed(self):
        labels = position_labels([f"s{i}" for i in range(8)], "s7")
        assert labels["s2"] == "Under the Gun"
        assert labels["s3"] == "Under the Gun +1"
        assert labels["s4"] == "Under the Gun +2"
        assert labels["s6"] == "Cutoff"

    def test_views_carry_position(self, run, make_seats, make_engine):
        seats = make_seats([1000, 1000, 1000])
        agents = _agents([], [], [])
        engine, _ = make_engine(agents)
        run(engine.play_hand(seats, 0, Deck.from_seed(6, 0)))
        assert agents["seat0"].views[0].position == "Button"
        assert agents["seat2"].views[0].position == "Big Blind"
        assert agents["seat2"].views[0].to_call == 0

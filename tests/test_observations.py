"""
Tests for post-hand note synthesis.
"""

import asyncio

from conftest import ScriptedAgent
from holdem_referee.cards import Deck
from holdem_referee.observations import build_round_summary, synthesize_notes


class NoteAgent(ScriptedAgent):
    def __init__(self, notes=None, error=None, delay=0.0):
        super().__init__()
        self.notes = notes
        self.error = error
        self.delay = delay
        self.summaries = []

    async def summarize(self, summary, prior_notes):
        self.summaries.append((summary, prior_notes))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.notes


def _played_hand(run, make_seats, make_engine, agents):
    seats = make_seats([1000, 1000, 1000])
    engine, _ = make_engine(agents)
    result = run(engine.play_hand(seats, 0, Deck.from_seed(9, 0), hand_id="h9"))
    return result, seats


class TestRoundSummary:
    def test_summary_from_result(self, run, make_seats, make_engine):
        agents = {f"seat{idx}": ScriptedAgent() for idx in range(3)}
        result, _ = _played_hand(run, make_seats, make_engine, agents)
        summary = build_round_summary(result, "seat1")
        assert summary.hand_id == "h9"
        assert summary.hole_cards == tuple(result.hole_cards["seat1"])
        assert summary.final_pot == 30
        assert len(summary.community_cards) == 5
        assert summary.actions[0].reasoning == "Posted the small blind"


class TestSynthesizeNotes:
    def test_updates_and_failures(self, run, make_seats, make_engine):
        agents = {
            "seat0": NoteAgent(notes="seat2 calls everything"),
            "seat1": NoteAgent(error=RuntimeError("provider down")),
            "seat2": ScriptedAgent(),
        }
        result, seats = _played_hand(run, make_seats, make_engine, agents)
        seats[1].notes = "keep me"

        updated = run(synthesize_notes(result, seats, agents.get))

        assert updated == {"seat0": "seat2 calls everything"}
        assert seats[0].notes == "seat2 calls everything"
        assert seats[1].notes == "keep me"
        assert agents["seat1"].summaries[0][1] == "keep me"

    def test_slow_synthesis_times_out(self, run, make_seats, make_engine):
        agents = {
            "seat0": NoteAgent(notes="late", delay=5),
            "seat1": NoteAgent(notes="quick"),
            "seat2": ScriptedAgent(),
        }
        result, seats = _played_hand(run, make_seats, make_engine, agents)
        updated = run(synthesize_notes(result, seats, agents.get, time_per_decision_ms=50))
        assert updated == {"seat1": "quick"}
        assert seats[0].notes == ""

    def test_non_text_notes_ignored(self, run, make_seats, make_engine):
        agents = {"seat0": NoteAgent(notes=None), "seat1": ScriptedAgent(), "seat2": ScriptedAgent()}
        result, seats = _played_hand(run, make_seats, make_engine, agents)
        assert run(synthesize_notes(result, seats, agents.get)) == {}

"""
Pytest configuration and shared fixtures for the referee tests.
"""

import asyncio

import pytest

from holdem_referee.agents.base import fallback_proposal
from holdem_referee.engine import HoldemEngine, TableConfig
from holdem_referee.gateway import DecisionGateway
from holdem_referee.logging_utils import EventLog
from holdem_referee.schemas import Proposal, Seat, SeatView


class ScriptedAgent:
    """Plays a fixed list of proposals, then checks or calls.

    Script entries may be a ``Proposal``, any raw value to hand back verbatim,
    or an exception instance to raise.
    """

    def __init__(self, script=(), name="scripted"):
        self.name = name
        self.script = list(script)
        self.views = []

    async def propose(self, view):
        self.views.append(view)
        if self.script:
            item = self.script.pop(0)
            if isinstance(item, BaseException):
                raise item
            return item
        return fallback_proposal(view)


@pytest.fixture
def run():
    """Drive a coroutine to completion."""
    return asyncio.run


@pytest.fixture
def make_seats():
    """Seats ``seat0..seatN`` at positions 0..N with the given stacks."""

    def _make(stacks, bindings=None):
        bindings = bindings or ["scripted"] * len(stacks)
        return [
            Seat(seat_id=f"seat{idx}", name=f"P{idx}", binding=binding, stack=stack, position=idx)
            for idx, (stack, binding) in enumerate(zip(stacks, bindings))
        ]

    return _make


@pytest.fixture
def make_engine():
    """Engine plus in-memory event log wired to the given decision-makers."""

    def _make(agents, **config):
        events = EventLog()
        table = TableConfig(**config)
        gateway = DecisionGateway(agents, table.time_per_decision_ms)
        return HoldemEngine(table, gateway, events), events

    return _make


@pytest.fixture
def seat_view():
    """Factory for a ``SeatView`` with sensible defaults."""

    def _make(**overrides):
        values = dict(
            seat_id="seat0",
            name="P0",
            street="preflop",
            hole_cards=("As", "Kd"),
            community_cards=(),
            to_call=10,
            pot=15,
            stack=1000,
            committed=0,
            min_raise=5,
            position="Button",
            narrative=("Player P1 posted the small blind", "Player P2 posted the big blind"),
        )
        values.update(overrides)
        return SeatView(**values)

    return _make


def proposal(kind, amount=None, reasoning=""):
    return Proposal(kind=kind, amount=amount, reasoning=reasoning)

"""
Decision-maker interfaces.
"""

from __future__ import annotations

import importlib
from typing import Any, Optional, Protocol, runtime_checkable

from ..schemas import Proposal, RoundSummary, SeatView


class DecisionMaker(Protocol):
    name: str

    async def propose(self, view: SeatView) -> Optional[Proposal]:
        ...


@runtime_checkable
class NoteTaker(Protocol):
    """Optional capability: fold a finished hand into the seat's private notes."""

    async def summarize(self, summary: RoundSummary, prior_notes: str) -> str:
        ...


def fallback_proposal(view: SeatView, reasoning: str = "") -> Proposal:
    """Check when nothing is owed, otherwise call."""
    if view.to_call == 0:
        return Proposal(kind="check", reasoning=reasoning)
    return Proposal(kind="call", reasoning=reasoning)


def load_agent(dotted_path: str, **kwargs: Any) -> DecisionMaker:
    """
    Dynamically import an agent class from a dotted path "module:Class".
    """
    if ":" not in dotted_path:
        raise ValueError("Agent dotted path must look like 'package.module:ClassName'")
    module_name, class_name = dotted_path.split(":", 1)
    module = importlib.import_module(module_name)
    agent_cls = getattr(module, class_name)
    return agent_cls(**kwargs)

"""
Calling-station baseline: never folds, never raises.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..schemas import Proposal, SeatView
from .base import fallback_proposal


@dataclass
class CallAgent:
    name: str = "Caller"

    async def propose(self, view: SeatView) -> Proposal:
        return fallback_proposal(view, reasoning="Always call")

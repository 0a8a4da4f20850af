"""
Random baseline agent.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional

from ..schemas import Proposal, SeatView


@dataclass
class RandomAgent:
    name: str = "Random"
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        self._rng = random.Random(self.seed)

    async def propose(self, view: SeatView) -> Proposal:
        kind = self._rng.choice(list(view.legal_kinds))
        if kind == "bet":
            if view.stack <= view.min_raise:
                return Proposal(kind="bet", amount=view.stack)
            return Proposal(kind="bet", amount=self._rng.randint(view.min_raise, min(view.stack, max(view.pot, view.min_raise))))
        if kind == "raise":
            return Proposal(kind="raise", amount=view.min_raise)
        return Proposal(kind=kind)

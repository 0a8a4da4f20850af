"""
TAG (tight-aggressive) reference agent.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..cards import best_hand, parse_cards
from ..schemas import Proposal, SeatView


@dataclass
class TagAgent:
    """
    A simple strategy that plays premium hands aggressively and keeps weak
    holdings passive. It is not meant to be optimal but to provide a stable,
    interpretable baseline.

    ``cheap_call`` is the largest price a marginal hand will pay, one big
    blind at the default table.
    """

    name: str = "TAG"
    cheap_call: int = 10

    async def propose(self, view: SeatView) -> Proposal:
        if len(view.community_cards) >= 3:
            return self._postflop_policy(view)
        return self._preflop_policy(view)

    def _preflop_policy(self, view: SeatView) -> Proposal:
        hole = parse_cards(view.hole_cards)
        ranks = sorted((card.value for card in hole), reverse=True)
        suited = hole[0].suit == hole[1].suit
        pocket = ranks[0] == ranks[1]
        premium = pocket and ranks[0] >= 10
        strong = (pocket and ranks[0] >= 7) or (ranks[0] >= 13 and ranks[1] >= 12)
        playable = suited and ranks[0] >= 11 and ranks[1] >= 9

        if view.to_call == 0:
            if premium:
                return self._aggress(view, pot_growth=3.5, reasoning="Premium pair, building the pot")
            if strong:
                return self._aggress(view, pot_growth=3.0, reasoning="Strong holding, taking the initiative")
            return Proposal(kind="check", reasoning="Nothing worth betting")

        if premium:
            return self._aggress(view, pot_growth=3.0, reasoning="Premium pair, re-raising")
        if strong or (playable and view.to_call <= 2 * self.cheap_call):
            return Proposal(kind="call", reasoning="Good enough to see a flop")
        if view.to_call <= self.cheap_call:
            return Proposal(kind="call", reasoning="Cheap price")
        return Proposal(kind="fold", reasoning="Too weak for the price")

    def _postflop_policy(self, view: SeatView) -> Proposal:
        category, _ = best_hand(list(view.hole_cards) + list(view.community_cards))
        if category >= 3:
            return self._aggress(view, pot_growth=0.75, reasoning="Two pair or better, betting for value")
        if category == 2:
            if view.to_call == 0:
                return Proposal(kind="check", reasoning="One pair, keeping the pot small")
            if view.to_call * 2 <= view.pot:
                return Proposal(kind="call", reasoning="One pair with a fair price")
            return Proposal(kind="fold", reasoning="One pair facing a big bet")
        if view.to_call == 0:
            return Proposal(kind="check", reasoning="Missed the board")
        return Proposal(kind="fold", reasoning="Missed the board")

    def _aggress(self, view: SeatView, pot_growth: float, reasoning: str) -> Proposal:
        size = max(view.min_raise, int(view.pot * pot_growth))
        if view.to_call == 0:
            return Proposal(kind="bet", amount=min(size, view.stack), reasoning=reasoning)
        return Proposal(kind="raise", amount=size, reasoning=reasoning)

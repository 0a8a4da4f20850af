"""
Post-hand note synthesis.

After a hand is settled every seat that played it may fold what happened into
its private notes. The calls are advisory: they run concurrently, each one is
bounded by the decision timeout, and a failure leaves that seat's notes as
they were.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Optional, Sequence

from .agents.base import NoteTaker
from .schemas import HandResult, RoundSummary, Seat

logger = logging.getLogger(__name__)


def build_round_summary(result: HandResult, seat_id: str) -> RoundSummary:
    return RoundSummary(
        hand_id=result.hand_id,
        seat_id=seat_id,
        hole_cards=tuple(result.hole_cards.get(seat_id, ())),
        community_cards=tuple(result.community_cards),
        final_pot=result.pot_total,
        winners=tuple(result.winners()),
        actions=tuple(result.actions),
        narrative=tuple(result.narrative),
    )


async def synthesize_notes(
    result: HandResult,
    seats: Sequence[Seat],
    decision_maker: Callable[[str], Optional[Any]],
    time_per_decision_ms: int = 60000,
) -> Dict[str, str]:
    """
    Update ``Seat.notes`` for every seat that played ``result``.

    Returns the notes that changed, keyed by seat id.
    """
    timeout_s = time_per_decision_ms / 1000

    async def _one(seat: Seat) -> Optional[str]:
        agent = decision_maker(seat.seat_id)
        if not isinstance(agent, NoteTaker):
            return None
        summary = build_round_summary(result, seat.seat_id)
        try:
            notes = await asyncio.wait_for(agent.summarize(summary, seat.notes), timeout=timeout_s)
        except asyncio.TimeoutError:
            logger.warning("note synthesis for seat %s timed out", seat.seat_id)
            return None
        except Exception as exc:
            logger.warning("note synthesis for seat %s failed: %s", seat.seat_id, exc)
            return None
        if not isinstance(notes, str):
            logger.warning("seat %s returned non-text notes, keeping the old ones", seat.seat_id)
            return None
        return notes

    playing = [seat for seat in seats if seat.seat_id in result.hole_cards]
    outcomes = await asyncio.gather(*(_one(seat) for seat in playing))

    updated: Dict[str, str] = {}
    for seat, notes in zip(playing, outcomes):
        if notes is not None and notes != seat.notes:
            seat.notes = notes
            updated[seat.seat_id] = notes
    logger.debug("notes updated for %s", sorted(updated))
    return updated

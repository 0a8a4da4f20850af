"""
The decision gateway: the only place the engine talks to a decision-maker.

A decision-maker is anything with ``async propose(view) -> Proposal | None``.
Whatever it returns, raises, or fails to return in time is narrowed here to
exactly one of ``Fold``, ``Check`` or ``Bet(amount)``:

1. no usable proposal (error, timeout, malformed) -> fold if a call is owed,
   otherwise check
2. more chips than the stack -> fold, except a raise, which becomes all-in
3. less than the call while the seat could call -> fold
4. a raise increment under the table minimum (and not all-in) -> fold
5. anything else is accepted

The same proposal in the same spot always yields the same action.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

from .schemas import PROPOSAL_KINDS, Action, Bet, Check, Fold, Proposal, SeatView

logger = logging.getLogger(__name__)

NO_ACTION = "no_action"
TIMEOUT = "timeout"
TRANSPORT_ERROR = "transport_error"
MALFORMED = "malformed"
OVER_STACK = "over_stack"
UNDER_CALL = "under_call"
UNDER_MIN_RAISE = "under_min_raise"
CHECK_FACING_BET = "check_facing_bet"
ALL_IN_CAP = "all_in_cap"

ILLEGAL_REPAIRS = frozenset(
    {MALFORMED, OVER_STACK, UNDER_CALL, UNDER_MIN_RAISE, CHECK_FACING_BET, ALL_IN_CAP}
)

# tool names some providers use for the same moves
_KIND_ALIASES = {
    "raise_to": "raise",
    "all_in": "raise",
    "allin": "raise",
    "pass": "check",
}


def _coerce_amount(value: Any) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if isinstance(value, (int, float)) and math.isfinite(value):
        return int(value)
    return None


def coerce_proposal(raw: Any) -> Optional[Proposal]:
    """
    Boundary validation for whatever a decision-maker handed back.

    Accepts a ``Proposal`` or a tool-call style mapping such as
    ``{"toolName": "raise", "args": {"raiseAmount": 40, "reasoning": "..."}}``
    or ``{"action": "bet", "amount": 20}``. Returns ``None`` when nothing
    usable can be recovered.
    """
    if isinstance(raw, Proposal):
        kind = _KIND_ALIASES.get(raw.kind, raw.kind)
        if kind not in PROPOSAL_KINDS:
            return None
        amount = _coerce_amount(raw.amount) if raw.amount is not None else None
        return Proposal(kind=kind, amount=amount, reasoning=str(raw.reasoning or ""))
    if not isinstance(raw, Mapping):
        return None

    args = raw.get("args") or raw.get("arguments") or {}
    if not isinstance(args, Mapping):
        args = {}
    kind = raw.get("toolName") or raw.get("action") or raw.get("kind") or raw.get("name")
    if not isinstance(kind, str):
        return None
    kind = kind.strip().lower()
    kind = _KIND_ALIASES.get(kind, kind)
    if kind not in PROPOSAL_KINDS:
        return None

    amount_raw = None
    for key in ("amount", "raiseAmount", "raise_amount"):
        if key in args:
            amount_raw = args[key]
            break
        if key in raw:
            amount_raw = raw[key]
            break
    reasoning = args.get("reasoning", raw.get("reasoning", ""))
    return Proposal(
        kind=kind,  # type: ignore[arg-type]
        amount=_coerce_amount(amount_raw),
        reasoning=str(reasoning or ""),
    )


def _no_action(to_call: int, reason: str) -> Action:
    if to_call > 0:
        return Fold(reasoning=f"No usable action ({reason}). Folding by default.")
    return Check(reasoning=f"No usable action ({reason}). Checking by default.")


def repair_proposal(
    proposal: Optional[Proposal],
    *,
    to_call: int,
    stack: int,
    min_raise: int,
    failure: str = NO_ACTION,
) -> Tuple[Action, Optional[str]]:
    """
    Map a proposal to the action the engine will apply.

    Returns the action plus the repair code that fired, or ``None`` when the
    proposal was accepted as is. ``failure`` names why ``proposal`` is missing.
    """
    if proposal is None:
        return _no_action(to_call, failure), failure

    kind = proposal.kind
    reasoning = proposal.reasoning

    if kind == "fold":
        return Fold(reasoning=reasoning), None
    if kind == "check":
        if to_call > 0:
            return Fold(reasoning=f"Cannot check facing {to_call}. Forced to fold."), CHECK_FACING_BET
        return Check(reasoning=reasoning), None
    if kind == "call":
        if to_call == 0:
            return Check(reasoning=reasoning), None
        return Bet(amount=min(to_call, stack), reasoning=reasoning), None

    if proposal.amount is None:
        return _no_action(to_call, MALFORMED), MALFORMED

    is_raise = kind == "raise"
    if is_raise:
        if proposal.amount < 0:
            return _no_action(to_call, MALFORMED), MALFORMED
        amount = to_call + proposal.amount
        increment = proposal.amount
    else:
        amount = proposal.amount
        increment = amount - to_call

    if amount < 0:
        return _no_action(to_call, MALFORMED), MALFORMED

    if amount > stack:
        if is_raise:
            return (
                Bet(amount=stack, reasoning=f"Going all-in with {stack} (wanted to raise but insufficient stack)"),
                ALL_IN_CAP,
            )
        return Fold(reasoning=f"Cannot bet {amount} with only {stack} in stack. Forced to fold."), OVER_STACK

    if amount < to_call:
        if stack >= to_call or amount < stack:
            return Fold(reasoning=f"Bet of {amount} is below the {to_call} needed to call. Forced to fold."), UNDER_CALL
        return Bet(amount=amount, reasoning=reasoning), None

    all_in = amount == stack
    if to_call == 0 and not is_raise and 0 < amount < min_raise and not all_in:
        return (
            Check(reasoning=f"Bet of {amount} is below the minimum {min_raise}. Checking instead."),
            UNDER_MIN_RAISE,
        )
    if (is_raise or increment > 0) and increment < min_raise and not all_in:
        return (
            Fold(reasoning=f"Invalid raise amount {increment} (less than minimum {min_raise}). Forced to fold."),
            UNDER_MIN_RAISE,
        )

    if amount == 0:
        return Check(reasoning=reasoning), None
    return Bet(amount=amount, reasoning=reasoning), None


@dataclass(slots=True)
class Decision:
    action: Action
    repair: Optional[str]
    elapsed_ms: int
    proposal: Optional[Proposal]


class DecisionGateway:
    """
    Bounds and sanitises calls into the seats' decision-makers.

    Never retries: a decision-maker that raises, stalls past the timeout or
    returns garbage gets the deterministic fallback for its spot.
    """

    def __init__(self, decision_makers: Mapping[str, Any], time_per_decision_ms: int = 60000) -> None:
        self._decision_makers = dict(decision_makers)
        self.time_per_decision_ms = time_per_decision_ms

    def decision_maker(self, seat_id: str) -> Any:
        return self._decision_makers.get(seat_id)

    async def decide(self, view: SeatView) -> Decision:
        proposal, failure, elapsed_ms = await self._propose(view)
        action, repair = repair_proposal(
            proposal,
            to_call=view.to_call,
            stack=view.stack,
            min_raise=view.min_raise,
            failure=failure,
        )
        if repair is not None:
            logger.info("seat %s: %s -> %s", view.seat_id, repair, action)
        return Decision(action=action, repair=repair, elapsed_ms=elapsed_ms, proposal=proposal)

    async def _propose(self, view: SeatView) -> Tuple[Optional[Proposal], str, int]:
        agent = self._decision_makers.get(view.seat_id)
        if agent is None:
            return None, NO_ACTION, 0
        start = time.perf_counter()
        timeout_s = self.time_per_decision_ms / 1000
        try:
            raw = await asyncio.wait_for(agent.propose(view), timeout=timeout_s)
        except asyncio.TimeoutError:
            logger.warning("seat %s timed out after %.1fs", view.seat_id, timeout_s)
            return None, TIMEOUT, _elapsed_ms(start)
        except Exception as exc:
            logger.warning("seat %s decision call failed: %s", view.seat_id, exc)
            return None, TRANSPORT_ERROR, _elapsed_ms(start)
        if raw is None:
            return None, NO_ACTION, _elapsed_ms(start)
        proposal = coerce_proposal(raw)
        if proposal is None:
            logger.warning("seat %s returned an unusable proposal %r", view.seat_id, raw)
            return None, MALFORMED, _elapsed_ms(start)
        return proposal, NO_ACTION, _elapsed_ms(start)


def _elapsed_ms(start: float) -> int:
    return math.ceil((time.perf_counter() - start) * 1000)

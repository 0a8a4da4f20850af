"""
Human seat driven from the terminal.

Input looks like ``call``, ``check``, ``fold``, ``bet 40`` or ``raise 20``
(raise amounts are "raise by"). The blocking read runs in a worker thread so
the decision timeout still applies to a human seat. A thread cannot be
interrupted, so a read abandoned by a timeout stays pending and the next
prompt on the same event loop answers with the line it returns.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..schemas import Proposal, SeatView


def parse_command(text: str) -> Optional[Proposal]:
    parts = text.strip().lower().split()
    if not parts:
        return None
    kind, rest = parts[0], parts[1:]
    if kind in {"call", "check", "fold"}:
        return Proposal(kind=kind, reasoning="human")  # type: ignore[arg-type]
    if kind in {"bet", "raise"} and len(rest) == 1 and rest[0].isdigit():
        return Proposal(kind=kind, amount=int(rest[0]), reasoning="human")  # type: ignore[arg-type]
    return None


@dataclass
class ConsoleAgent:
    name: str = "Human"
    reader: Callable[[str], str] = field(default=input, repr=False)
    writer: Callable[[str], None] = field(default=print, repr=False)
    _pending: Optional[asyncio.Future] = field(default=None, init=False, repr=False)

    async def propose(self, view: SeatView) -> Optional[Proposal]:
        self.writer(render_view(view))
        prompt = f"[{view.name}] {'/'.join(view.legal_kinds)} > "
        while True:
            text = await self._read(prompt)
            proposal = parse_command(text)
            if proposal is not None:
                return proposal
            self.writer("Could not read that. Try e.g. 'call', 'fold', 'bet 40' or 'raise 20'.")

    async def _read(self, prompt: str) -> str:
        loop = asyncio.get_running_loop()
        pending = self._pending
        if pending is None or pending.get_loop() is not loop:
            pending = asyncio.ensure_future(asyncio.to_thread(self.reader, prompt))
            self._pending = pending
        # shielded so a timeout leaves the worker read in place for the next prompt
        try:
            return await asyncio.shield(pending)
        finally:
            if pending.done():
                self._pending = None


def render_view(view: SeatView) -> str:
    lines = [
        f"--- {view.street} | {view.position} ---",
        f"Hole cards: {' '.join(view.hole_cards)}",
        f"Board: {' '.join(view.community_cards) or '-'}",
        f"Pot: {view.pot} | To call: {view.to_call} | Stack: {view.stack} | Min raise: {view.min_raise}",
    ]
    if view.narrative:
        lines.append("Recent:")
        lines.extend(f"  {line}" for line in view.narrative[-6:])
    return "\n".join(lines)

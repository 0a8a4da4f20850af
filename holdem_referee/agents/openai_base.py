"""
Reusable base class for agents that call OpenAI-compatible chat APIs.

OpenRouter, OpenAI and most third-party hosts expose an OpenAI-compatible
``/chat/completions`` endpoint with tool calling. This module turns a
``SeatView`` into a prompt plus the tools that are legal in the spot
(``bet``/``check`` when nothing is owed, ``call``/``raise``/``fold``
otherwise), invokes the API, and maps the first tool call back to a
``Proposal``. Models that answer in plain JSON instead of a tool call are
parsed too.

Failures other than rate limiting are not caught here: the decision gateway
owns the fallback for errors and timeouts.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, RateLimitError

from ..gateway import coerce_proposal
from ..schemas import Proposal, RoundSummary, SeatView
from .base import fallback_proposal

logger = logging.getLogger(__name__)


def _tool(name: str, description: str, properties: Dict[str, Any]) -> Dict[str, Any]:
    props = dict(properties)
    props["reasoning"] = {"type": "string", "description": f"The reasoning for the {name}"}
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": props,
                "required": sorted(props),
            },
        },
    }


def decision_tools(to_call: int) -> List[Dict[str, Any]]:
    if to_call == 0:
        return [
            _tool("bet", "Bet a certain amount of money", {"amount": {"type": "number", "description": "The amount to bet"}}),
            _tool("check", "Check the hand", {}),
        ]
    return [
        _tool("call", "Call the current bet (match what others have bet)", {}),
        _tool(
            "raise",
            "Raise the bet (bet more than the current bet)",
            {"raiseAmount": {"type": "number", "description": "The amount to raise BY (not the total bet)"}},
        ),
        _tool("fold", "Fold the hand", {}),
    ]


def build_prompt(view: SeatView) -> str:
    if view.to_call == 0:
        options = f"- You can CHECK (free - you've already matched the current bet) or BET (minimum {view.min_raise})"
    else:
        options = (
            f"- You can CALL to match the current bet (costs {min(view.to_call, view.stack)} chips)\n"
            "- You can RAISE by betting MORE than the current bet (specify how much to raise BY, not total)\n"
            "- You can FOLD to exit the hand"
        )
    lines = [
        "You are a poker player in a Texas Hold'em game.",
        f"Your player ID: {view.seat_id}",
        f"Your hole cards: {', '.join(view.hole_cards)}",
        f"Your position: {view.position}",
        "",
        "CURRENT GAME STATE:",
        f"- Street: {view.street}",
        f"- Community cards: {', '.join(view.community_cards) or 'none yet'}",
        f"- Amount you need to call: {view.to_call} chips"
        + (" (you have already matched the current bet)" if view.to_call == 0 else ""),
        f"- Current pot size: {view.pot}",
        f"- Your chip stack: {view.stack}",
        f"- Minimum raise: {view.min_raise}",
        "",
        "AVAILABLE ACTIONS:",
        options,
        f"- You cannot bet more than {view.stack} (your stack)",
        "- If you don't have enough chips to call, you'll automatically go all-in",
        "",
    ]
    if view.notes:
        lines.extend(["YOUR NOTES FROM PREVIOUS ROUNDS:", view.notes, ""])
    lines.append("GAME CONTEXT:")
    lines.extend(view.narrative)
    if view.position == "Big Blind" and view.to_call == 0 and view.street == "preflop":
        lines.extend(
            [
                "",
                "Note: As the big blind, you've already posted your blind. Since no one has raised, "
                "you can check for free or bet if you have a strong hand.",
            ]
        )
    return "\n".join(lines)


def build_summary_prompt(summary: RoundSummary, prior_notes: str) -> str:
    winners = ", ".join(f"Player {seat_id} won {amount}" for seat_id, amount in summary.winners)
    actions = "\n".join(
        f'- Player {record.seat_id}: {record.kind} (Reasoning: "{record.reasoning}")' for record in summary.actions
    )
    return "\n".join(
        [
            "You are a poker player who just finished a round of Texas Hold'em.",
            f"Your player ID: {summary.seat_id}",
            "",
            "ROUND SUMMARY:",
            f"- Your hole cards: {', '.join(summary.hole_cards)}",
            f"- Community cards: {', '.join(summary.community_cards)}",
            f"- Final pot: {summary.final_pot}",
            f"- Winners: {winners}",
            "",
            "KEY ACTIONS FROM THIS ROUND:",
            actions,
            "",
            "FULL ROUND CONTEXT:",
            *summary.narrative,
            "",
            "YOUR EXISTING NOTES:",
            prior_notes or "No previous notes.",
            "",
            "Based on what happened in this round, synthesize your observations. Focus on:",
            "1. Patterns in other players' betting behavior",
            "2. Tells or tendencies you noticed (who bluffs, who plays tight, etc.)",
            "3. Successful strategies you or others used",
            "4. Mistakes to avoid in future rounds",
            "",
            "Keep your notes concise and actionable. Update your existing notes with new insights, "
            "don't just append - integrate and refine your understanding.",
            "",
            "Respond with ONLY the updated notes text (no explanations or meta-commentary).",
        ]
    )


@dataclass
class OpenAICompatibleAgent:
    """
    Shared implementation for OpenAI-style poker agents.

    Parameters are intentionally generic so subclasses can adapt the defaults
    for their specific provider.
    """

    model: Optional[str] = None
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    temperature: Optional[float] = None
    system_prompt: Optional[str] = None
    dry_run: bool = False
    name: Optional[str] = None
    notes_model: Optional[str] = None
    max_tokens: int = 10000
    max_retries: int = 4
    retry_delay: float = 5.0

    env_prefix: str = field(default="OPENAI", init=False)
    default_model: str = field(default="gpt-4o-mini", init=False)
    default_name: str = field(default="LLM", init=False)
    default_base_url: Optional[str] = field(default=None, init=False)

    def __post_init__(self) -> None:
        model_env = os.getenv(f"{self.env_prefix}_MODEL")
        api_key_env = os.getenv(f"{self.env_prefix}_API_KEY")
        base_env = os.getenv(f"{self.env_prefix}_API_BASE")

        self.model = self.model or model_env or self.default_model
        self.base_url = self.base_url or base_env or self.default_base_url
        self.name = self.name or self.default_name
        self.notes_model = self.notes_model or self.model

        key = self.api_key or api_key_env
        if not self.dry_run and key is None:
            raise RuntimeError(
                f"{self.name} agent requires a valid API key. "
                f"Set {self.env_prefix}_API_KEY or pass api_key=..."
            )

        if self.dry_run:
            self._client = None
        else:
            client_kwargs = {"api_key": key}
            if self.base_url:
                client_kwargs["base_url"] = self.base_url
            self._client = AsyncOpenAI(**client_kwargs)

    # --- action selection ------------------------------------------------

    async def propose(self, view: SeatView) -> Optional[Proposal]:
        logger.info(
            "[%s] propose | seat=%s street=%s to_call=%d pot=%d stack=%d",
            self.name,
            view.seat_id,
            view.street,
            view.to_call,
            view.pot,
            view.stack,
        )
        if self.dry_run or self._client is None:
            return fallback_proposal(view, reasoning="dry run")

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self._system_message()},
                {"role": "user", "content": build_prompt(view)},
            ],
            "tools": decision_tools(view.to_call),
            "tool_choice": "required",
            "max_tokens": self.max_tokens,
        }
        if self.temperature is not None:
            payload["temperature"] = self.temperature
        response = await self._create(payload)

        proposal = self._parse_response(response)
        if proposal is None:
            logger.warning("[%s] could not parse a decision from the response", self.name)
        else:
            logger.info("[%s] proposed %s %s", self.name, proposal.kind, proposal.amount if proposal.amount is not None else "")
        return proposal

    async def summarize(self, summary: RoundSummary, prior_notes: str) -> str:
        if self.dry_run or self._client is None:
            return prior_notes
        payload: Dict[str, Any] = {
            "model": self.notes_model,
            "messages": [{"role": "user", "content": build_summary_prompt(summary, prior_notes)}],
            "max_tokens": 500,
            "temperature": 0.7,
        }
        response = await self._create(payload)
        text = self._extract_chat_text(response).strip()
        return text or prior_notes

    async def _create(self, payload: Dict[str, Any]) -> Any:
        # Retry logic for rate limiting
        for attempt in range(self.max_retries + 1):
            try:
                return await self._client.chat.completions.create(**payload)
            except RateLimitError:
                if attempt >= self.max_retries:
                    raise
                wait_time = self.retry_delay * (2 ** attempt)
                logger.warning(
                    "[%s] rate limited, retrying in %.1fs (attempt %d/%d)",
                    self.name,
                    wait_time,
                    attempt + 1,
                    self.max_retries,
                )
                await asyncio.sleep(wait_time)
        raise RuntimeError("unreachable")

    # --- prompt and parsing helpers -------------------------------------

    def _system_message(self) -> str:
        base = (
            "You are a professional No-Limit Texas Hold'em player. "
            "Always answer by calling exactly one of the provided tools."
        )
        if self.system_prompt:
            return f"{base}\n{self.system_prompt}"
        return base

    def _parse_response(self, response: Any) -> Optional[Proposal]:
        choices = getattr(response, "choices", []) or []
        if not choices:
            return None
        message = choices[0].message
        for call in getattr(message, "tool_calls", None) or []:
            function = getattr(call, "function", None)
            if function is None:
                continue
            try:
                args = json.loads(function.arguments or "{}")
            except json.JSONDecodeError:
                return None
            return coerce_proposal({"toolName": function.name, "args": args})
        return self._parse_text(self._extract_chat_text(response))

    def _extract_chat_text(self, response: Any) -> str:
        choices = getattr(response, "choices", []) or []
        if not choices:
            return ""
        message = choices[0].message
        content = getattr(message, "content", "")
        if isinstance(content, list):
            parts = []
            for part in content:
                text = getattr(part, "text", None)
                if text is None:
                    continue
                value = getattr(text, "value", None)
                parts.append(value if isinstance(value, str) else str(value))
            content = "\n".join(parts)
        return content or ""

    def _parse_text(self, content: str) -> Optional[Proposal]:
        if not content:
            return None
        payload = None
        try:
            payload = json.loads(content)
        except json.JSONDecodeError:
            start = content.find("{")
            end = content.rfind("}")
            if start != -1 and end != -1 and end > start:
                try:
                    payload = json.loads(content[start : end + 1])
                except json.JSONDecodeError:
                    payload = None
        if not isinstance(payload, dict):
            return None
        return coerce_proposal(payload)

"""
Maps a seat's binding string to a decision-maker instance.

Bindings:
    ``empty``                 -> no decision-maker (the seat never plays)
    ``human``                 -> ``ConsoleAgent``
    ``random``, ``call``, ``tag`` or ``baseline:<name>`` -> shipped baselines
    ``openai:<model>``        -> ``OpenAIAgent``
    ``pkg.module:Class``      -> custom class loaded by dotted path
    anything else             -> OpenRouter model id, e.g. ``openai/gpt-4o``
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from .agents.base import load_agent
from .agents.call_agent import CallAgent
from .agents.console_agent import ConsoleAgent
from .agents.openai_agent import OpenAIAgent
from .agents.openrouter_agent import OpenRouterAgent
from .agents.random_agent import RandomAgent
from .agents.tag_agent import TagAgent
from .schemas import EMPTY_SEAT, HUMAN_SEAT

BASELINE_FACTORIES: Dict[str, Callable[..., Any]] = {
    "random": RandomAgent,
    "call": CallAgent,
    "tag": TagAgent,
}


def make_baseline(baseline: str, /, **kwargs: Any):
    if baseline not in BASELINE_FACTORIES:
        raise ValueError(f"Unknown baseline {baseline}")
    return BASELINE_FACTORIES[baseline](**kwargs)


def make_decision_maker(binding: str, *, name: Optional[str] = None, dry_run: bool = False) -> Optional[Any]:
    binding = binding.strip()
    if binding == EMPTY_SEAT:
        return None
    if binding == HUMAN_SEAT:
        return ConsoleAgent(name=name or "Human")

    label = {"name": name} if name else {}
    if binding.startswith("baseline:"):
        return make_baseline(binding.split(":", 1)[1], **label)
    if binding in BASELINE_FACTORIES:
        return make_baseline(binding, **label)
    if binding.startswith("openai:"):
        return OpenAIAgent(model=binding.split(":", 1)[1], dry_run=dry_run, **label)
    if ":" in binding:
        return load_agent(binding)
    return OpenRouterAgent(model=binding, dry_run=dry_run, **label)

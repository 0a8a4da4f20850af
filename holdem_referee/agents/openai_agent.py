"""
OpenAI integration built on top of the generic OpenAI-compatible agent base.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .openai_base import OpenAICompatibleAgent


@dataclass
class OpenAIAgent(OpenAICompatibleAgent):
    """
    Environment variables honoured:
        - OPENAI_API_KEY
        - OPENAI_MODEL
        - OPENAI_API_BASE
    """

    default_model: str = field(default="gpt-4o-mini", init=False)
    default_name: str = field(default="OpenAI", init=False)
    env_prefix: str = field(default="OPENAI", init=False)

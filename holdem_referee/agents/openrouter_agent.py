"""
OpenRouter integration: any ``vendor/model`` id routed through one endpoint.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .openai_base import OpenAICompatibleAgent


@dataclass
class OpenRouterAgent(OpenAICompatibleAgent):
    """
    Default provider for seats bound to a model id such as
    ``anthropic/claude-3.5-sonnet`` or ``google/gemini-2.5-flash``.

    Environment variables honoured:
        - OPENROUTER_API_KEY
        - OPENROUTER_MODEL
        - OPENROUTER_API_BASE
    """

    env_prefix: str = field(default="OPENROUTER", init=False)
    default_model: str = field(default="google/gemini-2.5-flash", init=False)
    default_name: str = field(default="OpenRouter", init=False)
    default_base_url: Optional[str] = field(default="https://openrouter.ai/api/v1", init=False)

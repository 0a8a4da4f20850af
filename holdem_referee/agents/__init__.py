"""
Decision-makers that can sit at the table.
"""

from . import base
from .call_agent import CallAgent
from .console_agent import ConsoleAgent
from .openai_agent import OpenAIAgent
from .openrouter_agent import OpenRouterAgent
from .random_agent import RandomAgent
from .tag_agent import TagAgent

__all__ = [
    "base",
    "CallAgent",
    "ConsoleAgent",
    "OpenAIAgent",
    "OpenRouterAgent",
    "RandomAgent",
    "TagAgent",
]

"""
Hold'em referee package.

Runs multi-seat No-Limit Texas Hold'em hands between autonomous
decision-makers and keeps the table honest. Key modules:

- cards: Card tokens, the deck and hand ranking.
- pots: Main pot and side pot bookkeeping.
- gateway: Decision-maker contract, proposal validation and repair.
- betting: Per-street turn-taking state machine.
- showdown: Pot-by-pot settlement.
- engine: Round orchestrator for a single hand.
- session: Multi-hand game sessions and concurrent tables.
- agents: LLM, baseline and console decision-makers.
- cli: Command line entry point.
"""

from . import agents
from .engine import HoldemEngine, TableConfig
from .gateway import DecisionGateway, repair_proposal
from .schemas import Bet, Check, Fold, HandResult, Proposal, Seat, SeatView
from .session import GameSession, SessionConfig, run_tables

__all__ = [
    "agents",
    "Bet",
    "Check",
    "DecisionGateway",
    "Fold",
    "GameSession",
    "HandResult",
    "HoldemEngine",
    "Proposal",
    "Seat",
    "SeatView",
    "SessionConfig",
    "TableConfig",
    "repair_proposal",
    "run_tables",
]

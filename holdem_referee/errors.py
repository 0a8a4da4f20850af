"""
Exception types raised by the referee.

Decision-maker misbehaviour is never an exception here: it is repaired by the
gateway. Only bugs in the engine itself and bad configuration surface.
"""

from __future__ import annotations


class InvariantViolation(RuntimeError):
    """Chip conservation or turn order broke. Aborts the hand."""


class ConfigError(ValueError):
    pass

"""
Card tokens, the dealing deck and hand ranking for Texas Hold'em.

Cards travel through the referee as two-character tokens (``"As"``, ``"Td"``)
so that seat views, prompts and event logs can carry them verbatim. Ranking
uses the comparable "category + tiebreak ranks" tuple: larger tuples win.
"""

from __future__ import annotations

import random
from collections import Counter
from dataclasses import dataclass
from itertools import combinations
from typing import Iterable, List, Optional, Sequence, Tuple

SUITS: Tuple[str, ...] = ("c", "h", "d", "s")
RANKS: Tuple[str, ...] = ("A", "K", "Q", "J", "T", "9", "8", "7", "6", "5", "4", "3", "2")
RANK_VALUE = {rank: 14 - idx for idx, rank in enumerate(RANKS)}
VALUE_RANK = {value: rank for rank, value in RANK_VALUE.items()}

HandValue = Tuple[int, Tuple[int, ...]]

CATEGORY_NAMES = {
    9: "Straight Flush",
    8: "Four of a Kind",
    7: "Full House",
    6: "Flush",
    5: "Straight",
    4: "Three of a Kind",
    3: "Two Pair",
    2: "One Pair",
    1: "High Card",
}


@dataclass(frozen=True)
class Card:
    rank: str
    suit: str

    def __post_init__(self) -> None:
        if self.rank not in RANK_VALUE:
            raise ValueError(f"invalid rank {self.rank!r}")
        if self.suit not in SUITS:
            raise ValueError(f"invalid suit {self.suit!r}")

    @property
    def value(self) -> int:
        return RANK_VALUE[self.rank]

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"


def parse_card(token: str) -> Card:
    token = token.strip()
    if len(token) != 2:
        raise ValueError(f"invalid card token: {token!r}")
    return Card(rank=token[0].upper(), suit=token[1].lower())


def parse_cards(tokens: Iterable[str]) -> List[Card]:
    return [parse_card(token) for token in tokens]


def standard_tokens() -> List[str]:
    return [f"{rank}{suit}" for rank in RANKS for suit in SUITS]


class Deck:
    """
    An ordered 52-card sequence consumed from the back.

    The deck belongs to exactly one hand. ``deal`` pops the last card, so a
    test can stack the deck by placing the first cards to be dealt at the end.
    """

    def __init__(self, tokens: Sequence[str]) -> None:
        cards = [str(parse_card(token)) for token in tokens]
        if len(cards) != 52 or len(set(cards)) != 52:
            raise ValueError("a deck must hold 52 unique cards")
        self._cards = cards

    @classmethod
    def shuffled(cls, rng: Optional[random.Random] = None) -> "Deck":
        tokens = standard_tokens()
        (rng or random.Random()).shuffle(tokens)
        return cls(tokens)

    @classmethod
    def from_seed(cls, seed: int, hand_index: int) -> "Deck":
        return cls.shuffled(random.Random(f"{seed}:{hand_index}"))

    @classmethod
    def stacked(cls, dealt_first: Sequence[str]) -> "Deck":
        """Build a deck whose first dealt cards are ``dealt_first``, in order."""
        head = [str(parse_card(token)) for token in dealt_first]
        taken = set(head)
        rest = [token for token in standard_tokens() if token not in taken]
        return cls(rest + list(reversed(head)))

    def deal(self, count: int = 1) -> List[str]:
        if count > len(self._cards):
            raise ValueError("deck exhausted")
        return [self._cards.pop() for _ in range(count)]

    def __len__(self) -> int:
        return len(self._cards)


def _straight_high(values: Sequence[int]) -> Optional[int]:
    distinct = sorted(set(values), reverse=True)
    if len(distinct) != 5:
        return None
    if distinct[0] - distinct[4] == 4:
        return distinct[0]
    # wheel: A-2-3-4-5 plays as five-high
    if distinct == [14, 5, 4, 3, 2]:
        return 5
    return None


def rank_five(cards: Sequence[Card]) -> HandValue:
    values = sorted((card.value for card in cards), reverse=True)
    flush = len({card.suit for card in cards}) == 1
    straight = _straight_high(values)
    # groups ordered by size, then by rank: (3, 9), (2, 4) for nines full of fours
    groups = sorted(Counter(values).items(), key=lambda kv: (kv[1], kv[0]), reverse=True)
    shape = [count for _, count in groups]
    ordered = tuple(value for value, _ in groups)

    if flush and straight:
        return 9, (straight,)
    if shape == [4, 1]:
        return 8, ordered
    if shape == [3, 2]:
        return 7, ordered
    if flush:
        return 6, tuple(values)
    if straight:
        return 5, (straight,)
    if shape == [3, 1, 1]:
        return 4, ordered
    if shape == [2, 2, 1]:
        return 3, ordered
    if shape == [2, 1, 1, 1]:
        return 2, ordered
    return 1, tuple(values)


def best_hand(tokens: Sequence[str]) -> HandValue:
    """Best five-card value among two hole cards plus the community cards."""
    cards = parse_cards(tokens)
    if len(cards) < 5:
        raise ValueError("at least five cards required")
    return max(rank_five(combo) for combo in combinations(cards, 5))


def describe_hand(value: HandValue) -> str:
    category, ranks = value
    return f"{CATEGORY_NAMES[category]} ({'-'.join(VALUE_RANK[v] for v in ranks)})"

"""Playing card model shared by every pile."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import List, Optional


class Suit(Enum):
    HEART = "hearts"
    DIAMOND = "diamonds"
    SPADE = "spades"
    CLUB = "clubs"

    @property
    def letter(self) -> str:
        return self.value[0].upper()


class Rank(IntEnum):
    ACE = 1
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13

    @property
    def label(self) -> str:
        mapping = {
            1: "A",
            11: "J",
            12: "Q",
            13: "K",
        }
        return mapping.get(self.value, str(self.value))


class Color(Enum):
    RED = "red"
    BLACK = "black"


SUIT_COLORS = {
    Suit.HEART: Color.RED,
    Suit.DIAMOND: Color.RED,
    Suit.SPADE: Color.BLACK,
    Suit.CLUB: Color.BLACK,
}

_SUITS_BY_LETTER = {suit.letter: suit for suit in Suit}
_RANKS_BY_LABEL = {rank.label: rank for rank in Rank}


@dataclass
class Card:
    """A playing card.

    Identity is the ``(suit, rank)`` pair: two cards compare equal whatever
    their facing, and the ordering operators compare ranks only.
    """

    suit: Suit
    rank: Rank
    face_up: bool = field(default=False, compare=False)

    def __hash__(self) -> int:
        return hash((self.suit, self.rank))

    def __lt__(self, other: "Card") -> bool:
        if not isinstance(other, Card):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: "Card") -> bool:
        if not isinstance(other, Card):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: "Card") -> bool:
        if not isinstance(other, Card):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: "Card") -> bool:
        if not isinstance(other, Card):
            return NotImplemented
        return self.rank >= other.rank

    @property
    def color(self) -> Color:
        return SUIT_COLORS[self.suit]

    @property
    def code(self) -> str:
        """Short identifier such as ``AH`` or ``10S``."""
        return f"{self.rank.label}{self.suit.letter}"

    @classmethod
    def from_code(cls, code: str, *, face_up: bool = False) -> "Card":
        token = code.strip().upper()
        if len(token) < 2:
            raise ValueError(f"Invalid card code: {code!r}")
        rank = _RANKS_BY_LABEL.get(token[:-1])
        suit = _SUITS_BY_LETTER.get(token[-1])
        if rank is None or suit is None:
            raise ValueError(f"Invalid card code: {code!r}")
        return cls(suit, rank, face_up)

    def __str__(self) -> str:  # pragma: no cover - debug helper
        return self.code if self.face_up else f"({self.code})"


def build_deck(rng: Optional[random.Random] = None) -> List[Card]:
    """Return the 52 unique cards face down, shuffled when *rng* is given."""

    deck = [Card(suit, rank) for suit in Suit for rank in Rank]
    if rng is not None:
        rng.shuffle(deck)
    return deck

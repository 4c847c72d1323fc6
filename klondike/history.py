"""Undo log entries and staged removals."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union

from klondike.cards import Card


class PileKind(Enum):
    TABLEAU = "tableau"
    FOUNDATION = "foundation"
    TALON = "talon"


@dataclass(frozen=True, eq=False)
class StagedRun:
    """Cards a pile has agreed to give up, pending :meth:`commit`.

    Compared by identity: a pile only honours the exact stage it issued.
    """

    cards: Tuple[Card, ...]
    index: int

    @property
    def top(self) -> Card:
        return self.cards[0]

    def __len__(self) -> int:
        return len(self.cards)


# Pile-level entries (tableau and foundation)


@dataclass(frozen=True)
class Insert:
    cards: Tuple[Card, ...]


@dataclass(frozen=True)
class Removal:
    cards: Tuple[Card, ...]


@dataclass(frozen=True)
class FlippedRemoval:
    """A removal that exposed, and turned face up, a face-down card."""

    cards: Tuple[Card, ...]


PileEntry = Union[Insert, Removal, FlippedRemoval]


# Talon entries


@dataclass(frozen=True)
class Advance:
    pointer: int
    available: int


@dataclass(frozen=True)
class Withdrawal:
    pointer: int
    available: int
    card: Card


TalonEntry = Union[Advance, Withdrawal]


# Game entries


@dataclass(frozen=True)
class Move:
    source: PileKind
    dest: PileKind
    source_index: int
    dest_index: int
    score_before: int


@dataclass(frozen=True)
class TalonAdvance:
    counted: bool


GameEntry = Union[Move, TalonAdvance]

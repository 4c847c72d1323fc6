"""Klondike Solitaire rule and state engine."""

from klondike.cards import Card, Color, Rank, Suit, build_deck
from klondike.errors import (
    EmptyPileError,
    FaceDownAccess,
    KlondikeError,
    MultiCardFoundationAttempt,
    PersistenceError,
    PileIndexError,
    RuleViolation,
    SaveNotFound,
    Violation,
)
from klondike.foundation import Foundation
from klondike.game import HIDDEN, Game
from klondike.history import PileKind, StagedRun
from klondike.tableau import Tableau
from klondike.talon import Talon

__all__ = [
    "Card",
    "Color",
    "Rank",
    "Suit",
    "build_deck",
    "EmptyPileError",
    "FaceDownAccess",
    "KlondikeError",
    "MultiCardFoundationAttempt",
    "PersistenceError",
    "PileIndexError",
    "RuleViolation",
    "SaveNotFound",
    "Violation",
    "Foundation",
    "Game",
    "HIDDEN",
    "PileKind",
    "StagedRun",
    "Tableau",
    "Talon",
]

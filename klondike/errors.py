"""Exceptions raised by the Klondike engine."""

from __future__ import annotations

from enum import Enum


class KlondikeError(Exception):
    """Base class for every rejected engine operation."""


class Violation(Enum):
    FIRST_CARD_NOT_KING = "first card of an empty tableau must be a King"
    RANK_OR_COLOR_MISMATCH = "card must be one rank lower and of the opposite color"
    FIRST_CARD_NOT_ACE = "first card of an empty foundation must be an Ace"
    RANK_OR_SUIT_MISMATCH = "card must be one rank higher and of the same suit"


class RuleViolation(KlondikeError):
    """Raised when a placement breaks a pile's ordering rule."""

    def __init__(self, reason: Violation, detail: str | None = None) -> None:
        message = reason.value if detail is None else f"{detail}: {reason.value}"
        super().__init__(message)
        self.reason = reason


class FaceDownAccess(KlondikeError):
    """Raised when a run would be lifted starting at a face-down card."""


class MultiCardFoundationAttempt(KlondikeError):
    """Raised when more than one card is sent to a foundation."""


class EmptyPileError(KlondikeError):
    """Raised when there is no card to take from the source pile."""


class PileIndexError(KlondikeError, IndexError):
    """Raised for a pile or card index outside the valid bounds."""


class PersistenceError(KlondikeError):
    """Raised when a saved game cannot be written or read back."""


class SaveNotFound(PersistenceError):
    """Raised when there is no saved game to load."""

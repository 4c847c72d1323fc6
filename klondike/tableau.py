"""Tableau pile: descending, alternating-color build columns."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from klondike.cards import Card, Rank
from klondike.errors import (
    EmptyPileError,
    FaceDownAccess,
    PileIndexError,
    RuleViolation,
    Violation,
)
from klondike.history import FlippedRemoval, Insert, PileEntry, Removal, StagedRun

LOGGER = logging.getLogger(__name__)


class Tableau:
    """One of the seven build columns, bottom card first."""

    def __init__(self, cards: Iterable[Card] = ()) -> None:
        self._cards: List[Card] = list(cards)
        self._pending: Optional[StagedRun] = None
        self._log: List[PileEntry] = []
        if self._cards:
            self._cards[-1].face_up = True
        LOGGER.debug("Tableau created with %d card(s)", len(self._cards))

    @classmethod
    def restore(cls, cards: Iterable[Card], history: Iterable[PileEntry]) -> "Tableau":
        """Rebuild a column exactly as saved, facing and undo log included."""

        tableau = cls()
        tableau._cards = list(cards)
        tableau._log = list(history)
        return tableau

    @property
    def cards(self) -> List[Card]:
        return list(self._cards)

    @property
    def history(self) -> List[PileEntry]:
        return list(self._log)

    def __len__(self) -> int:
        return len(self._cards)

    def _discard_pending(self, caller: str) -> None:
        if self._pending is not None:
            LOGGER.warning(
                "Staged removal was still pending when %s() was called; discarded", caller
            )
            self._pending = None

    def add(self, run: Sequence[Card]) -> None:
        """Place *run* on top of the column.

        An empty column only accepts a King; otherwise the first card of the
        run must be one rank below the current top and of the other color.
        """

        self._discard_pending("add")
        if not run:
            raise EmptyPileError("No cards to add to the tableau")
        first = run[0]
        if not self._cards:
            if first.rank != Rank.KING:
                raise RuleViolation(Violation.FIRST_CARD_NOT_KING, first.code)
        else:
            top = self._cards[-1]
            if first.rank != top.rank - 1 or first.color == top.color:
                raise RuleViolation(
                    Violation.RANK_OR_COLOR_MISMATCH, f"{first.code} on {top.code}"
                )

        for card in run:
            card.face_up = True
            self._cards.append(card)
        self._log.append(Insert(tuple(run)))
        LOGGER.debug("%d card(s) starting with %s added to tableau", len(run), first.code)

    def peek(self, index: int) -> StagedRun:
        """Stage the run from *index* to the top for removal."""

        self._discard_pending("peek")
        if not 0 <= index < len(self._cards):
            raise PileIndexError(
                f"Card index {index} out of range for a tableau of {len(self._cards)} card(s)"
            )
        if not self._cards[index].face_up:
            raise FaceDownAccess(f"Card at index {index} is face down")
        self._pending = StagedRun(tuple(self._cards[index:]), index)
        return self._pending

    def cancel(self, staged: StagedRun) -> None:
        """Drop a stage without removing anything."""

        if staged is self._pending:
            self._pending = None

    def commit(self, staged: StagedRun) -> None:
        """Remove a run previously returned by :meth:`peek`."""

        if self._pending is None or staged is not self._pending:
            LOGGER.warning("No matching staged removal when commit() was called; nothing changed")
            return
        self._pending = None
        del self._cards[staged.index:]

        if self._cards and not self._cards[-1].face_up:
            self._cards[-1].face_up = True
            self._log.append(FlippedRemoval(staged.cards))
            LOGGER.debug("Top card of the tableau turned face up")
        else:
            self._log.append(Removal(staged.cards))

    def undo(self) -> bool:
        """Reverse the most recent logged mutation."""

        if not self._log:
            LOGGER.warning("Tableau has no previous state to restore")
            return False
        self._pending = None
        entry = self._log.pop()
        if isinstance(entry, Insert):
            del self._cards[len(self._cards) - len(entry.cards):]
        else:
            if isinstance(entry, FlippedRemoval) and self._cards:
                self._cards[-1].face_up = False
            self._cards.extend(entry.cards)
        LOGGER.debug("Tableau restored its previous state (%s)", type(entry).__name__)
        return True

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        shown = " ".join(str(card) for card in self._cards)
        return f"Tableau[{shown}]"

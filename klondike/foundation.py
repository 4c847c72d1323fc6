"""Foundation pile: ascending single-suit completion stacks."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from klondike.cards import Card, Rank
from klondike.errors import RuleViolation, Violation
from klondike.history import Insert, PileEntry, Removal, StagedRun

LOGGER = logging.getLogger(__name__)


class Foundation:
    def __init__(self) -> None:
        self._cards: List[Card] = []
        self._pending: Optional[StagedRun] = None
        self._log: List[PileEntry] = []

    @classmethod
    def restore(cls, cards: Iterable[Card], history: Iterable[PileEntry]) -> "Foundation":
        foundation = cls()
        foundation._cards = list(cards)
        foundation._log = list(history)
        return foundation

    @property
    def cards(self) -> List[Card]:
        return list(self._cards)

    @property
    def history(self) -> List[PileEntry]:
        return list(self._log)

    def __len__(self) -> int:
        return len(self._cards)

    def add(self, card: Card) -> None:
        if self._pending is not None:
            LOGGER.warning("Staged removal was still pending when add() was called; discarded")
            self._pending = None
        if not self._cards:
            if card.rank != Rank.ACE:
                raise RuleViolation(Violation.FIRST_CARD_NOT_ACE, card.code)
        else:
            top = self._cards[-1]
            if card.rank != top.rank + 1 or card.suit != top.suit:
                raise RuleViolation(
                    Violation.RANK_OR_SUIT_MISMATCH, f"{card.code} on {top.code}"
                )
        card.face_up = True
        self._cards.append(card)
        self._log.append(Insert((card,)))
        LOGGER.debug("%s added to foundation", card.code)

    def peek(self) -> Optional[StagedRun]:
        """Stage the top card for removal, or return ``None`` when empty."""

        if self._pending is not None:
            LOGGER.warning("Staged removal was still pending when peek() was called; discarded")
        if not self._cards:
            self._pending = None
            return None
        self._pending = StagedRun((self._cards[-1],), len(self._cards) - 1)
        return self._pending

    def cancel(self, staged: StagedRun) -> None:
        """Drop a stage without removing anything."""

        if staged is self._pending:
            self._pending = None

    def commit(self, staged: StagedRun) -> None:
        if self._pending is None or staged is not self._pending:
            LOGGER.warning("No matching staged removal when commit() was called; nothing changed")
            return
        self._pending = None
        self._cards.pop()
        self._log.append(Removal(staged.cards))

    def is_king(self) -> bool:
        return bool(self._cards) and self._cards[-1].rank == Rank.KING

    def undo(self) -> bool:
        if not self._log:
            LOGGER.warning("Foundation has no previous state to restore")
            return False
        self._pending = None
        entry = self._log.pop()
        if isinstance(entry, Insert):
            self._cards.pop()
        else:
            self._cards.extend(entry.cards)
        LOGGER.debug("Foundation restored its previous state (%s)", type(entry).__name__)
        return True

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"Foundation[{self._cards[-1] if self._cards else ''}]"

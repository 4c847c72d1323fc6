"""Talon: the draw pile revealed three cards at a time."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from klondike.cards import Card
from klondike.history import Advance, StagedRun, TalonEntry, Withdrawal

LOGGER = logging.getLogger(__name__)

WINDOW = 3


class Talon:
    """Fixed backing sequence with a visible window of up to three cards.

    ``pointer`` marks the first visible card and ``available`` the window
    size. Advancing only moves the cursor; a committed withdrawal is the
    one operation that takes a card out of the backing sequence.
    """

    def __init__(self, cards: Iterable[Card] = ()) -> None:
        self._cards: List[Card] = list(cards)
        self.pointer = 0
        self.available = 0
        self._pending: Optional[StagedRun] = None
        self._log: List[TalonEntry] = []

    @classmethod
    def restore(
        cls,
        cards: Iterable[Card],
        pointer: int,
        available: int,
        history: Iterable[TalonEntry],
    ) -> "Talon":
        talon = cls(cards)
        if pointer < 0 or available < 0 or pointer + available > len(talon._cards):
            raise ValueError(
                f"Cursor ({pointer}, {available}) does not fit {len(talon._cards)} card(s)"
            )
        talon.pointer = pointer
        talon.available = available
        talon._log = list(history)
        return talon

    @property
    def cards(self) -> List[Card]:
        return list(self._cards)

    @property
    def history(self) -> List[TalonEntry]:
        return list(self._log)

    def __len__(self) -> int:
        return len(self._cards)

    def visible_cards(self) -> List[Card]:
        return self._cards[self.pointer:self.pointer + self.available]

    def advance(self) -> None:
        """Move the window to the next group of cards, wrapping at the end."""

        self._log.append(Advance(self.pointer, self.available))
        if self._pending is not None:
            LOGGER.warning("Staged removal was still pending when advance() was called; discarded")
            self._pending = None

        total = len(self._cards)
        if total > WINDOW and self.pointer == 0 and self.available == 0:
            self.available = WINDOW
        elif self.pointer + self.available + WINDOW < total:
            self.pointer += self.available
            self.available = WINDOW
        elif total <= WINDOW and self.pointer == 0:
            self.available = 0 if self.available else total
        else:
            self.pointer += self.available
            self.available = total - self.pointer
            if self.pointer == total:
                self.pointer = 0
                self.available = 0
        LOGGER.debug("Talon window at %d (+%d)", self.pointer, self.available)

    def peek(self) -> Optional[StagedRun]:
        """Stage the rightmost visible card, or return ``None`` if none shows."""

        if self._pending is not None:
            LOGGER.warning("Staged removal was still pending when peek() was called; discarded")
            self._pending = None
        if self.available == 0:
            return None
        position = self.pointer + self.available - 1
        self._pending = StagedRun((self._cards[position],), position)
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
        card = self._cards.pop(staged.index)
        self._log.append(Withdrawal(self.pointer, self.available, card))
        self.available -= 1
        LOGGER.debug("%s withdrawn from talon", card.code)

    def undo(self) -> bool:
        if not self._log:
            LOGGER.warning("Talon has no previous state to restore")
            return False
        self._pending = None
        entry = self._log.pop()
        self.pointer = entry.pointer
        self.available = entry.available
        if isinstance(entry, Withdrawal):
            entry.card.face_up = False
            self._cards.insert(self.pointer + self.available - 1, entry.card)
        return True

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        shown = " ".join(card.code for card in self.visible_cards())
        return f"Talon[{shown}] {self.pointer}+{self.available}/{len(self._cards)}"

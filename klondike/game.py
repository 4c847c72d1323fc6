"""Game controller: validates moves, keeps score and drives undo."""

from __future__ import annotations

import logging
import random
from typing import Any, Dict, List, Optional, Union

from klondike.cards import Card, build_deck
from klondike.errors import (
    EmptyPileError,
    KlondikeError,
    MultiCardFoundationAttempt,
    PileIndexError,
)
from klondike.foundation import Foundation
from klondike.history import GameEntry, Move, PileKind, StagedRun, TalonAdvance
from klondike.tableau import Tableau
from klondike.talon import Talon

LOGGER = logging.getLogger(__name__)

TABLEAU_COUNT = 7
FOUNDATION_COUNT = 4
HIDDEN = "??"
DEAL_SEED_RANGE = 2**32

SCORE_DELTAS = {
    (PileKind.TABLEAU, PileKind.TABLEAU): 5,
    (PileKind.TABLEAU, PileKind.FOUNDATION): 10,
    (PileKind.FOUNDATION, PileKind.FOUNDATION): 0,
    (PileKind.FOUNDATION, PileKind.TABLEAU): -15,
    (PileKind.TALON, PileKind.TABLEAU): 5,
    (PileKind.TALON, PileKind.FOUNDATION): 10,
}

Pile = Union[Tableau, Foundation, Talon]


class Game:
    """A single Klondike game: seven tableaus, four foundations and a talon.

    Every move stages the source removal first, lets the destination accept
    or reject the cards, and only then commits the removal, so a rejected
    move leaves all piles untouched.
    """

    def __init__(self, *, seed: Optional[int] = None, rng: Optional[random.Random] = None) -> None:
        self.seed = seed
        self._rng = rng if rng is not None else random.Random(seed)
        self._pending_seed = seed
        self.tableaus: List[Tableau] = [Tableau() for _ in range(TABLEAU_COUNT)]
        self.foundations: List[Foundation] = [Foundation() for _ in range(FOUNDATION_COUNT)]
        self.talon = Talon()
        self.score = 0
        self.moves = 0
        self.history: List[GameEntry] = []

    # ------------------------------------------------------------------
    # Game lifecycle
    # ------------------------------------------------------------------
    def new_game(self, rng: Optional[random.Random] = None) -> None:
        """Shuffle a fresh deck and deal it.

        Every deal gets its own seed, kept in :attr:`seed`, so
        ``Game(seed=game.seed).new_game()`` deals the same layout again. The
        first deal of a game built with a seed uses that seed; later deals,
        and deals from an explicit *rng*, draw a fresh one.
        """

        if rng is None and self._pending_seed is not None:
            deal_seed = self._pending_seed
        else:
            deal_seed = (rng if rng is not None else self._rng).randrange(DEAL_SEED_RANGE)
        self._pending_seed = None
        self.seed = deal_seed

        self.score = 0
        self.moves = 0
        self.history = []

        deck = build_deck(random.Random(deal_seed))
        position = 0
        tableaus = []
        for column in range(TABLEAU_COUNT):
            tableaus.append(Tableau(deck[position:position + column + 1]))
            position += column + 1
        self.tableaus = tableaus
        self.foundations = [Foundation() for _ in range(FOUNDATION_COUNT)]
        self.talon = Talon(deck[position:])
        LOGGER.info("A new game started (%d cards in the talon)", len(self.talon))

    def is_won(self) -> bool:
        return all(foundation.is_king() for foundation in self.foundations)

    # ------------------------------------------------------------------
    # Index helpers
    # ------------------------------------------------------------------
    def _tableau(self, index: int) -> Tableau:
        if not 0 <= index < len(self.tableaus):
            raise PileIndexError(f"Tableau index {index} out of range (0-{len(self.tableaus) - 1})")
        return self.tableaus[index]

    def _foundation(self, index: int) -> Foundation:
        if not 0 <= index < len(self.foundations):
            raise PileIndexError(
                f"Foundation index {index} out of range (0-{len(self.foundations) - 1})"
            )
        return self.foundations[index]

    def _pile(self, kind: PileKind, index: int) -> Pile:
        if kind is PileKind.TABLEAU:
            return self._tableau(index)
        if kind is PileKind.FOUNDATION:
            return self._foundation(index)
        return self.talon

    # ------------------------------------------------------------------
    # Moves
    # ------------------------------------------------------------------
    def _update_score(self, delta: int) -> None:
        self.score = max(self.score + delta, 0)
        self.moves += 1

    def _transfer(
        self,
        source: PileKind,
        dest: PileKind,
        source_index: int,
        dest_index: int,
        staged: StagedRun,
    ) -> None:
        source_pile = self._pile(source, source_index)
        dest_pile = self._pile(dest, dest_index)
        try:
            if isinstance(dest_pile, Tableau):
                dest_pile.add(staged.cards)
            else:
                dest_pile.add(staged.top)
        except KlondikeError:
            source_pile.cancel(staged)
            raise
        source_pile.commit(staged)
        self.history.append(Move(source, dest, source_index, dest_index, self.score))
        self._update_score(SCORE_DELTAS[(source, dest)])
        LOGGER.info(
            "%d card(s) moved from %s %d to %s %d",
            len(staged),
            source.value,
            source_index,
            dest.value,
            dest_index,
        )

    def move_tableau_to_tableau(self, from_index: int, to_index: int, card_index: int) -> None:
        source = self._tableau(from_index)
        self._tableau(to_index)
        if from_index == to_index:
            return
        staged = source.peek(card_index)
        self._transfer(PileKind.TABLEAU, PileKind.TABLEAU, from_index, to_index, staged)

    def move_tableau_to_foundation(self, from_index: int, to_index: int, card_index: int) -> None:
        source = self._tableau(from_index)
        self._foundation(to_index)
        staged = source.peek(card_index)
        if len(staged) != 1:
            source.cancel(staged)
            raise MultiCardFoundationAttempt("Only one card can be moved to a foundation")
        self._transfer(PileKind.TABLEAU, PileKind.FOUNDATION, from_index, to_index, staged)

    def move_foundation_to_foundation(self, from_index: int, to_index: int) -> None:
        source = self._foundation(from_index)
        self._foundation(to_index)
        if from_index == to_index:
            return
        staged = source.peek()
        if staged is None:
            raise EmptyPileError(f"Foundation {from_index} is empty")
        self._transfer(PileKind.FOUNDATION, PileKind.FOUNDATION, from_index, to_index, staged)

    def move_foundation_to_tableau(self, from_index: int, to_index: int) -> None:
        source = self._foundation(from_index)
        self._tableau(to_index)
        staged = source.peek()
        if staged is None:
            raise EmptyPileError(f"Foundation {from_index} is empty")
        self._transfer(PileKind.FOUNDATION, PileKind.TABLEAU, from_index, to_index, staged)

    def move_talon_to_tableau(self, to_index: int) -> None:
        self._tableau(to_index)
        staged = self.talon.peek()
        if staged is None:
            raise EmptyPileError("No talon card is showing")
        self._transfer(PileKind.TALON, PileKind.TABLEAU, 0, to_index, staged)

    def move_talon_to_foundation(self, to_index: int) -> None:
        self._foundation(to_index)
        staged = self.talon.peek()
        if staged is None:
            raise EmptyPileError("No talon card is showing")
        self._transfer(PileKind.TALON, PileKind.FOUNDATION, 0, to_index, staged)

    def advance_talon(self) -> None:
        self.talon.advance()
        counted = bool(self.talon.available)
        self.history.append(TalonAdvance(counted))
        if counted:
            self._update_score(0)
        LOGGER.info("Talon advanced")

    # ------------------------------------------------------------------
    # Undo
    # ------------------------------------------------------------------
    def undo(self) -> bool:
        """Revert the most recent move or talon advance."""

        if not self.history:
            LOGGER.info("Nothing to undo")
            return False
        entry = self.history.pop()
        if isinstance(entry, TalonAdvance):
            self.talon.undo()
            if entry.counted:
                self.moves -= 1
        else:
            self.score = entry.score_before
            self._pile(entry.dest, entry.dest_index).undo()
            self._pile(entry.source, entry.source_index).undo()
            self.moves -= 1
        LOGGER.info("The previous state of the game has been restored")
        return True

    # ------------------------------------------------------------------
    # Query surface
    # ------------------------------------------------------------------
    @staticmethod
    def _codes(cards: List[Card]) -> List[str]:
        return [card.code for card in cards]

    def tableau_cards(self, index: int) -> List[str]:
        """Card codes bottom to top, face-down cards masked as ``HIDDEN``."""

        return [card.code if card.face_up else HIDDEN for card in self._tableau(index).cards]

    def foundation_cards(self, index: int) -> List[str]:
        return self._codes(self._foundation(index).cards)

    def talon_cards(self) -> List[str]:
        return self._codes(self.talon.visible_cards())

    def snapshot(self) -> Dict[str, Any]:
        return {
            "tableaus": [self.tableau_cards(index) for index in range(len(self.tableaus))],
            "foundations": [
                self.foundation_cards(index) for index in range(len(self.foundations))
            ],
            "talon": self.talon_cards(),
            "talon_size": len(self.talon),
            "score": self.score,
            "moves": self.moves,
            "won": self.is_won(),
            "can_undo": bool(self.history),
        }

"""Save and load complete games.

A save file is the game's JSON record passed through a repeating XOR with
the key ``KLONDIKE``. The transform only keeps the file from being
readable at a glance; it offers no protection.
"""

from __future__ import annotations

import json
import logging
import os
import random
from pathlib import Path
from typing import Any, Dict, List, Mapping

from klondike.cards import Card
from klondike.errors import PersistenceError, SaveNotFound
from klondike.foundation import Foundation
from klondike.game import FOUNDATION_COUNT, TABLEAU_COUNT, Game
from klondike.history import (
    Advance,
    FlippedRemoval,
    GameEntry,
    Insert,
    Move,
    PileEntry,
    PileKind,
    Removal,
    TalonAdvance,
    TalonEntry,
    Withdrawal,
)
from klondike.tableau import Tableau
from klondike.talon import Talon

LOGGER = logging.getLogger(__name__)

KEY = b"KLONDIKE"
FORMAT_VERSION = 1
DEFAULT_SAVE_PATH = Path(
    os.environ.get("KLONDIKE_SAVE_PATH", str(Path.home() / "save.k"))
)

_PILE_TAGS = {Insert: "insert", Removal: "removal", FlippedRemoval: "flipped_removal"}
_PILE_TYPES = {tag: entry_type for entry_type, tag in _PILE_TAGS.items()}


def xor_bytes(payload: bytes, key: bytes = KEY) -> bytes:
    """Apply the repeating-key XOR; calling it twice restores *payload*."""

    return bytes(byte ^ key[index % len(key)] for index, byte in enumerate(payload))


# ----------------------------------------------------------------------
# Encoding
# ----------------------------------------------------------------------
def _card_to_dict(card: Card) -> Dict[str, Any]:
    return {"code": card.code, "face_up": card.face_up}


def _pile_entry_to_dict(entry: PileEntry) -> Dict[str, Any]:
    return {"op": _PILE_TAGS[type(entry)], "cards": [card.code for card in entry.cards]}


def _talon_entry_to_dict(entry: TalonEntry) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "op": "withdrawal" if isinstance(entry, Withdrawal) else "advance",
        "pointer": entry.pointer,
        "available": entry.available,
    }
    if isinstance(entry, Withdrawal):
        payload["card"] = entry.card.code
    return payload


def _game_entry_to_dict(entry: GameEntry) -> Dict[str, Any]:
    if isinstance(entry, TalonAdvance):
        return {"op": "advance", "counted": entry.counted}
    return {
        "op": "move",
        "source": entry.source.value,
        "dest": entry.dest.value,
        "source_index": entry.source_index,
        "dest_index": entry.dest_index,
        "score_before": entry.score_before,
    }


def game_to_dict(game: Game) -> Dict[str, Any]:
    """Return the full state of *game*, undo logs included."""

    return {
        "version": FORMAT_VERSION,
        "seed": game.seed,
        "score": game.score,
        "moves": game.moves,
        "tableaus": [
            {
                "cards": [_card_to_dict(card) for card in tableau.cards],
                "history": [_pile_entry_to_dict(entry) for entry in tableau.history],
            }
            for tableau in game.tableaus
        ],
        "foundations": [
            {
                "cards": [_card_to_dict(card) for card in foundation.cards],
                "history": [_pile_entry_to_dict(entry) for entry in foundation.history],
            }
            for foundation in game.foundations
        ],
        "talon": {
            "cards": [_card_to_dict(card) for card in game.talon.cards],
            "pointer": game.talon.pointer,
            "available": game.talon.available,
            "history": [_talon_entry_to_dict(entry) for entry in game.talon.history],
        },
        "history": [_game_entry_to_dict(entry) for entry in game.history],
    }


# ----------------------------------------------------------------------
# Decoding
# ----------------------------------------------------------------------
class _CardRegistry:
    """Hands out one shared :class:`Card` object per code."""

    def __init__(self) -> None:
        self._cards: Dict[str, Card] = {}

    def place(self, raw: Mapping[str, Any]) -> Card:
        face_up = raw["face_up"]
        if not isinstance(face_up, bool):
            raise PersistenceError(f"face_up must be true or false, not {face_up!r}")
        card = Card.from_code(str(raw["code"]), face_up=face_up)
        if card.code in self._cards:
            raise PersistenceError(f"Card {card.code} appears more than once")
        self._cards[card.code] = card
        return card

    def lookup(self, code: Any) -> Card:
        card = self._cards.get(str(code).strip().upper())
        if card is None:
            raise PersistenceError(f"History refers to unknown card {code!r}")
        return card


def _pile_history(registry: _CardRegistry, raw: List[Mapping[str, Any]]) -> List[PileEntry]:
    entries: List[PileEntry] = []
    for item in raw:
        entry_type = _PILE_TYPES.get(item["op"])
        if entry_type is None:
            raise PersistenceError(f"Unknown pile operation {item['op']!r}")
        entries.append(entry_type(tuple(registry.lookup(code) for code in item["cards"])))
    return entries


def _talon_history(registry: _CardRegistry, raw: List[Mapping[str, Any]]) -> List[TalonEntry]:
    entries: List[TalonEntry] = []
    for item in raw:
        pointer = int(item["pointer"])
        available = int(item["available"])
        if item["op"] == "withdrawal":
            entries.append(Withdrawal(pointer, available, registry.lookup(item["card"])))
        elif item["op"] == "advance":
            entries.append(Advance(pointer, available))
        else:
            raise PersistenceError(f"Unknown talon operation {item['op']!r}")
    return entries


def _game_history(raw: List[Mapping[str, Any]]) -> List[GameEntry]:
    entries: List[GameEntry] = []
    for item in raw:
        if item["op"] == "advance":
            counted = item["counted"]
            if not isinstance(counted, bool):
                raise PersistenceError(f"counted must be true or false, not {counted!r}")
            entries.append(TalonAdvance(counted))
        elif item["op"] == "move":
            entries.append(
                Move(
                    PileKind(item["source"]),
                    PileKind(item["dest"]),
                    int(item["source_index"]),
                    int(item["dest_index"]),
                    int(item["score_before"]),
                )
            )
        else:
            raise PersistenceError(f"Unknown game operation {item['op']!r}")
    return entries


def game_from_dict(data: Mapping[str, Any]) -> Game:
    """Build a new :class:`Game` from a record produced by :func:`game_to_dict`.

    Any structural problem is reported as :class:`PersistenceError`.
    """

    try:
        if data.get("version") != FORMAT_VERSION:
            raise PersistenceError(f"Unsupported save format version: {data.get('version')!r}")
        if len(data["tableaus"]) != TABLEAU_COUNT or len(data["foundations"]) != FOUNDATION_COUNT:
            raise PersistenceError("Save file has the wrong number of piles")

        registry = _CardRegistry()
        tableau_cards = [[registry.place(raw) for raw in pile["cards"]] for pile in data["tableaus"]]
        foundation_cards = [
            [registry.place(raw) for raw in pile["cards"]] for pile in data["foundations"]
        ]
        talon_cards = [registry.place(raw) for raw in data["talon"]["cards"]]

        seed = data.get("seed")
        if seed is not None and (not isinstance(seed, int) or isinstance(seed, bool)):
            raise PersistenceError(f"Invalid seed: {seed!r}")
        # The record is already dealt; the next deal draws a fresh seed.
        game = Game(rng=random.Random(seed))
        game.seed = seed
        game.tableaus = [
            Tableau.restore(cards, _pile_history(registry, pile["history"]))
            for cards, pile in zip(tableau_cards, data["tableaus"])
        ]
        game.foundations = [
            Foundation.restore(cards, _pile_history(registry, pile["history"]))
            for cards, pile in zip(foundation_cards, data["foundations"])
        ]
        game.talon = Talon.restore(
            talon_cards,
            int(data["talon"]["pointer"]),
            int(data["talon"]["available"]),
            _talon_history(registry, data["talon"]["history"]),
        )
        game.score = int(data["score"])
        game.moves = int(data["moves"])
        game.history = _game_history(data["history"])
    except PersistenceError:
        raise
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise PersistenceError(f"Malformed save data: {exc}") from exc
    return game


# ----------------------------------------------------------------------
# Blob and file helpers
# ----------------------------------------------------------------------
def encode(game: Game) -> bytes:
    return xor_bytes(json.dumps(game_to_dict(game)).encode("utf-8"))


def decode(blob: bytes) -> Game:
    try:
        data = json.loads(xor_bytes(blob).decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise PersistenceError(f"Save data is corrupt: {exc}") from exc
    if not isinstance(data, dict):
        raise PersistenceError("Save data is corrupt: expected an object")
    return game_from_dict(data)


def save_game(game: Game, path: Path = DEFAULT_SAVE_PATH) -> Path:
    """Write *game* to *path*, creating parent directories as needed."""

    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(encode(game))
    except OSError as exc:
        LOGGER.error("Failed to save game data to %s: %s", path, exc)
        raise PersistenceError(f"Could not write {path}: {exc}") from exc
    LOGGER.info("Game saved to %s", path)
    return path


def load_game(path: Path = DEFAULT_SAVE_PATH) -> Game:
    """Read a game saved by :func:`save_game`.

    A new :class:`Game` is returned; callers keep their current game when
    this raises :class:`PersistenceError`.
    """

    path = Path(path)
    if not path.exists():
        LOGGER.warning("No saved game at %s", path)
        raise SaveNotFound(f"Save file not found: {path}")
    try:
        blob = path.read_bytes()
    except OSError as exc:
        LOGGER.error("Failed to read %s: %s", path, exc)
        raise PersistenceError(f"Could not read {path}: {exc}") from exc
    try:
        game = decode(blob)
    except PersistenceError as exc:
        LOGGER.error("Failed to load game data from %s: %s", path, exc)
        raise
    LOGGER.info("Game loaded from %s", path)
    return game

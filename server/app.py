"""Minimal Flask API serving one Klondike game to a local front-end."""
from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Tuple

import pandas as pd
from flask import Flask, jsonify, request

from klondike import Game, KlondikeError, PersistenceError, SaveNotFound
from klondike.persistence import DEFAULT_SAVE_PATH, load_game, save_game

DATA_DIR = Path(os.environ.get("KLONDIKE_DATA_DIR", "data"))
RESULTS_PATH = DATA_DIR / "results.csv"
RESULT_COLUMNS = ["timestamp_utc", "seed", "result", "score", "moves"]

LOGGER = logging.getLogger("klondike.server")


def _env_seed() -> int | None:
    raw = os.environ.get("KLONDIKE_SEED", "").strip()
    return int(raw, 10) if raw else None


app = Flask(__name__)
app.config.update(
    SAVE_PATH=DEFAULT_SAVE_PATH,
    RESULTS_PATH=RESULTS_PATH,
    SEED=_env_seed(),
)

_state: Dict[str, Any] = {"game": None, "recorded": False}

MoveHandler = Callable[[Game, Dict[str, int]], None]

MOVES: Dict[Tuple[str, str], Tuple[Tuple[str, ...], MoveHandler]] = {
    ("tableau", "tableau"): (
        ("from", "to", "card"),
        lambda game, args: game.move_tableau_to_tableau(args["from"], args["to"], args["card"]),
    ),
    ("tableau", "foundation"): (
        ("from", "to", "card"),
        lambda game, args: game.move_tableau_to_foundation(args["from"], args["to"], args["card"]),
    ),
    ("foundation", "foundation"): (
        ("from", "to"),
        lambda game, args: game.move_foundation_to_foundation(args["from"], args["to"]),
    ),
    ("foundation", "tableau"): (
        ("from", "to"),
        lambda game, args: game.move_foundation_to_tableau(args["from"], args["to"]),
    ),
    ("talon", "tableau"): (
        ("to",),
        lambda game, args: game.move_talon_to_tableau(args["to"]),
    ),
    ("talon", "foundation"): (
        ("to",),
        lambda game, args: game.move_talon_to_foundation(args["to"]),
    ),
}


def current_game() -> Game:
    game = _state["game"]
    if game is None:
        game = Game(seed=app.config["SEED"])
        game.new_game()
        _state["game"] = game
        _state["recorded"] = False
    return game


def reset_state() -> None:
    """Forget the served game; the next request deals a new one."""

    _state["game"] = None
    _state["recorded"] = False


def _load_results_frame(path: Path) -> pd.DataFrame:
    if path.exists():
        return pd.read_csv(path)
    return pd.DataFrame(columns=RESULT_COLUMNS)


def _record_result(game: Game, result: str) -> None:
    path = Path(app.config["RESULTS_PATH"])
    row = {
        "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        "seed": game.seed,
        "result": result,
        "score": game.score,
        "moves": game.moves,
    }
    frame = _load_results_frame(path)
    new_row = pd.DataFrame([row], columns=RESULT_COLUMNS)
    frame = new_row if frame.empty else pd.concat([frame, new_row], ignore_index=True)
    path.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(path, index=False)
    _state["recorded"] = True
    LOGGER.info("Recorded %s with score %d in %s", result, game.score, path)


def _validate_move(payload: Any) -> Tuple[MoveHandler, Dict[str, int]]:
    if not isinstance(payload, dict):
        raise ValueError("Request body must be a JSON object")
    source = str(payload.get("source", "")).lower()
    dest = str(payload.get("dest", "")).lower()
    if (source, dest) not in MOVES:
        raise ValueError(f"Unsupported move: {source or '?'} -> {dest or '?'}")
    fields, handler = MOVES[(source, dest)]

    cleaned: Dict[str, int] = {}
    for field in fields:
        if field not in payload:
            raise ValueError(f"Missing field: {field}")
        value = payload[field]
        if not isinstance(value, int) or isinstance(value, bool):
            raise ValueError(f"{field} has invalid type: {type(value).__name__}")
        cleaned[field] = value
    return handler, cleaned


def _error(exc: Exception, status: int = 400):
    return jsonify({"error": str(exc), "kind": type(exc).__name__}), status


@app.get("/api/game")
def get_game():
    return jsonify(current_game().snapshot())


@app.post("/api/game/new")
def new_game():
    game = current_game()
    if game.moves and not _state["recorded"]:
        _record_result(game, "abandoned")
    game.new_game()
    _state["recorded"] = False
    return jsonify(game.snapshot()), 201


@app.post("/api/move")
def make_move():
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}
    try:
        handler, args = _validate_move(payload)
    except ValueError as exc:
        return _error(exc)

    game = current_game()
    try:
        handler(game, args)
    except KlondikeError as exc:
        LOGGER.info("Move rejected: %s", exc)
        return _error(exc)

    if game.is_won() and not _state["recorded"]:
        _record_result(game, "win")
    return jsonify(game.snapshot())


@app.post("/api/talon/advance")
def advance_talon():
    game = current_game()
    game.advance_talon()
    return jsonify(game.snapshot())


@app.post("/api/undo")
def undo():
    game = current_game()
    restored = game.undo()
    payload = game.snapshot()
    payload["restored"] = restored
    return jsonify(payload)


@app.post("/api/save")
def save():
    try:
        path = save_game(current_game(), Path(app.config["SAVE_PATH"]))
    except PersistenceError as exc:
        return _error(exc, 500)
    return jsonify({"status": "saved", "path": str(path)})


@app.post("/api/load")
def load():
    try:
        game = load_game(Path(app.config["SAVE_PATH"]))
    except SaveNotFound as exc:
        return _error(exc, 404)
    except PersistenceError as exc:
        return _error(exc)
    _state["game"] = game
    _state["recorded"] = game.is_won()
    return jsonify(game.snapshot())


if __name__ == "__main__":  # pragma: no cover - manual execution helper
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.run(host="127.0.0.1", port=5000, debug=True, threaded=False)

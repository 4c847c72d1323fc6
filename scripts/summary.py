"""Summarise the finished-game results log written by the Klondike server."""
from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Iterable, Sequence

import numpy as np
import pandas as pd

REQUIRED_COLUMNS = {"result", "score", "moves"}

LOGGER = logging.getLogger("summary")


class ResultsError(Exception):
    """Raised when a results file cannot be summarised."""


@dataclass(frozen=True)
class Summary:
    """Aggregate statistics describing a collection of finished games."""

    total_games: int
    result_counts: dict[str, int]
    win_rate: float | None
    average_score: float | None
    median_score: float | None
    p90_score: float | None
    best_winning_score: int | None
    average_moves: float | None
    median_moves: float | None
    fewest_winning_moves: int | None


def _normalise_results(column: pd.Series) -> pd.Series:
    return column.fillna("").astype(str).str.strip().str.lower().replace("", "unknown")


def load_results(path: Path) -> pd.DataFrame:
    """Read a results CSV into a frame with normalised ``result`` values."""

    if not path.exists():
        raise ResultsError(f"{path}: File not found")
    try:
        frame = pd.read_csv(path)
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as exc:
        raise ResultsError(f"{path}: Unreadable CSV ({exc})") from exc

    missing = REQUIRED_COLUMNS - set(frame.columns)
    if missing:
        raise ResultsError(f"{path}: Missing required columns: " + ", ".join(sorted(missing)))

    frame["result"] = _normalise_results(frame["result"])
    frame["score"] = pd.to_numeric(frame["score"], errors="coerce")
    frame["moves"] = pd.to_numeric(frame["moves"], errors="coerce")
    LOGGER.debug("Loaded %d rows from %s", len(frame), path)
    return frame


def filter_results(
    frame: pd.DataFrame,
    include_results: Sequence[str] | None = None,
    exclude_results: Sequence[str] | None = None,
) -> pd.DataFrame:
    """Return *frame* filtered by optional result inclusion/exclusion lists."""

    include_set = {value.strip().lower() for value in include_results or []}
    exclude_set = {value.strip().lower() for value in exclude_results or []}

    mask = np.ones(len(frame), dtype=bool)
    if include_set:
        mask &= frame["result"].isin(include_set).to_numpy()
    if exclude_set:
        mask &= ~frame["result"].isin(exclude_set).to_numpy()
    return frame[mask]


def _optional_float(values: np.ndarray, func) -> float | None:
    if values.size == 0:
        return None
    return float(func(values))


def summarise_frame(frame: pd.DataFrame) -> Summary:
    """Return aggregate statistics for the games in *frame*."""

    total = int(frame.shape[0])
    counts = {str(label): int(count) for label, count in frame["result"].value_counts().items()}
    wins = frame[frame["result"] == "win"]

    scores = frame["score"].dropna().to_numpy(dtype=float)
    moves = frame["moves"].dropna().to_numpy(dtype=float)
    winning_scores = wins["score"].dropna()
    winning_moves = wins["moves"].dropna()

    return Summary(
        total_games=total,
        result_counts=dict(sorted(counts.items())),
        win_rate=counts.get("win", 0) / total if total else None,
        average_score=_optional_float(scores, np.mean),
        median_score=_optional_float(scores, np.median),
        p90_score=_optional_float(scores, lambda values: np.percentile(values, 90)),
        best_winning_score=int(winning_scores.max()) if not winning_scores.empty else None,
        average_moves=_optional_float(moves, np.mean),
        median_moves=_optional_float(moves, np.median),
        fewest_winning_moves=int(winning_moves.min()) if not winning_moves.empty else None,
    )


def format_summary(path: Path, summary: Summary) -> str:
    """Return a human-readable description of *summary* for *path*."""

    lines = [f"{path}: {summary.total_games} games"]

    if summary.result_counts:
        ordered = ", ".join(f"{label}={count}" for label, count in summary.result_counts.items())
        lines.append(f"  results: {ordered}")

    if summary.win_rate is not None:
        lines.append(f"  win rate: {summary.win_rate * 100:.1f}%")

    if summary.average_score is not None:
        lines.append(
            f"  score: mean={summary.average_score:.1f} median={summary.median_score:.1f} "
            f"p90={summary.p90_score:.1f}"
        )
    if summary.average_moves is not None:
        lines.append(
            f"  moves: mean={summary.average_moves:.1f} median={summary.median_moves:.1f}"
        )

    if summary.best_winning_score is not None:
        lines.append(
            f"  best win: score {summary.best_winning_score}, "
            f"fewest moves {summary.fewest_winning_moves}"
        )

    return "\n".join(lines)


def summarise_path(
    path: Path,
    include_results: Sequence[str] | None = None,
    exclude_results: Sequence[str] | None = None,
) -> Summary:
    frame = load_results(path)
    return summarise_frame(filter_results(frame, include_results, exclude_results))


def run(
    paths: Iterable[str],
    *,
    include_results: Sequence[str] | None = None,
    exclude_results: Sequence[str] | None = None,
) -> list[tuple[Path, Summary]]:
    results: list[tuple[Path, Summary]] = []
    for raw_path in paths:
        path = Path(raw_path)
        summary = summarise_path(path, include_results, exclude_results)
        results.append((path, summary))
    return results


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Summarise Klondike results logs exported as CSV.",
    )
    parser.add_argument(
        "paths",
        nargs="+",
        help="Paths to results files. Use shell globs to summarise multiple files at once.",
    )
    parser.add_argument(
        "--include-result",
        dest="include_results",
        action="append",
        default=None,
        help="Only include games whose result matches the given value. Can be repeated.",
    )
    parser.add_argument(
        "--exclude-result",
        dest="exclude_results",
        action="append",
        default=None,
        help="Ignore games whose result matches the given value. Can be repeated.",
    )
    parser.add_argument(
        "--json",
        dest="as_json",
        action="store_true",
        help="Emit the summary as JSON instead of formatted text.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        summaries = run(
            args.paths,
            include_results=args.include_results,
            exclude_results=args.exclude_results,
        )
    except ResultsError as exc:
        parser.error(str(exc))

    if args.as_json:
        payload = [
            {"path": str(path), "summary": asdict(summary)} for path, summary in summaries
        ]
        print(json.dumps(payload, indent=2))
    else:
        for path, summary in summaries:
            print(format_summary(path, summary))

    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())

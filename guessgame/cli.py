"""Terminal front-end: play a round or manage the leaderboard without the GUI."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import time
from typing import Callable, Dict, List, Optional

from . import scoreboard
from .config import app_log_path, init_logging, load_game_settings, settings_path, shutdown_logging
from .engine import InvalidGuessError, Outcome, RoundEngine, RoundStatus
from .levels import LEVELS, level_by_name
from .scoreboard import DATE_FORMAT, LeaderboardIOError, ScoreStore

logger = logging.getLogger(__name__)

FEEDBACK = {
    Outcome.TOO_LOW: "Too low! Try higher.",
    Outcome.TOO_HIGH: "Too high! Try lower.",
}


def record_to_dict(record: scoreboard.ScoreRecord) -> Dict[str, object]:
    return {
        "name": record.name,
        "level": record.level.name,
        "attempts": record.attempts,
        "time_seconds": record.time_seconds,
        "date": record.date.strftime(DATE_FORMAT),
        "correct_number": record.correct_number,
    }


def print_scores(store: ScoreStore, output: str = "text") -> None:
    if output == "json":
        print(json.dumps([record_to_dict(r) for r in store], indent=2))
        return
    if not len(store):
        print("No high scores yet.")
        return
    print(f"\nLeaderboard (Top {store.capacity}):")
    print(f"{'#':>3}  {'Name':<16} {'Level':<7} {'Tries':>5} {'Time':>5}  {'Date':<16}  Number")
    for idx, r in enumerate(store, start=1):
        print(
            f"{idx:>3}  {r.name[:16]:<16} {r.level.label:<7} {r.attempts:>5} {r.time_seconds:>4}s"
            f"  {r.date.strftime(DATE_FORMAT):<16}  {r.correct_number}"
        )


def run_doctor(store: ScoreStore) -> None:
    print("Number Guessing Game diagnostics")
    print(f"- Python: {sys.version.split()[0]}")
    print(f"- Safe mode: {scoreboard.SAFE_MODE}")
    print(f"- Highscore file: {store.path}")
    print(f"- Settings file: {settings_path()}")
    print(f"- Log file: {app_log_path()}")

    def _check(path: str) -> str:
        try:
            if os.path.exists(path):
                with open(path, "r", encoding="utf-8") as f:
                    f.read(64)
                return "ok"
            return "missing"
        except Exception as exc:
            return f"error ({exc})"

    print(f"- Highscore status: {_check(store.path)}")
    print(f"- Settings status: {_check(str(settings_path()))}")
    print(f"- Entries loaded: {len(store)}")


def play_round(
    engine: RoundEngine,
    store: ScoreStore,
    level,
    name: Optional[str] = None,
    input_fn: Callable[[str], str] = input,
    clock: Callable[[], float] = time.monotonic,
) -> Optional[scoreboard.ScoreRecord]:
    """Play one round in the terminal; returns the saved record or None if abandoned.

    There is no background timer here: before each guess is evaluated, one
    tick is applied for every whole second that passed since the last one.
    """
    round_id = engine.start_round(level)
    print(f"\nNew round! Level: {level.label}. {level.describe()}")
    print("Enter your guess, or q to give up.")
    last = clock()

    while engine.status is RoundStatus.ACTIVE:
        raw = input_fn(f"[{engine.remaining}s left] Your guess: ").strip()
        now = clock()
        ticks = int(now - last)
        last += ticks
        for _ in range(ticks):
            engine.tick(round_id)
        if engine.status is RoundStatus.TIMED_OUT:
            break
        if raw.lower() in {"q", "quit"}:
            print("Round abandoned. No score recorded.")
            logger.info("Terminal round %d abandoned", round_id)
            return None
        if not raw:
            continue
        try:
            result = engine.submit_guess(raw)
        except InvalidGuessError:
            print("Invalid input, enter a number.")
            continue
        if result.outcome in FEEDBACK:
            print(FEEDBACK[result.outcome])

    snap = engine.current_state()
    if snap.status is RoundStatus.WON:
        print(f"Correct! You guessed the number {snap.secret} in {snap.attempts} attempts and {snap.elapsed}s.")
    else:
        print(f"Time's up! Number was {snap.secret}")

    if name is None:
        name = input_fn("Name: ")
    record = engine.build_record(name)
    store.add(record)
    try:
        store.save()
    except LeaderboardIOError as exc:
        print(f"Could not save highscores ({exc}). Your result is kept for this session only.")
    return record


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Number Guessing Game: terminal play and leaderboard tools.")
    parser.add_argument("--scores", action="store_true", help="Print the leaderboard and exit.")
    parser.add_argument("--output", choices=("text", "json"), default="text", help="Leaderboard output format.")
    parser.add_argument("--export", metavar="PATH", help="Write the leaderboard as CSV to PATH.")
    parser.add_argument("--import", dest="import_path", metavar="PATH", help="Merge CSV records from PATH.")
    parser.add_argument("--clear", action="store_true", help="Delete all high scores.")
    parser.add_argument("--doctor", action="store_true", help="Print paths and file status, then exit.")
    parser.add_argument("--play", action="store_true", help="Play a round in the terminal.")
    parser.add_argument("--level", choices=[lvl.name for lvl in LEVELS], help="Level for --play (default: last used).")
    parser.add_argument("--name", help="Player name to record after --play.")
    parser.add_argument("--scores-file", help="Leaderboard CSV path (default data/guess_highscores.csv).")
    safe = parser.add_mutually_exclusive_group()
    safe.add_argument("--safe-mode", dest="safe_mode", action="store_true", help="Disable persistence during this run.")
    safe.add_argument("--persist", dest="safe_mode", action="store_false", help="Force persistence during this run.")
    parser.set_defaults(safe_mode=None)
    parser.add_argument("--log", action="store_true", help="Write log output to data/logs/app.log.")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    if args.log:
        init_logging()
    if args.safe_mode is not None:
        scoreboard.set_safe_mode(args.safe_mode)

    store = ScoreStore(args.scores_file)
    try:
        store.load()
    except LeaderboardIOError as exc:
        print(f"Could not load highscores ({exc}). Starting with an empty leaderboard.")

    try:
        if args.doctor:
            run_doctor(store)
            return
        if args.import_path:
            added = store.import_file(args.import_path)
            if added:
                store.save()
                print(f"Imported {added} entries.")
            else:
                print("No valid entries found.")
        if args.clear:
            store.clear()
            store.save()
            print("Leaderboard cleared.")
        if args.export:
            store.export_file(args.export)
            print(f"Exported to {args.export}")
        if args.play:
            level = level_by_name(args.level) if args.level else load_game_settings()["level"]
            play_round(RoundEngine(), store, level, name=args.name)
            print_scores(store, args.output)
        elif args.scores or not (args.import_path or args.clear or args.export):
            print_scores(store, args.output)
    except LeaderboardIOError as exc:
        print(str(exc))
        raise SystemExit(1)
    finally:
        if args.log:
            shutdown_logging()


if __name__ == "__main__":
    main()

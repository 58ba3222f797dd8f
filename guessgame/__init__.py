"""Number guessing game: timed rounds and a ranked CSV leaderboard."""

from .engine import GuessResult, InvalidGuessError, Outcome, RoundEngine, RoundSnapshot, RoundStatus
from .levels import DEFAULT_LEVEL, EASY, HARD, LEVELS, MEDIUM, Level, level_by_name
from .scoreboard import MAX_ENTRIES, LeaderboardIOError, ScoreRecord, ScoreStore

__all__ = [
    "DEFAULT_LEVEL",
    "EASY",
    "GuessResult",
    "HARD",
    "InvalidGuessError",
    "LEVELS",
    "LeaderboardIOError",
    "Level",
    "MAX_ENTRIES",
    "MEDIUM",
    "Outcome",
    "RoundEngine",
    "RoundSnapshot",
    "RoundStatus",
    "ScoreRecord",
    "ScoreStore",
    "level_by_name",
]

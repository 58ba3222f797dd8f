"""Difficulty levels: fixed value records with a range and a time limit."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class Level:
    name: str
    label: str
    minimum: int
    maximum: int
    time_seconds: int
    order: int

    def __str__(self) -> str:
        return self.label

    def describe(self) -> str:
        return f"Range: {self.minimum} to {self.maximum} | Time: {self.time_seconds} seconds"


EASY = Level("EASY", "Easy", 1, 50, 15, 0)
MEDIUM = Level("MEDIUM", "Medium", 1, 100, 30, 1)
HARD = Level("HARD", "Hard", 1, 500, 60, 2)

LEVELS: Tuple[Level, ...] = (EASY, MEDIUM, HARD)
DEFAULT_LEVEL = MEDIUM

_BY_NAME: Dict[str, Level] = {level.name: level for level in LEVELS}


def level_by_name(token: str) -> Level:
    """Return the level for a stable name token such as ``EASY``.

    Raises ``KeyError`` when the token is unknown. Matching is exact, like the
    persisted file format expects.
    """
    return _BY_NAME[token]


def level_by_label(label: str) -> Level:
    for level in LEVELS:
        if level.label == label:
            return level
    raise KeyError(label)

"""State machine for a single timed guessing round.

The engine owns the secret, the attempt counter and the countdown integer,
but no clock or scheduler: hosts call :meth:`RoundEngine.tick` once per
second while a round is active.
"""

from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional, Union

from .levels import DEFAULT_LEVEL, Level
from .scoreboard import ScoreRecord

logger = logging.getLogger(__name__)


class InvalidGuessError(ValueError):
    """Raised for guesses that are not whole numbers."""


class RoundStatus(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    WON = "won"
    TIMED_OUT = "timed_out"

    @property
    def resolved(self) -> bool:
        return self in (RoundStatus.WON, RoundStatus.TIMED_OUT)


class Outcome(Enum):
    TOO_LOW = "too_low"
    TOO_HIGH = "too_high"
    CORRECT = "correct"
    TIME_UP = "time_up"
    TICK = "tick"
    IGNORED = "ignored"


@dataclass(frozen=True)
class GuessResult:
    outcome: Outcome
    attempts: int
    remaining: int
    elapsed: Optional[int] = None

    @property
    def resolved(self) -> bool:
        return self.outcome in (Outcome.CORRECT, Outcome.TIME_UP)


@dataclass(frozen=True)
class RoundSnapshot:
    status: RoundStatus
    level: Level
    remaining: int
    attempts: int
    elapsed: Optional[int]
    secret: Optional[int]
    round_id: int


class RoundEngine:
    def __init__(
        self,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._rng = rng or random.Random()
        self._clock = clock
        self._now = now
        self._lock = threading.RLock()
        self.status = RoundStatus.IDLE
        self.level = DEFAULT_LEVEL
        self.secret = 0
        self.attempts = 0
        self.remaining = 0
        self.elapsed: Optional[int] = None
        self.round_id = 0
        self._started_at = 0.0
        self.started_on: Optional[datetime] = None

    def start_round(self, level: Level) -> int:
        """Begin a new round on ``level`` and return its id."""
        with self._lock:
            self.level = level
            self.secret = self._rng.randint(level.minimum, level.maximum)
            self.attempts = 0
            self.remaining = level.time_seconds
            self.elapsed = None
            self.round_id += 1
            self._started_at = self._clock()
            self.started_on = self._now()
            self.status = RoundStatus.ACTIVE
            logger.debug("Round %d started on %s", self.round_id, level.name)
            return self.round_id

    def submit_guess(self, value: Union[int, str]) -> GuessResult:
        with self._lock:
            if self.status is not RoundStatus.ACTIVE:
                return self._ignored()
            guess = parse_guess(value)
            self.attempts += 1
            if guess == self.secret:
                self.elapsed = max(0, int(self._clock() - self._started_at))
                self.status = RoundStatus.WON
                logger.info(
                    "Round %d won on %s in %d attempts, %ds",
                    self.round_id,
                    self.level.name,
                    self.attempts,
                    self.elapsed,
                )
                return GuessResult(Outcome.CORRECT, self.attempts, self.remaining, self.elapsed)
            outcome = Outcome.TOO_LOW if guess < self.secret else Outcome.TOO_HIGH
            return GuessResult(outcome, self.attempts, self.remaining)

    def tick(self, round_id: Optional[int] = None) -> GuessResult:
        """Consume one second. Ticks for another round or outside ACTIVE are ignored."""
        with self._lock:
            if self.status is not RoundStatus.ACTIVE:
                return self._ignored()
            if round_id is not None and round_id != self.round_id:
                logger.debug("Dropping stale tick for round %s (current %d)", round_id, self.round_id)
                return self._ignored()
            self.remaining -= 1
            if self.remaining <= 0:
                self.remaining = 0
                self.elapsed = self.level.time_seconds
                self.status = RoundStatus.TIMED_OUT
                logger.info("Round %d timed out on %s after %d attempts", self.round_id, self.level.name, self.attempts)
                return GuessResult(Outcome.TIME_UP, self.attempts, 0, self.elapsed)
            return GuessResult(Outcome.TICK, self.attempts, self.remaining)

    def current_state(self) -> RoundSnapshot:
        with self._lock:
            return RoundSnapshot(
                status=self.status,
                level=self.level,
                remaining=self.remaining,
                attempts=self.attempts,
                elapsed=self.elapsed,
                secret=self.secret if self.status.resolved else None,
                round_id=self.round_id,
            )

    def build_record(self, name: str, now: Optional[datetime] = None) -> ScoreRecord:
        """Turn the resolved round into a leaderboard entry."""
        with self._lock:
            if not self.status.resolved:
                raise RuntimeError("Round is not finished yet.")
            return ScoreRecord.create(
                name=(name or "").strip(),
                level=self.level,
                attempts=self.attempts,
                time_seconds=self.elapsed or 0,
                correct_number=self.secret,
                date=now or self._now(),
            )

    def _ignored(self) -> GuessResult:
        return GuessResult(Outcome.IGNORED, self.attempts, self.remaining, self.elapsed)


def parse_guess(value: Union[int, str]) -> int:
    if isinstance(value, bool):
        raise InvalidGuessError("Enter a number.")
    if isinstance(value, int):
        return value
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        raise InvalidGuessError(f"Not a number: {text!r}") from None

"""Ranked, capacity-bounded leaderboard persisted as CSV."""

from __future__ import annotations

import csv
import io
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from typing import Iterator, List, Optional, Tuple

from .levels import Level, level_by_name

DATA_DIR = "data"
HIGHSCORE_FILE = os.environ.get("GUESS_SCORES_PATH", os.path.join(DATA_DIR, "guess_highscores.csv"))
MAX_ENTRIES = 20
DATE_FORMAT = "%Y-%m-%d %H:%M"
HEADER = ("Name", "Level", "Attempts", "Time(s)", "Date", "CorrectNumber")
HEADER_TOKENS = {"name", "id"}
DEFAULT_PLAYER = "Player"

SAFE_MODE = os.getenv("GUESS_SAFE_MODE", "0") not in {"0", "false", "False", "", None}
SAFE_MODE_MESSAGE = "Safe mode enabled; skipping leaderboard persistence."

logger = logging.getLogger(__name__)


class LeaderboardIOError(OSError):
    """The leaderboard file could not be read or written."""


def set_safe_mode(enabled: bool) -> None:
    """Allow callers (e.g., CLI flags/tests) to toggle persistence at runtime."""
    global SAFE_MODE
    SAFE_MODE = bool(enabled)


@dataclass(frozen=True)
class ScoreRecord:
    name: str
    level: Level
    attempts: int
    time_seconds: int
    date: datetime
    correct_number: int

    def __post_init__(self) -> None:
        # Line breaks inside a name are stored as "\n" only; a bare "\r" would split the CSV row.
        object.__setattr__(self, "name", normalize_newlines(self.name))

    @classmethod
    def create(
        cls,
        name: str,
        level: Level,
        attempts: int,
        time_seconds: int,
        correct_number: int,
        date: Optional[datetime] = None,
    ) -> "ScoreRecord":
        """Build a record stamped to the minute (the precision the file keeps).

        Blank names, and names the loader would mistake for a header row
        (``Name``, ``ID``), are recorded as ``Player``.
        """
        stamp = (date or datetime.now()).replace(second=0, microsecond=0)
        if not name or name.strip().lower() in HEADER_TOKENS:
            name = DEFAULT_PLAYER
        return cls(name, level, int(attempts), int(time_seconds), stamp, int(correct_number))

    def rank_key(self) -> Tuple[int, int, int, datetime]:
        return (self.level.order, self.attempts, self.time_seconds, self.date)

    def to_row(self) -> List[str]:
        return [
            self.name,
            self.level.name,
            str(self.attempts),
            str(self.time_seconds),
            self.date.strftime(DATE_FORMAT),
            str(self.correct_number),
        ]

    @classmethod
    def from_row(cls, row: List[str]) -> Optional["ScoreRecord"]:
        """Parse one CSV row; return None if any field is unusable."""
        if len(row) < len(HEADER):
            return None
        try:
            level = level_by_name(row[1].strip())
            attempts = int(row[2])
            time_seconds = int(row[3])
            date = datetime.strptime(row[4].strip(), DATE_FORMAT)
            correct_number = int(row[5])
        except (KeyError, ValueError):
            return None
        if attempts < 0 or time_seconds < 0:
            return None
        return cls(row[0], level, attempts, time_seconds, date, correct_number)


def rank(records: List[ScoreRecord], limit: int = MAX_ENTRIES) -> List[ScoreRecord]:
    """Sort best-first and drop everything past ``limit``. Ties keep encounter order."""
    return sorted(records, key=ScoreRecord.rank_key)[:limit]


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _is_header(row: List[str]) -> bool:
    return bool(row) and row[0].strip().lower() in HEADER_TOKENS


def _parse_row(chunk: str) -> Optional[List[str]]:
    try:
        rows = list(csv.reader([chunk]))
    except csv.Error:
        return None
    return rows[0] if len(rows) == 1 else None


class ScoreStore:
    """Owns the ranked leaderboard and its CSV representation."""

    def __init__(self, path: Optional[str] = None, capacity: int = MAX_ENTRIES) -> None:
        self.path = path or HIGHSCORE_FILE
        self.capacity = capacity
        self._records: List[ScoreRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ScoreRecord]:
        return iter(tuple(self._records))

    @property
    def records(self) -> Tuple[ScoreRecord, ...]:
        return tuple(self._records)

    def _rerank(self) -> None:
        self._records = rank(self._records, self.capacity)

    def add(self, record: ScoreRecord) -> None:
        self._records.append(record)
        self._rerank()

    def clear(self) -> None:
        self._records = []

    # -- text format ---------------------------------------------------

    def serialize(self) -> str:
        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator="\n")
        writer.writerow(HEADER)
        for record in self._records:
            writer.writerow(record.to_row())
        return buf.getvalue()

    export_all = serialize

    @staticmethod
    def deserialize(text: str) -> List[ScoreRecord]:
        """Parse leaderboard text, dropping blank, header and malformed rows.

        Physical lines are joined only while a quoted field is still open.
        If the joined row does not parse, or the text ends inside a quote,
        only the first physical line is dropped and reading resumes on the
        next one, so a stray quote cannot swallow the rows after it.
        """
        records: List[ScoreRecord] = []
        lines = normalize_newlines(text).split("\n")
        i = 0
        while i < len(lines):
            if not lines[i].strip():
                i += 1
                continue
            j = i
            chunk = lines[i]
            while chunk.count('"') % 2 and j + 1 < len(lines):
                j += 1
                chunk += "\n" + lines[j]
            if chunk.count('"') % 2:
                logger.debug("Skipping leaderboard line with an unclosed quote: %r", lines[i])
                i += 1
                continue
            row = _parse_row(chunk)
            if row is not None and _is_header(row):
                i = j + 1
                continue
            record = ScoreRecord.from_row(row) if row is not None else None
            if record is None:
                logger.debug("Skipping malformed leaderboard row: %r", lines[i])
                i += 1
                continue
            records.append(record)
            i = j + 1
        return records

    # -- persistence ---------------------------------------------------

    def load(self, path: Optional[str] = None) -> None:
        """Replace the in-memory leaderboard with the file's contents.

        A missing file means an empty leaderboard. Read failures raise
        ``LeaderboardIOError`` and leave the current records untouched.
        """
        file_path = path or self.path
        if SAFE_MODE:
            logger.info(SAFE_MODE_MESSAGE)
            self._records = []
            return
        try:
            with open(file_path, "r", encoding="utf-8", newline="") as f:
                text = f.read()
        except FileNotFoundError:
            self._records = []
            return
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Failed loading highscores from %s: %s", file_path, exc)
            raise LeaderboardIOError(f"Could not read {file_path} ({exc})") from exc
        self._records = self.deserialize(text)
        self._rerank()
        logger.info("Loaded %d highscores from %s", len(self._records), file_path)

    def save(self, path: Optional[str] = None) -> None:
        if SAFE_MODE:
            logger.info(SAFE_MODE_MESSAGE)
            return
        self._write(path or self.path, self.serialize())

    def export_file(self, path: str) -> None:
        self._write(path, self.export_all())
        logger.info("Exported %d highscores to %s", len(self._records), path)

    def import_merge(self, text: str) -> int:
        """Add every valid record found in ``text``; return how many were parsed."""
        incoming = self.deserialize(text)
        if not incoming:
            return 0
        self._records.extend(incoming)
        self._rerank()
        return len(incoming)

    def import_file(self, path: str) -> int:
        try:
            with open(path, "r", encoding="utf-8", newline="") as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise LeaderboardIOError(f"Could not read {path} ({exc})") from exc
        added = self.import_merge(text)
        logger.info("Imported %d highscores from %s", added, path)
        return added

    @staticmethod
    def _write(file_path: str, text: str) -> None:
        dir_name = os.path.dirname(file_path) or "."
        temp_path = None
        try:
            os.makedirs(dir_name, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(dir=dir_name, prefix=".highscores.", text=True)
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(text)
            os.replace(temp_path, file_path)
        except OSError as exc:
            logger.warning("Failed saving highscores to %s: %s", file_path, exc)
            raise LeaderboardIOError(f"Could not save {file_path} ({exc})") from exc
        finally:
            if temp_path and os.path.exists(temp_path):
                try:
                    os.remove(temp_path)
                except OSError:
                    pass

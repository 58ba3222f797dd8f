"""Paths, persisted game settings and log setup shared by the GUI and CLI."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Any, Optional

from shared import settings as settings_store

from .levels import DEFAULT_LEVEL, level_by_name
from .scoreboard import DATA_DIR

LOG_DIR = os.path.join(DATA_DIR, "logs")
SETTINGS_FILE = os.path.join(DATA_DIR, "guess_settings.properties")
SETTINGS_COMMENT = "Number Guessing Game Settings"
LOGGER_NAMES = ("guessgame", "shared")
THEME_CHOICES = ("default", "high_contrast", "light", "dark")
DEFAULT_THEME = "default"


def settings_path() -> Path:
    return Path(os.environ.get("GUESS_SETTINGS_PATH", SETTINGS_FILE))


def load_game_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    """Return ``{"muted": bool, "level": Level, "theme": str}``; bad or missing values use defaults."""
    raw = settings_store.load_settings(
        path or settings_path(),
        {"muted": "false", "last_level": DEFAULT_LEVEL.name, "theme": DEFAULT_THEME},
    )
    try:
        level = level_by_name(str(raw["last_level"]).strip().upper())
    except KeyError:
        level = DEFAULT_LEVEL
    theme = raw["theme"] if raw["theme"] in THEME_CHOICES else DEFAULT_THEME
    return {"muted": settings_store.parse_bool(raw["muted"]), "level": level, "theme": theme}


def save_game_settings(data: Dict[str, Any], path: Optional[Path] = None) -> None:
    settings_store.save_settings(
        path or settings_path(),
        {
            "muted": bool(data.get("muted", False)),
            "last_level": data.get("level", DEFAULT_LEVEL).name,
            "theme": data.get("theme", DEFAULT_THEME),
        },
        comment=SETTINGS_COMMENT,
    )


def app_log_path() -> str:
    return os.path.join(LOG_DIR, "app.log")


def init_logging(log_dir: Optional[str] = None, level: int = logging.INFO) -> logging.Logger:
    log_dir = log_dir or LOG_DIR
    os.makedirs(log_dir, exist_ok=True)
    handler = RotatingFileHandler(
        os.path.join(log_dir, "app.log"), maxBytes=200_000, backupCount=3, encoding="utf-8", delay=True
    )
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    for name in LOGGER_NAMES:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        # Ensure fresh handler each launch; closed handlers can block writes.
        for h in list(logger.handlers):
            logger.removeHandler(h)
            try:
                h.close()
            except Exception:
                pass
        logger.addHandler(handler)
        logger.propagate = False
    return logging.getLogger(LOGGER_NAMES[0])


def shutdown_logging() -> None:
    for name in LOGGER_NAMES:
        for h in list(logging.getLogger(name).handlers):
            try:
                h.flush()
                h.close()
            except Exception:
                pass


def log_user_event(message: str, log_path: Optional[str] = None) -> None:
    log_path = log_path or os.path.join(LOG_DIR, "user.log")
    try:
        os.makedirs(os.path.dirname(log_path) or ".", exist_ok=True)
        ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        with open(log_path, "a", encoding="utf-8") as f:
            f.write(f"{ts} - {message}\n")
    except OSError:
        pass

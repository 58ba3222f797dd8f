"""Lightweight helpers for reading/writing small ``key=value`` settings files."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Any

logger = logging.getLogger(__name__)

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}


def parse_bool(value: Any, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    return default


def parse_settings(text: str) -> Dict[str, str]:
    """Parse ``key=value`` lines; ``#``/``!`` comments and blank lines are skipped."""
    data: Dict[str, str] = {}
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped[0] in "#!":
            continue
        if "=" in stripped:
            key, value = stripped.split("=", 1)
        elif ":" in stripped:
            key, value = stripped.split(":", 1)
        else:
            key, value = stripped, ""
        data[key.strip()] = value.strip()
    return data


def load_settings(path: Path, defaults: Dict[str, Any]) -> Dict[str, Any]:
    """
    Load settings from ``path`` merging with ``defaults``.

    Returns defaults if the file is missing or unreadable. Values come back as
    strings; callers coerce them.
    """
    data = dict(defaults)
    path = Path(path)
    if not path.exists():
        return data
    try:
        raw = parse_settings(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as exc:
        # Fall back to defaults on any error.
        logger.warning("Failed loading settings from %s: %s", path, exc)
        return data
    data.update(raw)
    return data


def save_settings(path: Path, data: Dict[str, Any], comment: str = "Settings") -> None:
    """Write ``data`` as ``key=value`` lines to ``path``; errors are logged, not raised."""
    lines = [f"#{comment}", f"#{datetime.now():%a %b %d %H:%M:%S %Y}"]
    for key in sorted(data):
        value = data[key]
        if isinstance(value, bool):
            value = "true" if value else "false"
        lines.append(f"{key}={value}")
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    except OSError as exc:
        logger.warning("Failed saving settings to %s: %s", path, exc)

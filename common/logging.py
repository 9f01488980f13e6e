"""Logging setup shared by the CLI and the sync map library modules."""
from __future__ import annotations

import logging
import os
from typing import Optional, TextIO

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LEVEL_ENV = "JIBSYNC_LOG_LEVEL"


def _parse_level(value: int | str | None) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    text = value.strip()
    if text.isdigit():
        return int(text)
    candidate = logging.getLevelName(text.upper())
    return candidate if isinstance(candidate, int) else None


def resolve_level(value: int | str | None = None) -> int:
    """Return the explicit level, else ``JIBSYNC_LOG_LEVEL``, else INFO."""

    for candidate in (value, os.environ.get(LEVEL_ENV)):
        parsed = _parse_level(candidate)
        if parsed is not None:
            return parsed
    return logging.INFO


def configure_logging(level: int | str | None = None, stream: Optional[TextIO] = None) -> int:
    """Install the shared stderr handler once; later calls only adjust the level.

    Build output goes to stdout, so log records must never share that stream.
    """

    resolved = resolve_level(level)
    root = logging.getLogger()
    if not root.hasHandlers():
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        root.setLevel(resolved)
    elif level is not None:
        root.setLevel(resolved)
    return resolved


def get_logger(name: Optional[str] = None) -> logging.Logger:
    configure_logging()
    return logging.getLogger(name or "jibsync")


__all__ = ["LEVEL_ENV", "LOG_FORMAT", "configure_logging", "get_logger", "resolve_level"]

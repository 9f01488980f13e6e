"""End-to-end extraction: build output -> payload -> sync map."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Mapping, Optional, Sequence

from common.config import SyncSettings, load_settings
from common.logging import get_logger
from executor.runtime.command import run_command

from .builder import StatFunc, build_sync_map, decode_payload
from .extractor import extract_payload
from .models import SyncMap
from .normalize import escape_backslashes

LOGGER = get_logger(__name__)

Runner = Callable[..., bytes]


def sync_map_from_output(
    output: bytes | str,
    *,
    settings: SyncSettings | None = None,
    stat: StatFunc = os.stat,
) -> SyncMap:
    """Extract the sync map from already captured build output."""

    settings = settings or load_settings()
    extracted = extract_payload(output, settings=settings)
    line = extracted.line
    if settings.escape_backslashes:
        line = escape_backslashes(line)
    payload = decode_payload(line)
    sync_map = build_sync_map(payload, stat=stat)
    LOGGER.info(
        "Extracted Jib sync map with %d entries (format %s)",
        len(sync_map),
        extracted.version or "unversioned",
    )
    return sync_map


def get_sync_map(
    cmd: Sequence[str],
    *,
    cwd: Path | str | None = None,
    env: Optional[Mapping[str, str]] = None,
    settings: SyncSettings | None = None,
    runner: Runner = run_command,
    stat: StatFunc = os.stat,
) -> SyncMap:
    """Run the Jib sync map command and extract its sync map.

    ``CommandError`` raised by ``runner`` propagates unchanged so that the
    caller can decide whether to fall back to a full rebuild.
    """

    settings = settings or load_settings()
    output = runner(cmd, cwd=cwd, env=env, timeout=settings.command_timeout)
    return sync_map_from_output(output, settings=settings, stat=stat)


__all__ = ["get_sync_map", "sync_map_from_output"]

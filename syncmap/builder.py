"""Decode the sync map payload and resolve local file metadata."""
from __future__ import annotations

import json
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable, List

from common.logging import get_logger

from .errors import FileStatError, MalformedPayloadError
from .models import SyncEntry, SyncMap, WireEntry, WirePayload

LOGGER = get_logger(__name__)

StatFunc = Callable[[str], os.stat_result]


def decode_payload(line: bytes) -> WirePayload:
    """Decode a (normalized) payload line into direct/generated wire entries."""

    try:
        data = json.loads(line)
    except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as exc:
        raise MalformedPayloadError(f"failed to decode Jib sync data: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedPayloadError(
            f"failed to decode Jib sync data: expected a JSON object, got {type(data).__name__}"
        )
    return WirePayload(
        direct=_decode_entries(data, "direct"),
        generated=_decode_entries(data, "generated"),
    )


def _decode_entries(data: dict, key: str) -> List[WireEntry]:
    raw = data.get(key)
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise MalformedPayloadError(f"'{key}' must be a list, got {type(raw).__name__}")
    entries: List[WireEntry] = []
    for position, item in enumerate(raw):
        if not isinstance(item, dict):
            raise MalformedPayloadError(f"'{key}[{position}]' must be an object")
        src = item.get("src")
        dest = item.get("dest")
        if not isinstance(src, str) or not isinstance(dest, str):
            raise MalformedPayloadError(f"'{key}[{position}]' requires string 'src' and 'dest' fields")
        entries.append(WireEntry(src=src, dest=dest))
    return entries


def add_entries(
    sync_map: SyncMap,
    entries: Iterable[WireEntry],
    direct: bool,
    *,
    stat: StatFunc = os.stat,
) -> None:
    """Stat each entry's source and store it in ``sync_map`` (last write wins)."""

    for entry in entries:
        try:
            info = stat(entry.src)
        except OSError as exc:
            raise FileStatError(entry.src, exc.strerror or str(exc)) from exc
        except ValueError as exc:
            # os.stat rejects paths with embedded NUL bytes before reaching the OS
            raise FileStatError(entry.src, str(exc)) from exc
        sync_map[entry.src] = SyncEntry(
            dest=[entry.dest],
            file_time=_mtime(info),
            file_time_ns=info.st_mtime_ns,
            is_direct=direct,
        )


def build_sync_map(payload: WirePayload, *, stat: StatFunc = os.stat) -> SyncMap:
    """Return a fresh sync map; direct entries first, then generated ones.

    A source listed in both collections therefore ends up flagged as
    generated. Any stat failure aborts the whole build.
    """

    sync_map: SyncMap = {}
    add_entries(sync_map, payload.direct, True, stat=stat)
    add_entries(sync_map, payload.generated, False, stat=stat)
    LOGGER.debug(
        "Resolved %d sync entries (%d direct, %d generated on the wire)",
        len(sync_map),
        len(payload.direct),
        len(payload.generated),
    )
    return sync_map


def _mtime(info: Any) -> datetime:
    seconds, nanos = divmod(info.st_mtime_ns, 1_000_000_000)
    return datetime.fromtimestamp(seconds, tz=timezone.utc) + timedelta(microseconds=nanos // 1000)


__all__ = ["add_entries", "build_sync_map", "decode_payload"]

"""Data types shared by the extractor, builder and CLI."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class WireEntry:
    """One ``{"src": ..., "dest": ...}`` pair as printed by Jib."""

    src: str
    dest: str


@dataclass(frozen=True)
class WirePayload:
    direct: List[WireEntry] = field(default_factory=list)
    generated: List[WireEntry] = field(default_factory=list)


@dataclass(frozen=True)
class ExtractedPayload:
    """Payload line isolated from the build output.

    ``version`` is the tag after the marker (``"SYNCMAP/1"``) or ``None`` for
    the bare ``BEGIN JIB JSON`` marker; ``line_number`` is 1-based.
    """

    line: bytes
    version: Optional[str]
    line_number: int


@dataclass
class SyncEntry:
    """Resolved record for one source; ``file_time_ns`` keeps full stat precision."""

    dest: List[str]
    file_time: datetime
    is_direct: bool
    file_time_ns: int = field(default=0, compare=False)


SyncMap = Dict[str, SyncEntry]


def sync_map_to_dict(sync_map: SyncMap) -> Dict[str, Dict[str, Any]]:
    """Render a sync map as JSON-compatible primitives."""

    return {
        src: {
            "dest": list(entry.dest),
            "file_time": entry.file_time.isoformat(),
            "file_time_ns": entry.file_time_ns,
            "is_direct": entry.is_direct,
        }
        for src, entry in sync_map.items()
    }


__all__ = [
    "ExtractedPayload",
    "SyncEntry",
    "SyncMap",
    "WireEntry",
    "WirePayload",
    "sync_map_to_dict",
]

"""Locate the sync map payload inside Jib's human-readable build output.

Jib prints a marker line (``BEGIN JIB JSON`` or, from Jib 2.0.0 onwards,
``BEGIN JIB JSON: SYNCMAP/1``) followed by a single line holding a JSON
object. Everything else in the stream is ordinary build logging.
"""
from __future__ import annotations

import re
from typing import List, Optional, Pattern, Tuple

from common.config import SyncSettings, load_settings
from common.logging import get_logger

from .errors import MultipleMarkersError, SyncDataUnavailableError
from .models import ExtractedPayload

LOGGER = get_logger(__name__)


def marker_pattern(marker: str) -> Pattern[bytes]:
    """Return the regex matching a marker line with an optional version tag."""

    return re.compile(re.escape(marker.encode("utf-8")) + rb"(?::\s*(?P<version>\S+))?\s*$")


def find_markers(lines: List[bytes], pattern: Pattern[bytes]) -> List[Tuple[int, Optional[str]]]:
    """Return ``(index, version)`` for every marker line, in output order."""

    found: List[Tuple[int, Optional[str]]] = []
    for index, line in enumerate(lines):
        match = pattern.search(line)
        if match is None:
            continue
        version = match.group("version")
        found.append((index, version.decode("utf-8", "replace") if version else None))
    return found


def extract_payload(output: bytes | str, *, settings: SyncSettings | None = None) -> ExtractedPayload:
    """Return the JSON payload line that follows the sync map marker.

    Raises ``SyncDataUnavailableError`` when no marker (or no payload after
    it) is present and ``MultipleMarkersError`` when more than one marker is
    found while ``on_multiple_markers`` is ``"error"``.
    """

    settings = settings or load_settings()
    if isinstance(output, str):
        output = output.encode("utf-8")
    lines = output.splitlines()
    markers = find_markers(lines, marker_pattern(settings.marker))
    if not markers:
        raise SyncDataUnavailableError(f"failed to get Jib sync data: no '{settings.marker}' marker in output")

    if len(markers) > 1:
        line_numbers = [index + 1 for index, _ in markers]
        if settings.on_multiple_markers == "error":
            raise MultipleMarkersError(
                f"found {len(markers)} '{settings.marker}' markers (lines "
                + ", ".join(str(number) for number in line_numbers)
                + "); expected exactly one",
                line_numbers,
            )
        LOGGER.warning(
            "Found %d sync data markers (lines %s); using the first",
            len(markers),
            ", ".join(str(number) for number in line_numbers),
        )

    index, version = markers[0]
    LOGGER.debug("Sync data marker on line %d (version=%s)", index + 1, version or "unversioned")
    payload = _next_payload_line(lines, index + 1)
    if payload is None:
        raise SyncDataUnavailableError(
            f"failed to get Jib sync data: marker on line {index + 1} is not followed by a JSON object"
        )
    return ExtractedPayload(line=payload, version=version, line_number=index + 1)


def _next_payload_line(lines: List[bytes], start: int) -> Optional[bytes]:
    for line in lines[start:]:
        candidate = line.strip()
        if not candidate:
            continue
        if candidate.startswith(b"{") and candidate.endswith(b"}"):
            return candidate
        return None
    return None


__all__ = ["extract_payload", "find_markers", "marker_pattern"]

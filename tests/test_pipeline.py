from __future__ import annotations

import json
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from common.config import SyncSettings
from executor.runtime.command import CommandError
from syncmap import (
    FileStatError,
    MalformedPayloadError,
    SyncDataUnavailableError,
    SyncEntry,
    get_sync_map,
    sync_map_from_output,
    sync_map_to_dict,
)

SETTINGS = SyncSettings()
MTIME = 1_577_836_800


def _fixed_stat(path: str) -> SimpleNamespace:
    return SimpleNamespace(st_mtime=MTIME, st_mtime_ns=MTIME * 1_000_000_000)


def _output(payload: Dict[str, Any], marker: str = "BEGIN JIB JSON: SYNCMAP/1") -> bytes:
    lines = ["[INFO] Scanning for projects...", "[INFO] --- jib-maven-plugin:2.0.0:_skaffold-sync-map ---", marker]
    lines.append(json.dumps(payload, separators=(",", ":")))
    lines.append("[INFO] BUILD SUCCESS")
    return ("\n".join(lines) + "\n").encode("utf-8")


class FakeRunner:
    """Command runner double returning canned output."""

    def __init__(self, output: bytes = b"", error: Exception | None = None):
        self.output = output
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def __call__(self, cmd, **kwargs) -> bytes:
        self.calls.append({"cmd": list(cmd), **kwargs})
        if self.error is not None:
            raise self.error
        return self.output


def test_end_to_end_example_with_real_file(tmp_path: Path) -> None:
    src = tmp_path / "a" / "A.class"
    src.parent.mkdir()
    src.write_bytes(b"\xca\xfe\xba\xbe")
    os.utime(src, (MTIME, MTIME))
    output = _output({"direct": [{"src": str(src), "dest": "/app/A.class"}], "generated": []})

    sync_map = sync_map_from_output(output, settings=SETTINGS)

    assert sync_map == {
        str(src): SyncEntry(
            dest=["/app/A.class"],
            file_time=datetime.fromtimestamp(MTIME, tz=timezone.utc),
            is_direct=True,
        )
    }


def test_end_to_end_example_with_literal_path() -> None:
    output = (
        b"... unrelated log lines ...\n"
        b"BEGIN JIB JSON: SYNCMAP/1\n"
        b'{"direct":[{"src":"/a/A.class","dest":"/app/A.class"}],"generated":[]}\n'
    )
    sync_map = sync_map_from_output(output, settings=SETTINGS, stat=_fixed_stat)
    assert sync_map == {
        "/a/A.class": SyncEntry(
            dest=["/app/A.class"],
            file_time=datetime.fromtimestamp(MTIME, tz=timezone.utc),
            is_direct=True,
        )
    }


def test_entry_count_matches_distinct_sources() -> None:
    payload = {
        "direct": [
            {"src": "/a/A.class", "dest": "/app/A.class"},
            {"src": "/a/B.class", "dest": "/app/B.class"},
            {"src": "/a/A.class", "dest": "/app/A2.class"},
        ],
        "generated": [
            {"src": "/a/B.class", "dest": "/app/gen/B.class"},
            {"src": "/a/C.java", "dest": "/app/C.class"},
        ],
    }
    sync_map = sync_map_from_output(_output(payload), settings=SETTINGS, stat=_fixed_stat)
    assert sorted(sync_map) == ["/a/A.class", "/a/B.class", "/a/C.java"]
    assert sync_map["/a/A.class"].is_direct is True
    assert sync_map["/a/B.class"].is_direct is False
    assert sync_map["/a/C.java"].is_direct is False


def test_windows_backslashes_survive_as_single_backslashes() -> None:
    output = (
        b"BEGIN JIB JSON\r\n"
        b'{"direct":[{"src":"C:\\work\\A.class","dest":"\\app\\A.class"}],"generated":[]}\r\n'
    )
    seen: List[str] = []

    def stat(path: str) -> SimpleNamespace:
        seen.append(path)
        return SimpleNamespace(st_mtime=MTIME, st_mtime_ns=MTIME * 1_000_000_000)

    sync_map = sync_map_from_output(output, settings=SETTINGS, stat=stat)
    assert seen == ["C:\\work\\A.class"]
    assert sync_map["C:\\work\\A.class"].dest == ["\\app\\A.class"]


def test_escape_backslashes_can_be_disabled() -> None:
    output = b'BEGIN JIB JSON\n{"direct":[{"src":"C:\\work\\A.class","dest":"/app/A.class"}]}\n'
    settings = SyncSettings(escape_backslashes=False)
    with pytest.raises(MalformedPayloadError):
        sync_map_from_output(output, settings=settings, stat=_fixed_stat)


def test_missing_marker_builds_nothing() -> None:
    calls: List[str] = []

    def stat(path: str) -> SimpleNamespace:
        calls.append(path)
        return SimpleNamespace(st_mtime=MTIME, st_mtime_ns=MTIME * 1_000_000_000)

    with pytest.raises(SyncDataUnavailableError):
        sync_map_from_output(b"[INFO] BUILD SUCCESS\n", settings=SETTINGS, stat=stat)
    assert calls == []


def test_malformed_payload_builds_nothing() -> None:
    output = b'BEGIN JIB JSON: SYNCMAP/1\n{"direct":[{"src":"/a/A.class",}]}\n'
    with pytest.raises(MalformedPayloadError):
        sync_map_from_output(output, settings=SETTINGS, stat=_fixed_stat)


def test_missing_source_names_path(tmp_path: Path) -> None:
    missing = str(tmp_path / "missing.class")
    output = _output({"direct": [{"src": missing, "dest": "/app/missing.class"}], "generated": []})
    with pytest.raises(FileStatError) as excinfo:
        sync_map_from_output(output, settings=SETTINGS)
    assert excinfo.value.path == missing


def test_each_call_returns_fresh_map() -> None:
    output = _output({"direct": [{"src": "/a/A.class", "dest": "/app/A.class"}]})
    first = sync_map_from_output(output, settings=SETTINGS, stat=_fixed_stat)
    second = sync_map_from_output(output, settings=SETTINGS, stat=_fixed_stat)
    assert first == second
    assert first is not second
    first.clear()
    assert "/a/A.class" in second


def test_get_sync_map_runs_command_with_settings_timeout() -> None:
    runner = FakeRunner(_output({"generated": [{"src": "/a/A.java", "dest": "/app/A.class"}]}))
    settings = SyncSettings(command_timeout=30.0)
    cmd = ["mvn", "jib:_skaffold-sync-map", "-q"]
    sync_map = get_sync_map(cmd, cwd="/work", settings=settings, runner=runner, stat=_fixed_stat)
    assert runner.calls == [{"cmd": cmd, "cwd": "/work", "env": None, "timeout": 30.0}]
    assert sync_map["/a/A.java"].is_direct is False


def test_get_sync_map_propagates_command_error() -> None:
    error = CommandError("Command failed (1): mvn", returncode=1)
    runner = FakeRunner(error=error)
    with pytest.raises(CommandError) as excinfo:
        get_sync_map(["mvn"], settings=SETTINGS, runner=runner)
    assert excinfo.value is error


def test_sync_map_to_dict_is_json_ready() -> None:
    sync_map = sync_map_from_output(
        _output({"direct": [{"src": "/a/A.class", "dest": "/app/A.class"}]}),
        settings=SETTINGS,
        stat=_fixed_stat,
    )
    rendered = sync_map_to_dict(sync_map)
    assert rendered == {
        "/a/A.class": {
            "dest": ["/app/A.class"],
            "file_time": "2020-01-01T00:00:00+00:00",
            "file_time_ns": MTIME * 1_000_000_000,
            "is_direct": True,
        }
    }
    json.dumps(rendered)

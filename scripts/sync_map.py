"""Print the Jib sync map for a build as JSON.

Either run the Jib sync map goal/task given after ``--`` or read output that
was captured earlier with ``--from-file``. Exit status 2 means the build
produced no sync data and the caller should fall back to a full rebuild.
"""
from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from common.config import SettingsError, load_settings
from common.logging import configure_logging, get_logger
from executor.runtime.command import CommandError
from syncmap import SyncDataUnavailableError, SyncMapError, get_sync_map, sync_map_from_output, sync_map_to_dict

LOGGER = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_UNAVAILABLE = 2


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Extract the Jib sync map from build output")
    parser.add_argument("--from-file", type=Path, help="Read captured build output from a file ('-' for stdin)")
    parser.add_argument("--cwd", type=Path, help="Working directory for the build command")
    parser.add_argument("--timeout", type=float, help="Override command_timeout (seconds)")
    parser.add_argument("--config", type=Path, help="Settings file (defaults to config/sync.yaml)")
    parser.add_argument("--log-level", help="Logging level (defaults to JIBSYNC_LOG_LEVEL or INFO)")
    parser.add_argument("command", nargs=argparse.REMAINDER, help="Build command to run, after --")
    args = parser.parse_args(argv)
    if args.command and args.command[0] == "--":
        args.command = args.command[1:]
    if bool(args.from_file) == bool(args.command):
        parser.error("provide exactly one of --from-file or a command after --")
    return args


def _read_output(path: Path) -> bytes:
    if str(path) == "-":
        return sys.stdin.buffer.read()
    return path.read_bytes()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)
    try:
        settings = load_settings(args.config)
        if args.timeout is not None:
            settings = replace(settings, command_timeout=args.timeout)
        if args.from_file:
            sync_map = sync_map_from_output(_read_output(args.from_file), settings=settings)
        else:
            sync_map = get_sync_map(args.command, cwd=args.cwd, settings=settings)
    except SyncDataUnavailableError as exc:
        LOGGER.warning("%s; fall back to a full rebuild", exc)
        return EXIT_UNAVAILABLE
    except (SyncMapError, CommandError, SettingsError, OSError) as exc:
        LOGGER.error("Sync map extraction failed: %s", exc)
        return EXIT_FAILED
    print(json.dumps(sync_map_to_dict(sync_map), indent=2, sort_keys=True))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())

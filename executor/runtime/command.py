"""Subprocess wrapper used to run the Jib build tool and capture its output."""
from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Mapping, Optional, Sequence

from common.logging import get_logger
from common.paths import ensure_parent

LOGGER = get_logger(__name__)


class CommandError(RuntimeError):
    def __init__(self, message: str, returncode: int | None = None, output: bytes = b""):
        super().__init__(message)
        self.returncode = returncode
        self.output = output


def run_command(
    cmd: Sequence[str],
    *,
    cwd: Path | str | None = None,
    env: Optional[Mapping[str, str]] = None,
    timeout: float | None = None,
    log_path: Path | None = None,
) -> bytes:
    """Run ``cmd`` and return its combined stdout/stderr as bytes.

    Raises ``CommandError`` when the binary cannot be started, exits with a
    non-zero status or exceeds ``timeout`` seconds.
    """

    argv = [str(part) for part in cmd]
    if not argv:
        raise CommandError("Empty command")
    display = " ".join(argv)
    LOGGER.info("Running command: %s", display)
    try:
        proc = subprocess.run(
            argv,
            cwd=cwd,
            env=dict(env) if env is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as exc:
        raise CommandError(f"Command not found: {argv[0]}") from exc
    except subprocess.TimeoutExpired as exc:
        partial = exc.output or b""
        _append_log(log_path, display, partial)
        raise CommandError(f"Command timed out after {timeout}s: {display}", output=partial) from exc
    except OSError as exc:
        raise CommandError(f"Command could not be started: {display}: {exc}") from exc

    output = proc.stdout or b""
    _append_log(log_path, display, output)
    if proc.returncode != 0:
        raise CommandError(
            f"Command failed ({proc.returncode}): {display}",
            returncode=proc.returncode,
            output=output,
        )
    return output


def _append_log(log_path: Path | None, display: str, output: bytes) -> None:
    if log_path is None:
        return
    ensure_parent(log_path)
    with log_path.open("ab") as handle:
        handle.write(("$ " + display + "\n").encode("utf-8"))
        handle.write(output)


__all__ = ["CommandError", "run_command"]

"""Sync extraction settings loaded from config/sync.yaml.

Values in the YAML file can be overridden per process through ``JIBSYNC_*``
environment variables so that CI jobs can tune behaviour without editing the
checked-in defaults."""
from __future__ import annotations

import functools
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from common.paths import get_config_dir

DEFAULT_MARKER = "BEGIN JIB JSON"
MULTIPLE_MARKER_POLICIES = ("error", "first")

_ENV_CONFIG = "JIBSYNC_CONFIG"
_ENV_OVERRIDES = {
    "on_multiple_markers": "JIBSYNC_ON_MULTIPLE_MARKERS",
    "escape_backslashes": "JIBSYNC_ESCAPE_BACKSLASHES",
    "command_timeout": "JIBSYNC_COMMAND_TIMEOUT",
}


class SettingsError(ValueError):
    """Raised when the settings file or an override holds an invalid value."""


@dataclass(frozen=True)
class SyncSettings:
    """Knobs for marker detection, payload repair and command execution."""

    marker: str = DEFAULT_MARKER
    on_multiple_markers: str = "error"
    escape_backslashes: bool = True
    command_timeout: Optional[float] = None

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "SyncSettings":
        """Build settings from a raw mapping, validating every known key.

        Unknown keys are rejected so that typos in the YAML file surface
        immediately instead of silently falling back to defaults.
        """

        unknown = sorted(set(data) - set(cls.__dataclass_fields__))
        if unknown:
            raise SettingsError("Unknown setting(s): " + ", ".join(unknown))
        defaults = cls()
        return cls(
            marker=_coerce_marker(data.get("marker", defaults.marker)),
            on_multiple_markers=_coerce_policy(
                data.get("on_multiple_markers", defaults.on_multiple_markers)
            ),
            escape_backslashes=_coerce_bool(
                "escape_backslashes", data.get("escape_backslashes", defaults.escape_backslashes)
            ),
            command_timeout=_coerce_timeout(data.get("command_timeout", defaults.command_timeout)),
        )


def default_settings_path() -> Path:
    env = (os.environ.get(_ENV_CONFIG) or "").strip()
    if env:
        return Path(env)
    return get_config_dir() / "sync.yaml"


def load_settings(path: Path | str | None = None) -> SyncSettings:
    """Return settings from ``path`` (or the default file) plus env overrides.

    A missing default file yields built-in defaults; an explicitly requested
    file that does not exist raises ``FileNotFoundError``.
    """

    explicit = path is not None
    settings_path = Path(path) if explicit else default_settings_path()
    return _load_settings_cached(str(settings_path), explicit, _override_signature())


@functools.lru_cache(maxsize=8)
def _load_settings_cached(
    settings_path: str, explicit: bool, overrides: Tuple[Tuple[str, str], ...]
) -> SyncSettings:
    path = Path(settings_path)
    data: Dict[str, Any] = {}
    if path.exists():
        try:
            loaded = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise SettingsError(f"Settings file {path} is not valid YAML: {exc}") from exc
        if not isinstance(loaded, dict):
            raise SettingsError(f"Settings file {path} must contain a mapping")
        data.update(loaded)
    elif explicit:
        raise FileNotFoundError(f"Settings file not found: {path}")
    data.update(dict(overrides))
    return SyncSettings.from_mapping(data)


def _override_signature() -> Tuple[Tuple[str, str], ...]:
    overrides: List[Tuple[str, str]] = []
    for key, env_name in _ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if raw is not None and raw.strip():
            overrides.append((key, raw.strip()))
    return tuple(overrides)


def _coerce_marker(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise SettingsError("marker must be a non-empty string")
    return value.strip()


def _coerce_policy(value: Any) -> str:
    normalized = str(value or "").strip().lower()
    if normalized not in MULTIPLE_MARKER_POLICIES:
        raise SettingsError(
            f"on_multiple_markers must be one of {', '.join(MULTIPLE_MARKER_POLICIES)}; got {value!r}"
        )
    return normalized


def _coerce_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "1", "yes", "on"}:
            return True
        if lowered in {"false", "0", "no", "off"}:
            return False
    raise SettingsError(f"{name} must be a boolean; got {value!r}")


def _coerce_timeout(value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, str) and value.strip().lower() in {"", "none", "null"}:
        return None
    if isinstance(value, bool):
        raise SettingsError("command_timeout must be a number of seconds")
    try:
        timeout = float(value)
    except (TypeError, ValueError) as exc:
        raise SettingsError(f"command_timeout must be a number of seconds; got {value!r}") from exc
    if timeout <= 0:
        raise SettingsError("command_timeout must be positive")
    return timeout


__all__ = [
    "DEFAULT_MARKER",
    "MULTIPLE_MARKER_POLICIES",
    "SettingsError",
    "SyncSettings",
    "default_settings_path",
    "load_settings",
]

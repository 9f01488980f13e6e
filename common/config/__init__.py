"""Configuration helpers for sync extraction and runtime flags."""

from .settings import SettingsError, SyncSettings, load_settings

__all__ = ["SettingsError", "SyncSettings", "load_settings"]

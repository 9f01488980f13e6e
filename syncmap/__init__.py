"""Jib sync map extraction."""

from .errors import (
    FileStatError,
    MalformedPayloadError,
    MultipleMarkersError,
    SyncDataUnavailableError,
    SyncMapError,
)
from .models import SyncEntry, SyncMap, WireEntry, WirePayload, sync_map_to_dict
from .pipeline import get_sync_map, sync_map_from_output

__all__ = [
    "FileStatError",
    "MalformedPayloadError",
    "MultipleMarkersError",
    "SyncDataUnavailableError",
    "SyncEntry",
    "SyncMap",
    "SyncMapError",
    "WireEntry",
    "WirePayload",
    "get_sync_map",
    "sync_map_from_output",
    "sync_map_to_dict",
]

"""Failure conditions raised while extracting a sync map."""
from __future__ import annotations

from typing import List


class SyncMapError(RuntimeError):
    """Base class for every sync map extraction failure."""

    soft = False


class SyncDataUnavailableError(SyncMapError):
    """The build output carried no sync data; callers fall back to a rebuild."""

    soft = True


class MultipleMarkersError(SyncMapError):
    """The build output carried more than one sync data marker."""

    def __init__(self, message: str, line_numbers: List[int]):
        super().__init__(message)
        self.line_numbers = line_numbers


class MalformedPayloadError(SyncMapError):
    """The payload following the marker could not be decoded."""


class FileStatError(SyncMapError):
    """A source path named in the payload could not be stat'ed locally."""

    def __init__(self, path: str, reason: str = ""):
        message = f"could not obtain file mod time for {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.path = path


__all__ = [
    "FileStatError",
    "MalformedPayloadError",
    "MultipleMarkersError",
    "SyncDataUnavailableError",
    "SyncMapError",
]

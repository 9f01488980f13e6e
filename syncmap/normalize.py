"""Compatibility shim for Jib's unescaped backslashes.

Jib prints Windows paths such as ``C:\\app\\A.class`` without escaping the
backslashes inside JSON string literals. Doubling every backslash before
decoding restores the intended value. Drop this module (and the
``escape_backslashes`` setting) once Jib escapes its output.
"""
from __future__ import annotations


def escape_backslashes(line: bytes) -> bytes:
    return line.replace(b"\\", b"\\\\")


__all__ = ["escape_backslashes"]

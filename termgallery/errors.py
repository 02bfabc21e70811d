"""Recoverable error taxonomy shared by collaborators and the core.

Decode and listing failures stay local to the entry or view they affect.
Input decode errors never leave the decoder.
"""

from __future__ import annotations

from pathlib import Path


class TermGalleryError(Exception):
    """Base class for termgallery errors."""


class DecodeError(TermGalleryError):
    """An image could not be decoded (unsupported, corrupt, or unreadable)."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"cannot decode {path}: {reason}")
        self.path = path
        self.reason = reason


class ListError(TermGalleryError):
    """A directory could not be listed."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"cannot read directory {path}: {reason}")
        self.path = path
        self.reason = reason


class InputDecodeError(TermGalleryError):
    """Malformed terminal input sequence."""

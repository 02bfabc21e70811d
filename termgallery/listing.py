"""Directory scanning into sorted browser entries."""

from __future__ import annotations

import enum
import locale
import os
from dataclasses import dataclass
from pathlib import Path

from .errors import ListError
from .imaging import is_media_file


class EntryKind(enum.Enum):
    DIRECTORY = "directory"
    FILE = "file"


@dataclass(frozen=True)
class DirectoryEntry:
    """One visible directory child plus the stat metadata the views need."""

    name: str
    path: Path
    kind: EntryKind
    size_bytes: int = 0
    extension: str = ""

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    @property
    def is_media(self) -> bool:
        return self.kind is EntryKind.FILE and is_media_file(self.name)


def entry_sort_key(entry: DirectoryEntry) -> tuple[bool, str, str]:
    """Directories first, then locale-aware name order within each kind."""
    return (not entry.is_dir, locale.strxfrm(entry.name.casefold()), entry.name)


def sort_entries(entries: list[DirectoryEntry]) -> list[DirectoryEntry]:
    return sorted(entries, key=entry_sort_key)


def list_directory(
    directory: Path,
    *,
    show_hidden: bool = False,
    media_only: bool = False,
) -> list[DirectoryEntry]:
    """List children of ``directory`` as sorted ``DirectoryEntry`` values.

    Hidden names are skipped unless ``show_hidden``; with ``media_only`` plain
    files that are not images are skipped too. Raises ``ListError`` when the
    directory itself cannot be scanned. Children whose stat fails are still
    listed with a zero size.
    """
    entries: list[DirectoryEntry] = []
    try:
        with os.scandir(directory) as children:
            for child in children:
                name = child.name
                if not show_hidden and name.startswith("."):
                    continue
                try:
                    is_dir = child.is_dir()
                except OSError:
                    is_dir = False

                child_path = Path(child.path).absolute()
                if is_dir:
                    entries.append(DirectoryEntry(name=name, path=child_path, kind=EntryKind.DIRECTORY))
                    continue
                if media_only and not is_media_file(name):
                    continue

                try:
                    size_bytes = int(child.stat().st_size)
                except OSError:
                    size_bytes = 0
                entries.append(
                    DirectoryEntry(
                        name=name,
                        path=child_path,
                        kind=EntryKind.FILE,
                        size_bytes=size_bytes,
                        extension=Path(name).suffix.lower(),
                    )
                )
    except OSError as exc:
        raise ListError(directory, exc.strerror or str(exc)) from exc

    return sort_entries(entries)


def format_file_size(size_bytes: int) -> str:
    """Format a byte count as ``B``/``KB``/``MB``/``GB`` with two decimals max."""
    if size_bytes <= 0:
        return "0 B"
    units = ("B", "KB", "MB", "GB")
    value = float(size_bytes)
    unit_index = 0
    while value >= 1024 and unit_index < len(units) - 1:
        value /= 1024
        unit_index += 1
    rounded = round(value, 2)
    text = f"{rounded:.2f}".rstrip("0").rstrip(".")
    return f"{text} {units[unit_index]}"

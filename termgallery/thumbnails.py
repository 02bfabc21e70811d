"""Process-lifetime memo of composed thumbnail grids.

Entries are keyed by path and never invalidated: a file edited while the
browser runs keeps its first thumbnail until the cache is cleared.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from .compositor import CellGrid, PixelBuffer, compose

THUMBNAIL_SIZE = 32

DecodeFn = Callable[[Path, int, int], PixelBuffer]

_FOLDER_BODY = (230, 176, 60)
_FOLDER_TAB = (204, 148, 40)
_FOLDER_SHADE = (181, 128, 30)


def folder_icon_buffer(size: int = THUMBNAIL_SIZE) -> PixelBuffer:
    """Draw a simple folder glyph into a transparent RGBA buffer."""
    data = bytearray(size * size * 4)
    left, right = size // 8, size - size // 8
    tab_right = left + size * 3 // 8
    tab_top, body_top, bottom = size // 4, size // 4 + size // 10, size - size // 6

    def paint(x: int, y: int, rgb: tuple[int, int, int]) -> None:
        offset = (y * size + x) * 4
        data[offset : offset + 4] = bytes((*rgb, 255))

    for y in range(tab_top, bottom):
        for x in range(left, right):
            if y < body_top:
                if x < tab_right:
                    paint(x, y, _FOLDER_TAB)
                continue
            paint(x, y, _FOLDER_SHADE if y >= bottom - 2 else _FOLDER_BODY)
    return PixelBuffer(width=size, height=size, channels=4, data=bytes(data))


class ThumbnailCache:
    """Lazily compose and memoize thumbnail grids by path."""

    def __init__(self, size: int = THUMBNAIL_SIZE) -> None:
        self.size = size
        self._grids: dict[Path, CellGrid] = {}
        self._folder_icon: CellGrid | None = None

    def get_or_compose(self, path: Path, decode_fn: DecodeFn) -> CellGrid:
        """Return the cached grid for ``path``, composing it on first use.

        ``DecodeError`` from ``decode_fn`` propagates and nothing is stored, so
        a later call retries the decode.
        """
        cached = self._grids.get(path)
        if cached is not None:
            return cached
        grid = compose(decode_fn(path, self.size, self.size))
        self._grids[path] = grid
        return grid

    def folder_icon(self) -> CellGrid:
        if self._folder_icon is None:
            self._folder_icon = compose(folder_icon_buffer(self.size))
        return self._folder_icon

    def clear(self) -> None:
        self._grids.clear()

    def __contains__(self, path: object) -> bool:
        return path in self._grids

    def __len__(self) -> int:
        return len(self._grids)

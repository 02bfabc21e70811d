"""Tests for the thumbnail memo.

A thumbnail is decoded at most once per path, and decode failures are
never cached so a later render retries them.
"""

from __future__ import annotations

import unittest
from pathlib import Path

from termgallery.compositor import PixelBuffer
from termgallery.errors import DecodeError
from termgallery.thumbnails import THUMBNAIL_SIZE, ThumbnailCache, folder_icon_buffer


class _CountingDecoder:
    def __init__(self, fail: bool = False) -> None:
        self.calls: list[tuple[Path, int, int]] = []
        self.fail = fail

    def __call__(self, path: Path, width: int, height: int) -> PixelBuffer:
        self.calls.append((path, width, height))
        if self.fail:
            raise DecodeError(path, "corrupt")
        return PixelBuffer(width=width, height=height, channels=3, data=b"\x10" * (width * height * 3))


class ThumbnailCacheTests(unittest.TestCase):
    def test_second_lookup_is_served_from_cache(self) -> None:
        cache = ThumbnailCache()
        decode = _CountingDecoder()
        path = Path("/photos/a.png")

        first = cache.get_or_compose(path, decode)
        second = cache.get_or_compose(path, decode)

        self.assertIs(first, second)
        self.assertEqual(decode.calls, [(path, THUMBNAIL_SIZE, THUMBNAIL_SIZE)])
        self.assertIn(path, cache)
        self.assertEqual(len(cache), 1)

    def test_thumbnail_grid_is_32_by_16_cells(self) -> None:
        grid = ThumbnailCache().get_or_compose(Path("/photos/a.png"), _CountingDecoder())

        self.assertEqual(grid.width, 32)
        self.assertEqual(grid.height, 16)

    def test_decode_failure_propagates_and_is_not_cached(self) -> None:
        cache = ThumbnailCache()
        decode = _CountingDecoder(fail=True)
        path = Path("/photos/broken.png")

        with self.assertRaises(DecodeError):
            cache.get_or_compose(path, decode)
        with self.assertRaises(DecodeError):
            cache.get_or_compose(path, decode)

        self.assertEqual(len(decode.calls), 2)
        self.assertNotIn(path, cache)

    def test_clear_forces_recomposition(self) -> None:
        cache = ThumbnailCache()
        decode = _CountingDecoder()
        path = Path("/photos/a.png")
        cache.get_or_compose(path, decode)

        cache.clear()
        cache.get_or_compose(path, decode)

        self.assertEqual(len(decode.calls), 2)

    def test_folder_icon_is_composed_once(self) -> None:
        cache = ThumbnailCache()

        icon = cache.folder_icon()

        self.assertIs(icon, cache.folder_icon())
        self.assertGreater(len(icon), 0)
        self.assertLessEqual(icon.height, THUMBNAIL_SIZE // 2)

    def test_folder_icon_buffer_has_transparent_corners(self) -> None:
        buffer = folder_icon_buffer(16)

        self.assertEqual(buffer.channels, 4)
        self.assertEqual(buffer.data[buffer.index(0, 0, 3)], 0)


if __name__ == "__main__":
    unittest.main()

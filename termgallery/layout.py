"""Grid and list geometry for the directory browser.

Scroll offsets are expressed in item-index units in both view modes, so the
selection index and the first visible item share one coordinate space. In grid
mode a valid scroll offset is always a multiple of the column count.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

TILE_WIDTH = 32
GAP_WIDTH = 2
THUMBNAIL_ROWS = 16
TRIPLE_TILE_HEIGHT = THUMBNAIL_ROWS + 3
SINGLE_TILE_HEIGHT = THUMBNAIL_ROWS + 1
TRIPLE_LABEL_MIN_AREA = 500
FOOTER_ROWS = 5
MIN_TERMINAL_WIDTH = 40
MIN_TERMINAL_HEIGHT = 15


@dataclass(frozen=True)
class GridLayout:
    columns: int
    rows: int
    tile_width: int
    tile_height: int
    total_content_height: int
    max_visible_rows: int
    max_scroll_offset: int
    available_lines: int
    gap_width: int = GAP_WIDTH
    triple_labels: bool = False

    @property
    def visible_item_count(self) -> int:
        return self.max_visible_rows * self.columns

    def clamp_scroll(self, scroll_offset: int) -> int:
        """Row-align ``scroll_offset`` and clamp it to ``[0, max_scroll_offset]``."""
        aligned = (max(0, scroll_offset) // self.columns) * self.columns
        return min(aligned, self.max_scroll_offset)

    def visible_range(self, scroll_offset: int, item_count: int) -> range:
        end = min(item_count, scroll_offset + self.visible_item_count)
        return range(scroll_offset, max(scroll_offset, end))

    def tile_origin(self, slot: int) -> int:
        """Return the 1-based terminal column where tile ``slot`` of a row starts."""
        return 1 + slot * (self.tile_width + self.gap_width)


def available_display_lines(terminal_height: int) -> int:
    return max(1, max(terminal_height, MIN_TERMINAL_HEIGHT) - FOOTER_ROWS)


def use_triple_labels(tile_width: int, text_sizing_supported: bool) -> bool:
    return text_sizing_supported and tile_width * TRIPLE_TILE_HEIGHT >= TRIPLE_LABEL_MIN_AREA


def layout_grid(
    terminal_width: int,
    terminal_height: int,
    item_count: int,
    *,
    text_sizing_supported: bool = True,
) -> GridLayout:
    """Compute thumbnail-grid geometry for the given terminal size.

    Tiny terminals are treated as at least 40x15. Column and visible-row
    counts never drop below one.
    """
    width = max(terminal_width, MIN_TERMINAL_WIDTH)
    columns = max(1, (width - 2) // (TILE_WIDTH + GAP_WIDTH))
    rows = math.ceil(max(0, item_count) / columns)
    triple = use_triple_labels(TILE_WIDTH, text_sizing_supported)
    tile_height = TRIPLE_TILE_HEIGHT if triple else SINGLE_TILE_HEIGHT
    available_lines = available_display_lines(terminal_height)
    max_visible_rows = max(1, available_lines // tile_height)
    return GridLayout(
        columns=columns,
        rows=rows,
        tile_width=TILE_WIDTH,
        tile_height=tile_height,
        total_content_height=rows * tile_height,
        max_visible_rows=max_visible_rows,
        max_scroll_offset=max(0, rows - max_visible_rows) * columns,
        available_lines=available_lines,
        triple_labels=triple,
    )


def layout_list(terminal_width: int, terminal_height: int, item_count: int) -> GridLayout:
    """Degenerate one-column layout used by list mode."""
    count = max(0, item_count)
    available_lines = available_display_lines(terminal_height)
    return GridLayout(
        columns=1,
        rows=count,
        tile_width=max(terminal_width, MIN_TERMINAL_WIDTH),
        tile_height=1,
        total_content_height=count,
        max_visible_rows=available_lines,
        max_scroll_offset=max(0, count - available_lines),
        available_lines=available_lines,
        gap_width=0,
    )


def item_at(layout: GridLayout, scroll_offset: int, col: int, row: int) -> int | None:
    """Map a 1-based terminal position to the item index under it.

    Returns ``None`` for gaps between tiles, the area past the last visible
    tile row, and positions outside the content area.
    """
    if col < 1 or row < 1 or row > layout.available_lines:
        return None
    tile_row = (row - 1) // layout.tile_height
    if tile_row >= layout.max_visible_rows:
        return None
    x = col - 1
    stride = layout.tile_width + layout.gap_width
    slot = x // stride
    if slot >= layout.columns or x - slot * stride >= layout.tile_width:
        return None
    return scroll_offset + tile_row * layout.columns + slot

"""Half-block compositing of raw pixel buffers into terminal cells.

Each output cell covers two source scanlines: the upper pixel drives the
foreground of ``▀`` and the lower pixel its background, doubling vertical
density. Transparent pixels leave cells undrawn so the terminal background
shows through.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cached_property

logger = logging.getLogger(__name__)

UPPER_HALF_BLOCK = "▀"
LOWER_HALF_BLOCK = "▄"
SPACE = " "
RESET = "\033[0m"

ALPHA_THRESHOLD = 128
DEFAULT_MAX_CELLS = 100_000


@dataclass(frozen=True)
class PixelBuffer:
    """Row-major interleaved 8-bit pixels with 3 (RGB) or 4 (RGBA) channels."""

    width: int
    height: int
    channels: int
    data: bytes

    def __post_init__(self) -> None:
        if self.channels not in (3, 4):
            raise ValueError(f"unsupported channel count: {self.channels}")
        if self.width < 0 or self.height < 0:
            raise ValueError("buffer dimensions must be non-negative")
        expected = self.width * self.height * self.channels
        if len(self.data) != expected:
            raise ValueError(f"buffer holds {len(self.data)} bytes, expected {expected}")

    def index(self, x: int, y: int, channel: int = 0) -> int:
        return (y * self.width + x) * self.channels + channel


@dataclass(frozen=True)
class Cell:
    x: int
    y: int
    glyph: str
    style: str


@dataclass(frozen=True)
class CellGrid:
    """Sparse composed image: only drawn cells are stored."""

    cells: tuple[Cell, ...]
    width: int
    truncated: bool = False

    @cached_property
    def height(self) -> int:
        if not self.cells:
            return 0
        return max(cell.y for cell in self.cells) + 1

    @cached_property
    def _rows(self) -> dict[int, tuple[Cell, ...]]:
        by_row: dict[int, list[Cell]] = {}
        for cell in self.cells:
            by_row.setdefault(cell.y, []).append(cell)
        return {y: tuple(row) for y, row in by_row.items()}

    def row_cells(self, y: int) -> tuple[Cell, ...]:
        return self._rows.get(y, ())

    def __len__(self) -> int:
        return len(self.cells)


def _fg(r: int, g: int, b: int) -> str:
    return f"\033[38;2;{r};{g};{b}m"


def _bg(r: int, g: int, b: int) -> str:
    return f"\033[48;2;{r};{g};{b}m"


def compose(buffer: PixelBuffer, max_cells: int = DEFAULT_MAX_CELLS) -> CellGrid:
    """Convert ``buffer`` into a sparse half-block ``CellGrid``.

    Rows are consumed in pairs; an odd trailing scanline is dropped rather than
    padded, so the output never has more than ``height // 2`` rows. Once
    ``max_cells`` cells have been emitted the pass stops early and the grid is
    flagged as truncated.
    """
    data = buffer.data
    width = buffer.width
    channels = buffer.channels
    has_alpha = channels == 4
    row_stride = width * channels
    cells: list[Cell] = []

    for y in range(0, buffer.height - 1, 2):
        upper_row = y * row_stride
        lower_row = upper_row + row_stride
        out_y = y // 2
        for x in range(width):
            upper = upper_row + x * channels
            lower = lower_row + x * channels
            upper_opaque = not has_alpha or data[upper + 3] >= ALPHA_THRESHOLD
            lower_opaque = not has_alpha or data[lower + 3] >= ALPHA_THRESHOLD

            if upper_opaque and lower_opaque:
                glyph = UPPER_HALF_BLOCK
                style = _fg(data[upper], data[upper + 1], data[upper + 2]) + _bg(
                    data[lower], data[lower + 1], data[lower + 2]
                )
            elif upper_opaque:
                glyph = UPPER_HALF_BLOCK
                style = _fg(data[upper], data[upper + 1], data[upper + 2])
            elif lower_opaque:
                glyph = LOWER_HALF_BLOCK
                style = _fg(data[lower], data[lower + 1], data[lower + 2])
            else:
                continue

            cells.append(Cell(x=x, y=out_y, glyph=glyph, style=style))
            if len(cells) >= max_cells:
                logger.warning(
                    "image too large, composition limited to %d cells (%dx%d source)",
                    max_cells,
                    buffer.width,
                    buffer.height,
                )
                return CellGrid(cells=tuple(cells), width=width, truncated=True)

    return CellGrid(cells=tuple(cells), width=width)


def grid_rows(
    grid: CellGrid,
    width: int,
    height: int,
    *,
    x_offset: int = 0,
    start_row: int = 0,
) -> list[str]:
    """Paint ``height`` grid rows starting at ``start_row`` into fixed-width text.

    Every returned string covers exactly ``width`` display columns. Cells that
    land outside ``[0, width)`` after applying ``x_offset`` are clipped.
    """
    lines: list[str] = []
    for y in range(start_row, start_row + max(0, height)):
        slots = [SPACE] * max(0, width)
        for cell in grid.row_cells(y):
            col = cell.x + x_offset
            if 0 <= col < width:
                slots[col] = f"{cell.style}{cell.glyph}{RESET}"
        lines.append("".join(slots))
    return lines


def render_grid_text(grid: CellGrid) -> str:
    """Render a whole grid as newline-separated styled text."""
    if grid.height == 0:
        return ""
    rows = grid_rows(grid, grid.width, grid.height)
    return "\n".join(row.rstrip(" ") for row in rows) + "\n"

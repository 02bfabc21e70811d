"""Frame rendering for the browser and gallery views.

Frame builders are pure: they return one styled string per terminal row, each
exactly ``width`` columns wide. ``Screen`` writes frames and only rewrites rows
that changed since the previous frame.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass

from .ansi import center_label, display_width, pad_ansi_line, truncate_label
from .compositor import CellGrid, grid_rows
from .errors import DecodeError
from .gallery import Gallery
from .layout import (
    FOOTER_ROWS,
    MIN_TERMINAL_HEIGHT,
    MIN_TERMINAL_WIDTH,
    THUMBNAIL_ROWS,
    GridLayout,
)
from .listing import DirectoryEntry, format_file_size
from .navigation import NavigationState, ViewMode
from .thumbnails import DecodeFn, ThumbnailCache
from .ui_theme import DEFAULT_THEME, UITheme

TEXT_SCALE = 3
DIR_ICON = "📁"
FILE_ICON = "📄"
MORE_ABOVE = "↑ More items above"
MORE_BELOW = "↓ More items below"
SCROLL_BAR_MAX = 30

GALLERY_HELP_LINES: tuple[str, ...] = (
    "\033[1;38;5;81mGALLERY\033[0m",
    "\033[38;5;229mLeft/Right\033[0m previous/next image",
    "\033[38;5;229mUp/Down\033[0m  \033[38;5;229mPgUp/PgDn\033[0m scroll image",
    "\033[38;5;229mEsc\033[0m back to browser  \033[38;5;229mq\033[0m quit",
)


@dataclass
class BrowserView:
    """Everything the browser frame needs besides navigation state."""

    thumbnails: ThumbnailCache
    decode_fn: DecodeFn
    mouse_enabled: bool = True
    hover_text: str = ""
    theme: UITheme = DEFAULT_THEME


def cursor_forward(cols: int) -> str:
    """Skip ``cols`` cells without painting them."""
    return f"\033[{cols}C" if cols > 0 else ""


def osc_scaled_text(text: str, scale: int = TEXT_SCALE) -> str:
    return f"\033]66;s={scale};{text}\a"


def frame_size(width: int, height: int) -> tuple[int, int]:
    return max(width, MIN_TERMINAL_WIDTH), max(height, MIN_TERMINAL_HEIGHT)


def _extension_label(entry: DirectoryEntry) -> str:
    return entry.extension.lstrip(".").upper()


def describe_entry(entry: DirectoryEntry) -> str:
    """One-line summary used for hover info."""
    if entry.is_dir:
        return f"{DIR_ICON} {entry.name} [DIR]"
    kind = _extension_label(entry) or "FILE"
    return f"{FILE_ICON} {entry.name} ({format_file_size(entry.size_bytes)}) [{kind}]"


# grid tiles


def _label_rows(
    name: str,
    tile_width: int,
    selected: bool,
    triple: bool,
    theme: UITheme,
) -> list[str]:
    style = theme.selected if selected else theme.label
    if not triple:
        return [f"{style}{center_label(name, tile_width)}{theme.reset}"]
    text = truncate_label(name, tile_width // TEXT_SCALE)
    used = display_width(text) * TEXT_SCALE
    left = (tile_width - used) // 2
    right = tile_width - used - left
    first = f"{' ' * left}{style}{osc_scaled_text(text)}{theme.reset}{' ' * right}"
    # Rows two and three are covered by the scaled label; painting them would erase it.
    return [first, cursor_forward(tile_width), cursor_forward(tile_width)]


def _thumbnail_rows(grid: CellGrid, tile_width: int) -> list[str]:
    offset = max(0, (tile_width - grid.width) // 2)
    return grid_rows(grid, tile_width, THUMBNAIL_ROWS, x_offset=offset)


def _placeholder_rows(tile_width: int, icon: str, caption: str, theme: UITheme) -> list[str]:
    rows = [" " * tile_width] * THUMBNAIL_ROWS
    middle = THUMBNAIL_ROWS // 2
    rows[middle - 1] = center_label(icon, tile_width)
    if caption:
        rows[middle] = f"{theme.hint}{center_label(caption, tile_width)}{theme.reset}"
    return rows


def render_tile(
    entry: DirectoryEntry,
    layout: GridLayout,
    selected: bool,
    view: BrowserView,
) -> list[str]:
    """Return ``layout.tile_height`` rows for one grid tile."""
    width = layout.tile_width
    theme = view.theme
    if entry.is_dir:
        image = _thumbnail_rows(view.thumbnails.folder_icon(), width)
    elif entry.is_media:
        try:
            grid = view.thumbnails.get_or_compose(entry.path, view.decode_fn)
        except DecodeError:
            image = _placeholder_rows(width, FILE_ICON, "(unreadable)", theme)
        else:
            image = _thumbnail_rows(grid, width)
    else:
        caption = f"[{_extension_label(entry)}]" if entry.extension else ""
        image = _placeholder_rows(width, FILE_ICON, caption, theme)
    return image + _label_rows(entry.name, width, selected, layout.triple_labels, theme)


def _grid_content(
    state: NavigationState,
    layout: GridLayout,
    width: int,
    view: BrowserView,
) -> list[str]:
    lines: list[str] = []
    gap = " " * layout.gap_width
    blank_tile = [" " * layout.tile_width] * layout.tile_height
    for tile_row in range(layout.max_visible_rows):
        start = state.scroll_offset + tile_row * layout.columns
        if start >= len(state.entries):
            break
        tiles = []
        for index in range(start, start + layout.columns):
            if index < len(state.entries):
                entry = state.entries[index]
                tiles.append(render_tile(entry, layout, index == state.selected_index, view))
            else:
                tiles.append(blank_tile)
        used = layout.columns * layout.tile_width + (layout.columns - 1) * layout.gap_width
        tail = " " * max(0, width - used)
        for line_index in range(layout.tile_height):
            lines.append(gap.join(tile[line_index] for tile in tiles) + tail)
    return lines


# list rows


def _list_row(entry: DirectoryEntry, width: int, selected: bool, theme: UITheme) -> str:
    prefix = f"{theme.reverse}▶ {theme.reset}" if selected else "  "
    color = theme.selected if selected else ""
    available = max(8, width - 2 - 3)
    if entry.is_dir:
        name = pad_ansi_line(truncate_label(entry.name, available - 6), available - 6)
        body = f"{DIR_ICON} {name} [DIR]"
    else:
        name_width = max(4, int(available * 0.6))
        size_width = max(4, int(available * 0.25))
        name = pad_ansi_line(truncate_label(entry.name, name_width - 1), name_width)
        size = pad_ansi_line(f"({format_file_size(entry.size_bytes)})", size_width)
        ext = truncate_label(_extension_label(entry), max(3, available - name_width - size_width - 2))
        body = f"{FILE_ICON} {name}{size}[{ext}]"
    return pad_ansi_line(f"{prefix}{color}{body}{theme.reset}", width)


def _list_content(state: NavigationState, layout: GridLayout, width: int, theme: UITheme) -> list[str]:
    return [
        _list_row(state.entries[index], width, index == state.selected_index, theme)
        for index in layout.visible_range(state.scroll_offset, len(state.entries))
    ]


# footer


def _box_line(content: str, width: int, theme: UITheme) -> str:
    inner = pad_ansi_line(content, width - 2)
    return f"{theme.border}║{theme.reset}{inner}{theme.border}║{theme.reset}"


def scroll_progress(state: NavigationState, layout: GridLayout, width: int) -> str:
    """Progress bar for grid scroll mode, or ``""`` when nothing can scroll."""
    if layout.max_scroll_offset <= 0:
        return ""
    columns = layout.columns
    current_row = state.scroll_offset // columns
    max_row = layout.max_scroll_offset // columns
    progress = min(100.0, max(0.0, current_row / max_row * 100))
    bar_length = max(5, min(SCROLL_BAR_MAX, width - 20))
    filled = int(progress / 100 * bar_length)
    bar = "█" * filled + "░" * (bar_length - filled)
    return f"Scroll: [{bar}] {round(progress)}% ({current_row + 1}/{layout.rows})"


def _nav_hints(state: NavigationState, mouse_enabled: bool, theme: UITheme) -> str:
    parts = [f"View: {state.view_mode.value.upper()} |"]
    if state.view_mode is ViewMode.GRID and state.scroll_mode:
        parts.append(f"{theme.hint_active}↑/↓ Scroll{theme.reset}{theme.hint}")
    else:
        parts.append("↑/↓ Select")
    parts.append("PgUp/PgDn: Scroll")
    if state.view_mode is ViewMode.GRID:
        toggle = "S: Toggle Scroll"
        if state.scroll_mode:
            toggle = f"{theme.hint_active}{toggle}{theme.reset}{theme.hint}"
        parts.append(toggle)
    if mouse_enabled:
        parts.append("Click: Select  Double-Click/Right-Click: Open  Wheel: Scroll")
    else:
        parts.append("Enter x2: Open")
    parts.append("V: Toggle View  .: Hidden  Backspace: Back  R: Refresh  Q: Quit")
    return f"{theme.hint}{' '.join(parts)}{theme.reset}"


def _footer(state: NavigationState, layout: GridLayout, width: int, view: BrowserView) -> list[str]:
    theme = view.theme
    inner = width - 2
    border = "═" * inner

    hints = _nav_hints(state, view.mouse_enabled, theme)
    hints_width = display_width(hints)
    if hints_width <= inner:
        hints = " " * ((inner - hints_width) // 2) + hints

    directory = str(state.current_directory)
    label = "Directory: "
    room = max(4, inner - len(label))
    if len(directory) > room:
        directory = "..." + directory[-(room - 3):]

    summary = f"Items found: {theme.count}{len(state.entries)}{theme.reset}"
    if state.status:
        summary += f"  {theme.notice}{state.status}{theme.reset}"
    elif state.view_mode is ViewMode.GRID and state.scroll_mode and scroll_progress(state, layout, width):
        summary += f"  {theme.directory}{scroll_progress(state, layout, width)}{theme.reset}"
    elif view.hover_text:
        summary += f"  {theme.hint}{view.hover_text}{theme.reset}"

    return [
        f"{theme.border}╔{border}╗{theme.reset}",
        _box_line(hints, width, theme),
        _box_line(f"{label}{theme.directory}{directory}{theme.reset}", width, theme),
        _box_line(summary, width, theme),
        f"{theme.border}╚{border}╝{theme.reset}",
    ]


def render_browser_frame(
    state: NavigationState,
    layout: GridLayout,
    terminal_width: int,
    terminal_height: int,
    view: BrowserView,
) -> list[str]:
    """Build every row of the directory browser frame."""
    width, height = frame_size(terminal_width, terminal_height)
    theme = view.theme
    content_rows = height - FOOTER_ROWS
    if state.view_mode is ViewMode.GRID:
        lines = _grid_content(state, layout, width, view)
    else:
        lines = _list_content(state, layout, width, theme)
    if not state.entries:
        lines = [pad_ansi_line(f"{theme.hint}  (empty directory){theme.reset}", width)]

    visible = layout.visible_range(state.scroll_offset, len(state.entries))
    indicators: list[str] = []
    if state.scroll_offset > 0:
        indicators.append(MORE_ABOVE)
    if visible and visible.stop < len(state.entries):
        indicators.append(MORE_BELOW)
    for text in indicators:
        if len(lines) >= content_rows:
            break
        lines.append(pad_ansi_line(f"{theme.indicator}{text}{theme.reset}", width))

    lines = lines[:content_rows]
    lines.extend(" " * width for _ in range(content_rows - len(lines)))
    return lines + _footer(state, layout, width, view)


# gallery


def _gallery_body(gallery: Gallery, width: int, rows: int, theme: UITheme) -> list[str]:
    state = gallery.state
    if state.composed_grid is not None:
        grid = state.composed_grid
        x_offset = max(0, (width - grid.width) // 2)
        return grid_rows(grid, width, rows, x_offset=x_offset, start_row=state.image_scroll_offset)
    if state.error is not None:
        panel = [f"{theme.error}Error loading image: {state.error}{theme.reset}", ""]
        panel.extend(GALLERY_HELP_LINES)
    elif gallery.loading:
        panel = [f"{theme.hint}Loading {gallery.current_path.name}...{theme.reset}"]
    else:
        panel = []
    return [pad_ansi_line(line, width) for line in panel[:rows]]


def render_gallery_frame(gallery: Gallery, terminal_width: int, terminal_height: int, theme: UITheme = DEFAULT_THEME) -> list[str]:
    """Build every row of the single-image view."""
    width, height = frame_size(terminal_width, terminal_height)
    state = gallery.state
    position = f"{state.current_index + 1}/{gallery.image_count}"
    filename = gallery.current_path.name
    rows = gallery.available_rows

    lines = [
        pad_ansi_line(f"{theme.gallery_header}Gallery: {position}{theme.reset}", width),
        pad_ansi_line(f"{theme.gallery_filename}Current: {filename}{theme.reset}", width),
        " " * width,
    ]
    body = _gallery_body(gallery, width, rows, theme)
    lines.extend(body)
    lines.extend(" " * width for _ in range(rows - len(body)))

    info = f"{theme.gallery_header}{position}{theme.reset} - {theme.gallery_filename}{filename}{theme.reset}"
    grid = state.composed_grid
    if grid is not None and grid.height > rows:
        first = state.image_scroll_offset + 1
        last = min(state.image_scroll_offset + rows, grid.height)
        info += f" ({first}-{last}/{grid.height})"
    if grid is not None and grid.truncated:
        info += f" {theme.notice}[truncated]{theme.reset}"
    hints = f"{theme.hint}Navigation: ←/→ images, ↑/↓ scroll, q to quit, ESC to return{theme.reset}"
    lines.extend([" " * width, pad_ansi_line(info, width), pad_ansi_line(hints, width)])
    return lines[:height]


class Screen:
    """Line-diffing frame writer bound to one output descriptor."""

    def __init__(self, fd: int, write: Callable[[int, bytes], int] = os.write) -> None:
        self.fd = fd
        self._write = write
        self._lines: list[str] = []
        self._size: tuple[int, int] | None = None

    def invalidate(self) -> None:
        self._lines = []

    def draw(self, lines: list[str], terminal_width: int, terminal_height: int) -> int:
        """Write rows that differ from the last frame; return how many were written."""
        size = (terminal_width, terminal_height)
        out: list[str] = []
        if size != self._size or not self._lines:
            self._size = size
            self._lines = []
            out.append("\033[H\033[2J")
        frame = lines[: max(0, terminal_height)]
        written = 0
        for row, line in enumerate(frame):
            if row < len(self._lines) and self._lines[row] == line:
                continue
            out.append(f"\033[{row + 1};1H{line}\033[0m")
            written += 1
        self._lines = list(frame)
        if out:
            self._write(self.fd, "".join(out).encode("utf-8", errors="replace"))
        return written


"""Directory browsing state machine.

``Navigator`` owns the listing, the selection and the scroll offset, and
switches between browsing a directory and viewing one image in the gallery.
It performs no terminal I/O; the app loop renders ``state`` after each call.
"""

from __future__ import annotations

import enum
import logging
import os
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

from .errors import ListError
from .gallery import Gallery
from .layout import GridLayout, layout_grid, layout_list
from .listing import DirectoryEntry, list_directory

logger = logging.getLogger(__name__)

ACTIVATION_WINDOW_SECONDS = 0.5

ListFn = Callable[..., list[DirectoryEntry]]
GalleryFactory = Callable[[list[Path], int, int, int], Gallery]


class ViewMode(enum.Enum):
    LIST = "list"
    GRID = "grid"


class Direction(enum.Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class Browsing:
    """Directory listing is on screen."""


@dataclass(frozen=True)
class Viewing:
    """One image is shown full width."""

    gallery: Gallery


Mode = Union[Browsing, Viewing]


@dataclass
class NavigationState:
    current_directory: Path
    entries: list[DirectoryEntry] = field(default_factory=list)
    selected_index: int = 0
    scroll_offset: int = 0
    view_mode: ViewMode = ViewMode.GRID
    scroll_mode: bool = False
    show_hidden: bool = False
    mode: Mode = field(default_factory=Browsing)
    status: str = ""

    @property
    def selected_entry(self) -> DirectoryEntry | None:
        if 0 <= self.selected_index < len(self.entries):
            return self.entries[self.selected_index]
        return None


class ActivationDebouncer:
    """Two activations of one target within the window count as an open.

    The first activation only records intent. A matching second activation
    inside the window confirms it and clears the intent; anything else re-arms.
    """

    def __init__(
        self,
        window: float = ACTIVATION_WINDOW_SECONDS,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.window = window
        self._monotonic = monotonic
        self._target: Path | None = None
        self._armed_at = 0.0

    @property
    def armed_target(self) -> Path | None:
        return self._target

    def register(self, target: Path) -> bool:
        now = self._monotonic()
        if self._target == target and now - self._armed_at < self.window:
            self.reset()
            return True
        self._target = target
        self._armed_at = now
        return False

    def reset(self) -> None:
        self._target = None
        self._armed_at = 0.0


class Navigator:
    """Selection, scrolling and open/back transitions over one directory."""

    def __init__(
        self,
        start_directory: Path,
        gallery_factory: GalleryFactory,
        *,
        terminal_width: int = 80,
        terminal_height: int = 24,
        view_mode: ViewMode = ViewMode.GRID,
        scroll_mode: bool = False,
        show_hidden: bool = False,
        media_only: bool = False,
        text_sizing_supported: bool = False,
        list_fn: ListFn = list_directory,
        debouncer: ActivationDebouncer | None = None,
    ) -> None:
        self.state = NavigationState(
            current_directory=start_directory,
            view_mode=view_mode,
            scroll_mode=scroll_mode,
            show_hidden=show_hidden,
        )
        self.terminal_width = terminal_width
        self.terminal_height = terminal_height
        self.media_only = media_only
        self.text_sizing_supported = text_sizing_supported
        self.debouncer = debouncer if debouncer is not None else ActivationDebouncer()
        self._gallery_factory = gallery_factory
        self._list_fn = list_fn
        self._activating = False
        self.change_directory(start_directory)

    # geometry

    def layout(self) -> GridLayout:
        count = len(self.state.entries)
        if self.state.view_mode is ViewMode.LIST:
            return layout_list(self.terminal_width, self.terminal_height, count)
        return layout_grid(
            self.terminal_width,
            self.terminal_height,
            count,
            text_sizing_supported=self.text_sizing_supported,
        )

    @property
    def gallery(self) -> Gallery | None:
        mode = self.state.mode
        return mode.gallery if isinstance(mode, Viewing) else None

    def visible_indices(self) -> range:
        return self.layout().visible_range(self.state.scroll_offset, len(self.state.entries))

    def _ensure_selection_visible(self, layout: GridLayout) -> None:
        state = self.state
        columns = layout.columns
        row_start = (state.selected_index // columns) * columns
        if state.selected_index < state.scroll_offset:
            state.scroll_offset = row_start
        elif state.selected_index >= state.scroll_offset + layout.visible_item_count:
            state.scroll_offset = row_start - (layout.max_visible_rows - 1) * columns
        state.scroll_offset = layout.clamp_scroll(state.scroll_offset)

    def _clamp_selection_into_view(self, layout: GridLayout) -> None:
        state = self.state
        if not state.entries:
            state.selected_index = 0
            return
        visible = layout.visible_range(state.scroll_offset, len(state.entries))
        if not visible:
            return
        state.selected_index = max(visible.start, min(state.selected_index, visible.stop - 1))

    # listing

    def _load_entries(self, directory: Path) -> list[DirectoryEntry]:
        try:
            entries = self._list_fn(
                directory,
                show_hidden=self.state.show_hidden,
                media_only=self.media_only,
            )
        except ListError as exc:
            logger.warning("cannot list %s: %s", exc.path, exc.reason)
            self.state.status = f"Cannot open {exc.path}: {exc.reason}"
            return []
        self.state.status = ""
        return entries

    def change_directory(self, path: Path) -> None:
        directory = Path(os.path.abspath(Path(path).expanduser()))
        self.state.entries = self._load_entries(directory)
        self.state.current_directory = directory
        self.state.selected_index = 0
        self.state.scroll_offset = 0
        self.debouncer.reset()
        logger.info("browsing %s (%d entries)", directory, len(self.state.entries))

    def refresh(self) -> None:
        """Relist the current directory, keeping the selected entry when it survives."""
        state = self.state
        previous = state.selected_entry
        state.entries = self._load_entries(state.current_directory)
        index = state.selected_index
        if previous is not None:
            for candidate, entry in enumerate(state.entries):
                if entry.path == previous.path:
                    index = candidate
                    break
        state.selected_index = max(0, min(index, len(state.entries) - 1))
        layout = self.layout()
        state.scroll_offset = layout.clamp_scroll(state.scroll_offset)
        self._ensure_selection_visible(layout)

    def go_back(self) -> bool:
        current = self.state.current_directory
        parent = current.parent
        if parent == current:
            return False
        self.change_directory(parent)
        self.select_path(current)
        return True

    # selection and scrolling

    def move_selection(self, direction: Direction) -> bool:
        state = self.state
        if not state.entries:
            return False
        layout = self.layout()
        step = {
            Direction.UP: -layout.columns,
            Direction.DOWN: layout.columns,
            Direction.LEFT: -1,
            Direction.RIGHT: 1,
        }[direction]
        target = max(0, min(state.selected_index + step, len(state.entries) - 1))
        if target == state.selected_index:
            return False
        state.selected_index = target
        state.status = ""
        self._ensure_selection_visible(layout)
        return True

    def scroll_by(self, row_delta: int) -> bool:
        state = self.state
        layout = self.layout()
        before = (state.scroll_offset, state.selected_index)
        state.scroll_offset = layout.clamp_scroll(state.scroll_offset + row_delta * layout.columns)
        self._clamp_selection_into_view(layout)
        if state.selected_index != before[1]:
            state.status = ""
        return (state.scroll_offset, state.selected_index) != before

    def page(self, pages: int) -> bool:
        return self.scroll_by(pages * self.layout().max_visible_rows)

    def select_index(self, index: int) -> bool:
        if not 0 <= index < len(self.state.entries):
            return False
        changed = index != self.state.selected_index
        self.state.selected_index = index
        if changed:
            self.state.status = ""
        self._ensure_selection_visible(self.layout())
        return changed

    def select_path(self, path: Path) -> bool:
        for index, entry in enumerate(self.state.entries):
            if entry.path == path:
                return self.select_index(index)
        return False

    def select_first(self) -> bool:
        return self.select_index(0)

    def select_last(self) -> bool:
        return self.select_index(len(self.state.entries) - 1)

    # mode toggles

    def toggle_view_mode(self) -> ViewMode:
        state = self.state
        state.view_mode = ViewMode.LIST if state.view_mode is ViewMode.GRID else ViewMode.GRID
        state.scroll_offset = 0
        self._ensure_selection_visible(self.layout())
        return state.view_mode

    def toggle_scroll_mode(self) -> bool:
        self.state.scroll_mode = not self.state.scroll_mode
        return self.state.scroll_mode

    def toggle_hidden(self) -> bool:
        self.state.show_hidden = not self.state.show_hidden
        self.refresh()
        return self.state.show_hidden

    def relayout(self, terminal_width: int, terminal_height: int) -> None:
        self.terminal_width = terminal_width
        self.terminal_height = terminal_height
        layout = self.layout()
        self.state.scroll_offset = layout.clamp_scroll(self.state.scroll_offset)
        self._ensure_selection_visible(layout)
        gallery = self.gallery
        if gallery is not None:
            gallery.resize(terminal_width, terminal_height)

    # activation

    def activate(self) -> bool:
        """Debounced open: the second activation of one entry opens it."""
        if self._activating or not isinstance(self.state.mode, Browsing):
            return False
        entry = self.state.selected_entry
        if entry is None:
            return False
        if not self.debouncer.register(entry.path):
            return False
        return self.open_selected()

    def open_selected(self) -> bool:
        """Open the selected entry immediately."""
        if self._activating or not isinstance(self.state.mode, Browsing):
            return False
        entry = self.state.selected_entry
        if entry is None:
            return False
        self._activating = True
        try:
            return self._open(entry)
        finally:
            self._activating = False

    def _open(self, entry: DirectoryEntry) -> bool:
        if entry.is_dir:
            self.change_directory(entry.path)
            return True
        if not entry.is_media:
            self.state.status = f"Not an image: {entry.name}"
            return False
        images = [candidate.path for candidate in self.state.entries if candidate.is_media]
        gallery = self._gallery_factory(
            images,
            images.index(entry.path),
            self.terminal_width,
            self.terminal_height,
        )
        self.state.mode = Viewing(gallery)
        self.debouncer.reset()
        logger.info("viewing %s", entry.path)
        return True

    def exit_gallery(self) -> bool:
        mode = self.state.mode
        if not isinstance(mode, Viewing):
            return False
        self.state.mode = Browsing()
        self.select_path(mode.gallery.current_path)
        return True


__all__ = [
    "ACTIVATION_WINDOW_SECONDS",
    "ActivationDebouncer",
    "Browsing",
    "Direction",
    "NavigationState",
    "Navigator",
    "ViewMode",
    "Viewing",
]

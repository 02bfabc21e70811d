"""Single-image gallery sub-state.

The gallery steps through the media files of one directory. Full-width
compositions are requested from a ``ComposeScheduler``; only the result for
the most recent request is ever displayed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .compose_scheduler import ComposeResult, ComposeScheduler
from .compositor import CellGrid
from .layout import MIN_TERMINAL_HEIGHT, MIN_TERMINAL_WIDTH

logger = logging.getLogger(__name__)

GALLERY_CHROME_ROWS = 6


@dataclass
class GalleryState:
    """Mutable gallery view state."""

    image_paths: list[Path]
    current_index: int = 0
    image_scroll_offset: int = 0
    composed_grid: CellGrid | None = None
    error: str | None = None
    pending_request: int | None = None


class Gallery:
    """Image-by-image viewer over a fixed list of media paths."""

    def __init__(
        self,
        image_paths: list[Path],
        start_index: int,
        scheduler: ComposeScheduler,
        terminal_width: int,
        terminal_height: int,
    ) -> None:
        if not image_paths:
            raise ValueError("gallery needs at least one image")
        self.state = GalleryState(
            image_paths=list(image_paths),
            current_index=max(0, min(start_index, len(image_paths) - 1)),
        )
        self._scheduler = scheduler
        self.terminal_width = max(terminal_width, MIN_TERMINAL_WIDTH)
        self.terminal_height = max(terminal_height, MIN_TERMINAL_HEIGHT)
        self.request_compose()

    @property
    def current_path(self) -> Path:
        return self.state.image_paths[self.state.current_index]

    @property
    def image_count(self) -> int:
        return len(self.state.image_paths)

    @property
    def available_rows(self) -> int:
        return max(1, self.terminal_height - GALLERY_CHROME_ROWS)

    @property
    def max_scroll(self) -> int:
        grid = self.state.composed_grid
        if grid is None:
            return 0
        return max(0, grid.height - self.available_rows)

    @property
    def loading(self) -> bool:
        return self.state.pending_request is not None and self.state.composed_grid is None

    def request_compose(self, *, keep_current: bool = False) -> int:
        """Ask for a full-width composition of the current image.

        ``keep_current`` leaves the previous grid on screen until the new one
        arrives, which avoids a blank frame while recomposing after a resize.
        """
        if not keep_current:
            self.state.composed_grid = None
        self.state.error = None
        request_id = self._scheduler.schedule(
            self.current_path,
            self.state.current_index,
            self.terminal_width,
        )
        self.state.pending_request = request_id
        return request_id

    def _go_to(self, index: int) -> bool:
        target = max(0, min(index, self.image_count - 1))
        if target == self.state.current_index:
            return False
        self.state.current_index = target
        self.state.image_scroll_offset = 0
        self.request_compose()
        return True

    def next(self) -> bool:
        return self._go_to(self.state.current_index + 1)

    def previous(self) -> bool:
        return self._go_to(self.state.current_index - 1)

    def scroll(self, delta: int) -> bool:
        """Scroll the image by ``delta`` rows, clamped to the composed height."""
        target = max(0, min(self.state.image_scroll_offset + delta, self.max_scroll))
        if target == self.state.image_scroll_offset:
            return False
        self.state.image_scroll_offset = target
        return True

    def accept(self, result: ComposeResult) -> bool:
        """Apply ``result`` if it answers the current request; drop it otherwise."""
        if result.request.request_id != self.state.pending_request:
            logger.debug(
                "discarding stale composition %d for image %d (%s)",
                result.request.request_id,
                result.request.index,
                result.request.path,
            )
            return False
        self.state.pending_request = None
        if result.error is not None:
            self.state.composed_grid = None
            self.state.error = result.error.reason
        else:
            self.state.composed_grid = result.grid
            self.state.error = None
        self.state.image_scroll_offset = min(self.state.image_scroll_offset, self.max_scroll)
        return True

    def poll(self) -> bool:
        """Drain finished compositions; return whether anything visible changed."""
        changed = False
        for result in self._scheduler.drain_results():
            changed = self.accept(result) or changed
        return changed

    def resize(self, terminal_width: int, terminal_height: int) -> None:
        width = max(terminal_width, MIN_TERMINAL_WIDTH)
        self.terminal_height = max(terminal_height, MIN_TERMINAL_HEIGHT)
        if width != self.terminal_width:
            self.terminal_width = width
            self.request_compose(keep_current=True)
        self.state.image_scroll_offset = min(self.state.image_scroll_offset, self.max_scroll)


__all__ = ["GALLERY_CHROME_ROWS", "Gallery", "GalleryState"]

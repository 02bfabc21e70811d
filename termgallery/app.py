"""Interactive session wiring and the main event loop.

``App`` turns decoded input events into navigator and gallery calls and
builds frames; ``run_main_loop`` owns the terminal, resize bookkeeping and
redraw cadence. Feature logic stays in ``navigation`` and ``gallery``.
"""

from __future__ import annotations

import logging
import os
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from . import config
from .compose_scheduler import ComposeScheduler
from .compositor import CellGrid, compose
from .gallery import Gallery
from .imaging import PillowImageDecoder
from .input import InputEvent, KeyEvent, MouseEvent, MOUSE_MOVE, MOUSE_SCROLL, read_event
from .layout import item_at
from .navigation import Direction, Navigator, ViewMode
from .render import BrowserView, Screen, describe_entry, render_browser_frame, render_gallery_frame
from .terminal import TerminalController
from .thumbnails import DecodeFn, ThumbnailCache
from .ui_theme import UITheme, resolve_theme

logger = logging.getLogger(__name__)

RESIZE_SETTLE_SECONDS = 0.05
IDLE_TIMEOUT_MS = 120
BUSY_TIMEOUT_MS = 25
GALLERY_WHEEL_ROWS = 3
GOODBYE = "Goodbye! 👋"

_ARROWS = {
    "UP": Direction.UP,
    "DOWN": Direction.DOWN,
    "LEFT": Direction.LEFT,
    "RIGHT": Direction.RIGHT,
}


@dataclass(frozen=True)
class SessionOptions:
    """Resolved CLI and config choices for one interactive session."""

    start_directory: Path
    view_mode: ViewMode = ViewMode.GRID
    scroll_mode: bool = False
    show_hidden: bool = False
    media_only: bool = False
    mouse: bool = True
    no_color: bool = False


class App:
    """Event dispatch and frame building for one browsing session."""

    def __init__(
        self,
        navigator: Navigator,
        thumbnails: ThumbnailCache,
        decode_fn: DecodeFn,
        size: tuple[int, int],
        *,
        mouse_enabled: bool = True,
        theme: UITheme | None = None,
        persist: bool = True,
    ) -> None:
        self.navigator = navigator
        self.size = size
        self.view = BrowserView(
            thumbnails=thumbnails,
            decode_fn=decode_fn,
            mouse_enabled=mouse_enabled,
            theme=theme if theme is not None else resolve_theme(),
        )
        self.persist = persist
        self.dirty = True
        self._pending_size: tuple[int, int] | None = None
        self._pending_since = 0.0

    @property
    def gallery(self) -> Gallery | None:
        return self.navigator.gallery

    # housekeeping

    def observe_size(self, size: tuple[int, int], now: float) -> bool:
        """Apply a terminal size once it has been stable for the settle window."""
        if size == self.size:
            self._pending_size = None
            return False
        if size != self._pending_size:
            self._pending_size = size
            self._pending_since = now
            return False
        if now - self._pending_since < RESIZE_SETTLE_SECONDS:
            return False
        logger.debug("terminal resized to %dx%d", *size)
        self.size = size
        self._pending_size = None
        self.navigator.relayout(*size)
        self.dirty = True
        return True

    def poll(self) -> None:
        gallery = self.gallery
        if gallery is not None and gallery.poll():
            self.dirty = True

    def poll_timeout_ms(self) -> int:
        gallery = self.gallery
        if self._pending_size is not None or (gallery is not None and gallery.state.pending_request is not None):
            return BUSY_TIMEOUT_MS
        return IDLE_TIMEOUT_MS

    def frame(self) -> list[str]:
        width, height = self.size
        gallery = self.gallery
        if gallery is not None:
            return render_gallery_frame(gallery, width, height, self.view.theme)
        return render_browser_frame(
            self.navigator.state,
            self.navigator.layout(),
            width,
            height,
            self.view,
        )

    # dispatch

    def handle_event(self, event: InputEvent) -> bool:
        """Apply one input event; return ``False`` when the session should end."""
        if isinstance(event, KeyEvent):
            # letter bindings ignore shift and caps lock
            key = event.key.lower() if len(event.key) == 1 else event.key
            if self.gallery is not None:
                return self._handle_gallery_key(key)
            return self._handle_browser_key(key)
        if self.gallery is not None:
            self._handle_gallery_mouse(event)
        else:
            self._handle_browser_mouse(event)
        return True

    def _changed(self, changed: bool = True) -> bool:
        if changed:
            self.dirty = True
        return True

    def _handle_browser_key(self, key: str) -> bool:
        nav = self.navigator
        state = nav.state
        if key in ("q", "CTRL_C"):
            return False
        if key in _ARROWS:
            if state.scroll_mode and state.view_mode is ViewMode.GRID and key in ("UP", "DOWN"):
                return self._changed(nav.scroll_by(-1 if key == "UP" else 1))
            return self._changed(nav.move_selection(_ARROWS[key]))
        if key in ("PAGE_UP", "PAGE_DOWN"):
            return self._changed(nav.page(-1 if key == "PAGE_UP" else 1))
        if key == "HOME":
            return self._changed(nav.select_first())
        if key == "END":
            return self._changed(nav.select_last())
        if key == "ENTER":
            nav.activate()
            return self._changed()
        if key == "BACKSPACE":
            return self._changed(nav.go_back())
        if key == "v":
            mode = nav.toggle_view_mode()
            if self.persist:
                config.save_view_mode(mode.value)
            return self._changed()
        if key == "s":
            scroll_mode = nav.toggle_scroll_mode()
            if self.persist:
                config.save_scroll_mode(scroll_mode)
            return self._changed()
        if key == ".":
            show_hidden = nav.toggle_hidden()
            if self.persist:
                config.save_show_hidden(show_hidden)
            return self._changed()
        if key == "r":
            nav.refresh()
            return self._changed()
        return True

    def _handle_gallery_key(self, key: str) -> bool:
        gallery = self.gallery
        assert gallery is not None
        if key in ("q", "CTRL_C"):
            return False
        if key in ("ESC", "BACKSPACE"):
            return self._changed(self.navigator.exit_gallery())
        if key == "LEFT":
            return self._changed(gallery.previous())
        if key == "RIGHT":
            return self._changed(gallery.next())
        if key == "UP":
            return self._changed(gallery.scroll(-1))
        if key == "DOWN":
            return self._changed(gallery.scroll(1))
        if key == "PAGE_UP":
            return self._changed(gallery.scroll(-gallery.available_rows))
        if key == "PAGE_DOWN":
            return self._changed(gallery.scroll(gallery.available_rows))
        if key == "HOME":
            return self._changed(gallery.scroll(-gallery.max_scroll))
        if key == "END":
            return self._changed(gallery.scroll(gallery.max_scroll))
        return True

    def _entry_index_at(self, event: MouseEvent) -> int | None:
        nav = self.navigator
        index = item_at(nav.layout(), nav.state.scroll_offset, event.x, event.y)
        if index is None or index >= len(nav.state.entries):
            return None
        return index

    def _handle_browser_mouse(self, event: MouseEvent) -> None:
        nav = self.navigator
        if event.action == MOUSE_SCROLL:
            self._changed(nav.scroll_by(event.scroll))
            return
        index = self._entry_index_at(event)
        if event.action == MOUSE_MOVE:
            text = describe_entry(nav.state.entries[index]) if index is not None else ""
            self._changed(text != self.view.hover_text)
            self.view.hover_text = text
            return
        if index is None:
            return
        if event.is_right_press:
            nav.select_index(index)
            nav.open_selected()
            self._changed()
        elif event.is_left_press:
            nav.select_index(index)
            nav.activate()
            self._changed()

    def _handle_gallery_mouse(self, event: MouseEvent) -> None:
        gallery = self.gallery
        assert gallery is not None
        if event.action == MOUSE_SCROLL:
            self._changed(gallery.scroll(event.scroll * GALLERY_WHEEL_ROWS))
        elif event.is_right_press:
            self._changed(self.navigator.exit_gallery())


def build_app(
    options: SessionOptions,
    size: tuple[int, int],
    *,
    text_sizing_supported: bool = False,
    threaded: bool = True,
) -> App:
    """Assemble decoder, caches, scheduler and navigator for one session."""
    decoder = PillowImageDecoder()
    thumbnails = ThumbnailCache()

    def compose_full_width(path: Path, width: int) -> CellGrid:
        return compose(decoder.decode(path, target_width=width))

    scheduler = ComposeScheduler(compose_full_width, threaded=threaded)

    def open_gallery(paths: list[Path], index: int, width: int, height: int) -> Gallery:
        return Gallery(paths, index, scheduler, width, height)

    navigator = Navigator(
        options.start_directory,
        open_gallery,
        terminal_width=size[0],
        terminal_height=size[1],
        view_mode=options.view_mode,
        scroll_mode=options.scroll_mode,
        show_hidden=options.show_hidden,
        media_only=options.media_only,
        text_sizing_supported=text_sizing_supported,
    )
    return App(
        navigator,
        thumbnails,
        decoder.decode,
        size,
        mouse_enabled=options.mouse,
        theme=resolve_theme(no_color=options.no_color),
    )


def run_main_loop(
    app: App,
    terminal: TerminalController,
    stdin_fd: int,
    *,
    monotonic: Callable[[], float] = time.monotonic,
) -> None:
    """Run the interactive loop until a quit key is pressed."""
    screen = Screen(terminal.stdout_fd)
    with terminal.raw_mode():
        while True:
            app.observe_size(terminal.size(), monotonic())
            app.poll()
            if app.dirty:
                screen.draw(app.frame(), *app.size)
                app.dirty = False

            event = read_event(stdin_fd, timeout_ms=app.poll_timeout_ms())
            if event is None:
                continue
            if not app.handle_event(event):
                break


def run_session(options: SessionOptions) -> None:
    stdin_fd = sys.stdin.fileno()
    stdout_fd = sys.stdout.fileno()
    terminal = TerminalController(stdin_fd, stdout_fd, mouse=options.mouse)
    app = build_app(
        options,
        terminal.size(),
        text_sizing_supported=terminal.supports_text_sizing(),
    )
    logger.info("session started in %s", options.start_directory)
    try:
        run_main_loop(app, terminal, stdin_fd)
    except KeyboardInterrupt:
        pass
    os.write(stdout_fd, f"{GOODBYE}\n".encode("utf-8", errors="replace"))
    logger.info("session ended")

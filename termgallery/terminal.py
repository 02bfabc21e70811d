"""Terminal control helpers for the TUI session.

Owns raw-mode lifecycle, alternate-screen switching, cursor visibility and
mouse reporting toggles. ``raw_mode()`` restores the previous terminal modes
on every exit path.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import termios
import tty

MOUSE_ON = b"\x1b[?1000h\x1b[?1002h\x1b[?1006h"
MOUSE_OFF = b"\x1b[?1000l\x1b[?1002l\x1b[?1006l"
ENTER_SCREEN = b"\x1b[?1049h\x1b[?25l"
LEAVE_SCREEN = b"\x1b[?25h\x1b[?1049l"

_TEXT_SIZING_TERMS = ("xterm-kitty",)


class TerminalController:
    """Manage terminal mode transitions for one interactive session."""

    def __init__(self, stdin_fd: int, stdout_fd: int, mouse: bool = True) -> None:
        """Capture tty state and bind stdin/stdout file descriptors."""
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self.mouse = mouse
        self._saved_tty_state = termios.tcgetattr(stdin_fd)
        self._mouse_reporting_enabled = False

    @property
    def mouse_reporting_enabled(self) -> bool:
        return self._mouse_reporting_enabled

    def enable_tui_mode(self) -> None:
        """Enter raw alternate-screen mode, hide the cursor, enable the mouse."""
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        os.write(self.stdout_fd, ENTER_SCREEN)
        if self.mouse:
            self.set_mouse_reporting(True)

    def disable_tui_mode(self) -> None:
        """Disable mouse reporting, show the cursor and restore the tty."""
        try:
            self.set_mouse_reporting(False)
            os.write(self.stdout_fd, LEAVE_SCREEN)
        finally:
            termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)

    def set_mouse_reporting(self, enabled: bool) -> None:
        """Toggle terminal mouse tracking without changing other TUI state."""
        desired = bool(enabled)
        if desired == self._mouse_reporting_enabled:
            return
        os.write(self.stdout_fd, MOUSE_ON if desired else MOUSE_OFF)
        self._mouse_reporting_enabled = desired

    def size(self) -> tuple[int, int]:
        """Return ``(columns, lines)`` with an 80x24 fallback."""
        term = shutil.get_terminal_size((80, 24))
        return term.columns, term.lines

    def supports_text_sizing(self) -> bool:
        """Return whether the terminal understands OSC 66 scaled text labels."""
        if os.environ.get("TERM", "") in _TEXT_SIZING_TERMS:
            return True
        return bool(os.environ.get("KITTY_WINDOW_ID"))

    def write(self, text: str) -> None:
        os.write(self.stdout_fd, text.encode("utf-8", errors="replace"))

    @contextlib.contextmanager
    def raw_mode(self):
        """Context manager that brackets code with TUI enter/exit calls."""
        try:
            self.enable_tui_mode()
            yield self
        finally:
            self.disable_tui_mode()

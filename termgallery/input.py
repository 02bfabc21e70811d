"""Low-level terminal input decoding.

Reads raw bytes from stdin and translates them into key and mouse events.
One byte-prefix scanner handles keys, CSI/SS3 sequences and the three mouse
report encodings (X10, decimal, SGR); malformed input decodes to ``None``.
"""

from __future__ import annotations

import os
import select
from dataclasses import dataclass
from typing import Union

from .errors import InputDecodeError

ESC_SEQUENCE_TIMEOUT_MS = 25
MAX_SEQUENCE_BYTES = 64
READ_CHUNK_BYTES = 1024
_PENDING_BYTES = bytearray()

ESC = 0x1B

MOUSE_PRESS = "press"
MOUSE_RELEASE = "release"
MOUSE_SCROLL = "scroll"
MOUSE_MOVE = "move"

LEFT_BUTTON = 0
RIGHT_BUTTONS = frozenset({2, 3})


@dataclass(frozen=True)
class KeyEvent:
    """A key press: a token such as ``"UP"``/``"ENTER"`` or one literal character."""

    key: str


@dataclass(frozen=True)
class MouseEvent:
    """A mouse report with 1-based terminal coordinates."""

    action: str
    button: int
    x: int
    y: int
    scroll: int = 0

    @property
    def is_left_press(self) -> bool:
        return self.action == MOUSE_PRESS and self.button == LEFT_BUTTON

    @property
    def is_right_press(self) -> bool:
        return self.action == MOUSE_PRESS and self.button in RIGHT_BUTTONS


InputEvent = Union[KeyEvent, MouseEvent]

_NEED_MORE: tuple[InputEvent | None, int] = (None, 0)

_CONTROL_KEYS: dict[int, str] = {
    0x03: "CTRL_C",
    0x08: "BACKSPACE",
    0x7F: "BACKSPACE",
    0x09: "TAB",
    0x0A: "ENTER",
    0x0D: "ENTER",
}

_CURSOR_KEYS: dict[int, str] = {
    ord("A"): "UP",
    ord("B"): "DOWN",
    ord("C"): "RIGHT",
    ord("D"): "LEFT",
    ord("H"): "HOME",
    ord("F"): "END",
}

_TILDE_KEYS: dict[str, str] = {
    "1": "HOME",
    "4": "END",
    "5": "PAGE_UP",
    "6": "PAGE_DOWN",
    "7": "HOME",
    "8": "END",
}

# Both synonym pairs: plain wheel codes and the same codes with the motion bit.
_WHEEL_BUTTONS: dict[int, int] = {64: -1, 96: -1, 65: 1, 97: 1}
_MOTION_BIT = 32
_WHEEL_BIT = 64
_MODIFIER_BITS = 4 | 8 | 16


def _mouse_event(code: int, x: int, y: int, released: bool = False) -> MouseEvent | None:
    if code < 0 or x < 0 or y < 0:
        return None
    base = code & ~_MODIFIER_BITS
    scroll = _WHEEL_BUTTONS.get(base)
    if scroll is not None:
        return MouseEvent(MOUSE_SCROLL, base, x, y, scroll=scroll)
    if base & _WHEEL_BIT:
        return None
    if base & _MOTION_BIT:
        return MouseEvent(MOUSE_MOVE, base & 0b11, x, y)
    if released:
        return MouseEvent(MOUSE_RELEASE, base & 0b11, x, y)
    return MouseEvent(MOUSE_PRESS, base, x, y)


def _mouse_params(payload: bytes, offset: int) -> tuple[int, int, int]:
    try:
        code, x, y = (int(part) - offset for part in payload.decode("ascii").split(";"))
    except ValueError as exc:
        raise InputDecodeError(f"bad mouse parameters: {payload!r}") from exc
    return code, x, y


def _scan_utf8(data: bytes, final: bool) -> tuple[InputEvent | None, int]:
    lead = data[0]
    if lead < 0x80:
        length = 1
    elif 0xC0 <= lead < 0xE0:
        length = 2
    elif 0xE0 <= lead < 0xF0:
        length = 3
    elif 0xF0 <= lead < 0xF8:
        length = 4
    else:
        return None, 1
    if len(data) < length:
        return (None, len(data)) if final else _NEED_MORE
    try:
        return KeyEvent(data[:length].decode("utf-8")), length
    except UnicodeDecodeError:
        return None, 1


def _scan_sgr_mouse(data: bytes, final: bool) -> tuple[InputEvent | None, int]:
    # ESC [ < code ; col ; row (M|m)
    end = 3
    while end < len(data) and data[end] in b"0123456789;":
        end += 1
    if end >= len(data):
        if final or end > MAX_SEQUENCE_BYTES:
            return None, len(data)
        return _NEED_MORE
    terminator = data[end]
    if terminator not in b"Mm":
        return None, end
    try:
        code, x, y = _mouse_params(data[3:end], 0)
    except InputDecodeError:
        return None, end + 1
    return _mouse_event(code, x, y, released=terminator == ord("m")), end + 1


def _csi_event(params: str, final_byte: int) -> InputEvent | None:
    if final_byte == ord("~"):
        key = _TILDE_KEYS.get(params.split(";", 1)[0])
        return KeyEvent(key) if key else None
    if final_byte == ord("M") and params.count(";") == 2:
        # Decimal mouse form: ESC [ code ; col ; row M, every field offset by 32.
        try:
            code, x, y = _mouse_params(params.encode("ascii"), 32)
        except InputDecodeError:
            return None
        return _mouse_event(code, x, y)
    key = _CURSOR_KEYS.get(final_byte)
    return KeyEvent(key) if key else None


def _scan_csi(data: bytes, final: bool) -> tuple[InputEvent | None, int]:
    if len(data) < 3:
        return (None, len(data)) if final else _NEED_MORE
    third = data[2]
    if third == ord("M"):
        # X10 form: ESC [ M code col row, each byte offset by 32.
        if len(data) < 6:
            return (None, len(data)) if final else _NEED_MORE
        return _mouse_event(data[3] - 32, data[4] - 32, data[5] - 32), 6
    if third == ord("<"):
        return _scan_sgr_mouse(data, final)

    end = 2
    while end < len(data) and 0x20 <= data[end] <= 0x3F:
        end += 1
    if end >= len(data):
        if final or end > MAX_SEQUENCE_BYTES:
            return None, len(data)
        return _NEED_MORE
    final_byte = data[end]
    if not 0x40 <= final_byte <= 0x7E:
        return None, end
    return _csi_event(data[2:end].decode("ascii"), final_byte), end + 1


def _scan_escape(data: bytes, final: bool) -> tuple[InputEvent | None, int]:
    if len(data) == 1:
        return (KeyEvent("ESC"), 1) if final else _NEED_MORE
    second = data[1]
    if second == ord("["):
        return _scan_csi(data, final)
    if second == ord("O"):
        if len(data) < 3:
            return (KeyEvent("ESC"), 1) if final else _NEED_MORE
        key = _CURSOR_KEYS.get(data[2])
        return (KeyEvent(key) if key else None), 3
    # Escape followed by an unrelated byte: report ESC and keep the byte.
    return KeyEvent("ESC"), 1


def scan(data: bytes, final: bool = False) -> tuple[InputEvent | None, int]:
    """Decode the event at the start of ``data``.

    Returns ``(event, consumed)``. ``consumed == 0`` means the prefix is an
    incomplete sequence and more bytes are needed; with ``final=True`` no more
    bytes are coming, so incomplete input is resolved (lone ESC) or dropped.
    A ``None`` event with ``consumed > 0`` is ignorable input.
    """
    if not data:
        return _NEED_MORE
    first = data[0]
    if first == ESC:
        return _scan_escape(data, final)
    if first == 0x0D and data[1:2] == b"\n":
        return KeyEvent("ENTER"), 2
    key = _CONTROL_KEYS.get(first)
    if key is not None:
        return KeyEvent(key), 1
    if first < 0x20:
        return None, 1
    return _scan_utf8(data, final)


def decode(raw: bytes) -> InputEvent | None:
    """Decode one complete input chunk into its leading event, or ``None``."""
    event, _consumed = scan(raw, final=True)
    return event


def decode_all(raw: bytes) -> list[InputEvent]:
    """Decode every event in ``raw``, skipping malformed sequences."""
    events: list[InputEvent] = []
    offset = 0
    while offset < len(raw):
        event, consumed = scan(raw[offset:], final=True)
        offset += max(1, consumed)
        if event is not None:
            events.append(event)
    return events


def _read_chunk(fd: int, timeout_ms: int | None) -> bytes:
    if timeout_ms is not None:
        ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
        if not ready:
            return b""
    return os.read(fd, READ_CHUNK_BYTES)


def read_event(fd: int, timeout_ms: int | None = None) -> InputEvent | None:
    """Read and decode the next input event from ``fd``.

    Returns ``None`` on timeout or when the bytes read were not a usable
    sequence. Escape sequences get ``ESC_SEQUENCE_TIMEOUT_MS`` to complete;
    bytes past the decoded event stay pending for the next call.
    """
    if not _PENDING_BYTES:
        chunk = _read_chunk(fd, timeout_ms)
        if not chunk:
            return None
        _PENDING_BYTES.extend(chunk)

    while True:
        event, consumed = scan(bytes(_PENDING_BYTES))
        if consumed:
            del _PENDING_BYTES[:consumed]
            return event
        more = _read_chunk(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if not more:
            event, consumed = scan(bytes(_PENDING_BYTES), final=True)
            del _PENDING_BYTES[: max(1, consumed)]
            return event
        _PENDING_BYTES.extend(more)

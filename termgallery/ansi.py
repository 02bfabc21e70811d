"""Column arithmetic for styled terminal text.

Widths ignore escape sequences and count wide glyphs as two cells, so styled
rows and emoji labels line up with tile columns.
"""

from __future__ import annotations

import re
import unicodedata

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]|\x1b\][^\x07]*\x07")
_TOKEN_RE = re.compile(f"({ANSI_ESCAPE_RE.pattern})")
ELLIPSIS = "..."


def char_display_width(ch: str) -> int:
    """Return terminal column width for one character.

    Combining marks and variation selectors consume no columns, and East Asian
    wide/fullwidth characters (including most emoji) consume two.
    """
    if unicodedata.combining(ch) or "\ufe00" <= ch <= "\ufe0f":
        return 0
    if unicodedata.east_asian_width(ch) in {"W", "F"}:
        return 2
    return 1


def display_width(text: str) -> int:
    """Return the visible column width of ``text``, ignoring escape sequences."""
    plain = ANSI_ESCAPE_RE.sub("", text)
    return sum(char_display_width(ch) for ch in plain)


def clip_ansi_line(text: str, max_cols: int) -> str:
    """Cut a styled line after ``max_cols`` display columns.

    Escape sequences before the cut are kept and occupy no columns; a wide
    character that would straddle the limit is dropped whole.
    """
    if max_cols <= 0:
        return ""
    kept: list[str] = []
    used = 0
    for position, token in enumerate(_TOKEN_RE.split(text)):
        if position % 2:
            kept.append(token)
            continue
        for ch in token:
            cols = char_display_width(ch)
            if used + cols > max_cols:
                return "".join(kept)
            kept.append(ch)
            used += cols
    return "".join(kept)


def pad_ansi_line(text: str, width: int) -> str:
    """Clip ``text`` to ``width`` columns and right-pad it with spaces."""
    clipped = clip_ansi_line(text, width)
    return clipped + " " * max(0, width - display_width(clipped))


def truncate_label(name: str, width: int) -> str:
    """Shorten a plain label to ``width`` columns, ending in ``...`` when cut."""
    if width <= 0:
        return ""
    if display_width(name) <= width:
        return name
    if width <= len(ELLIPSIS):
        return ELLIPSIS[:width]
    return clip_ansi_line(name, width - len(ELLIPSIS)) + ELLIPSIS


def center_label(text: str, width: int) -> str:
    """Center a plain label within ``width`` columns, truncating if needed."""
    label = truncate_label(text, width)
    spare = max(0, width - display_width(label))
    left = spare // 2
    return " " * left + label + " " * (spare - left)

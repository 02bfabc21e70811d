"""UI theme definitions.

Themes color the chrome only (borders, labels, hints). Image cells always
carry their own 24-bit colors from the compositor.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class UITheme:
    """Semantic ANSI palette used by renderers."""

    name: str
    reset: str
    reverse: str
    border: str
    hint: str
    hint_active: str
    directory: str
    count: str
    selected: str
    label: str
    indicator: str
    error: str
    notice: str
    gallery_header: str
    gallery_filename: str


DEFAULT_THEME = UITheme(
    name="default",
    reset="\033[0m",
    reverse="\033[7m",
    border="\033[36m",
    hint="\033[90m",
    hint_active="\033[1;33m",
    directory="\033[33m",
    count="\033[32m",
    selected="\033[1;36m",
    label="\033[90m",
    indicator="\033[90m",
    error="\033[1;31m",
    notice="\033[38;5;214m",
    gallery_header="\033[36m",
    gallery_filename="\033[33m",
)

PLAIN_THEME = UITheme(
    name="plain",
    reset="\033[0m",
    reverse="\033[7m",
    border="",
    hint="",
    hint_active="\033[1m",
    directory="",
    count="",
    selected="\033[1m",
    label="",
    indicator="",
    error="\033[1m",
    notice="",
    gallery_header="",
    gallery_filename="",
)


def resolve_theme(*, no_color: bool = False) -> UITheme:
    """Return the chrome palette for the requested color mode."""
    return PLAIN_THEME if no_color else DEFAULT_THEME


__all__ = ["UITheme", "DEFAULT_THEME", "PLAIN_THEME", "resolve_theme"]

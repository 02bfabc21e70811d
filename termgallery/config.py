"""Persistent JSON config helpers.

Stores the preferred view mode, hidden-file visibility, scroll mode and mouse
preference. All access is defensive: malformed or missing config falls back
to defaults.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from platformdirs import user_config_dir, user_log_dir

logger = logging.getLogger(__name__)

APP_NAME = "termgallery"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
DEFAULT_LOG_PATH = Path(user_log_dir(APP_NAME, appauthor=False)) / f"{APP_NAME}.log"

VIEW_MODES = ("grid", "list")


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("ignoring unreadable config %s: %s", CONFIG_PATH, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Write failures are logged and otherwise ignored so a read-only config
    directory never interrupts browsing.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except (OSError, TypeError) as exc:
        logger.warning("could not save config %s: %s", CONFIG_PATH, exc)


def _load_bool(key: str, default: bool) -> bool:
    value = load_config().get(key)
    return value if isinstance(value, bool) else default


def _save_value(key: str, value: object) -> None:
    config = load_config()
    config[key] = value
    save_config(config)


def load_view_mode() -> str:
    """Return ``"grid"`` or ``"list"``; anything else falls back to grid."""
    value = load_config().get("view_mode")
    return value if value in VIEW_MODES else "grid"


def save_view_mode(view_mode: str) -> None:
    if view_mode not in VIEW_MODES:
        return
    _save_value("view_mode", view_mode)


def load_show_hidden() -> bool:
    return _load_bool("show_hidden", False)


def save_show_hidden(show_hidden: bool) -> None:
    _save_value("show_hidden", bool(show_hidden))


def load_scroll_mode() -> bool:
    return _load_bool("scroll_mode", False)


def save_scroll_mode(scroll_mode: bool) -> None:
    _save_value("scroll_mode", bool(scroll_mode))


def load_mouse_enabled() -> bool:
    return _load_bool("mouse", True)

"""Logging configuration for interactive sessions.

The TUI owns stdout, so records only ever go to a file. Without a log file the
package logger gets a ``NullHandler`` and stays silent.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

LOG_ENV_VAR = "TERMGALLERY_LOG"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def resolve_log_file(cli_value: Path | None) -> Path | None:
    """Prefer ``--log-file``; otherwise honor the ``TERMGALLERY_LOG`` variable."""
    if cli_value is not None:
        return cli_value
    env_value = os.environ.get(LOG_ENV_VAR, "").strip()
    return Path(env_value).expanduser() if env_value else None


def configure_logging(log_file: Path | None, level: str = "INFO") -> logging.Logger:
    root = logging.getLogger("termgallery")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.propagate = False

    if log_file is None:
        root.addHandler(logging.NullHandler())
        return root

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(numeric_level)
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    except OSError:
        handler = logging.NullHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    return root

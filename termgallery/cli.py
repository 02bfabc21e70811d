"""Command-line front door for termgallery.

Parses CLI options, merges them with persisted preferences, configures
logging, and dispatches into the interactive browser or a one-shot render.
"""

from __future__ import annotations

import argparse
import locale
import logging
import shutil
import sys
from pathlib import Path

from . import config
from .compositor import compose, render_grid_text
from .errors import DecodeError
from .imaging import PillowImageDecoder
from .logging_setup import configure_logging, resolve_log_file
from .navigation import ViewMode

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def _init_collation() -> None:
    """Adopt the user's collation order so listings sort by locale."""
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as exc:
        logger.warning("keeping C collation: %s", exc)


def _default_render_width() -> int:
    """Resolve default render width from current terminal size."""
    term = shutil.get_terminal_size((80, 24))
    return max(1, term.columns)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="termgallery",
        description="Browse directories of images as half-block thumbnails in the terminal.",
    )
    parser.add_argument("path", nargs="?", default=None, help="Directory to open. Defaults to current directory.")
    view = parser.add_mutually_exclusive_group()
    view.add_argument("--grid", dest="view_mode", action="store_const", const="grid", help="Start in thumbnail grid view.")
    view.add_argument("--list", dest="view_mode", action="store_const", const="list", help="Start in list view.")
    parser.add_argument(
        "--scroll-mode",
        "--scroll-arrows",
        dest="scroll_mode",
        action="store_true",
        default=None,
        help="Arrow keys scroll the grid instead of moving the selection.",
    )
    parser.add_argument("--no-mouse", action="store_true", help="Disable mouse reporting.")
    parser.add_argument("--media-only", action="store_true", help="List only directories and image files.")
    parser.add_argument("--show-hidden", action="store_true", default=None, help="Include dotfiles in listings.")
    parser.add_argument("--no-color", action="store_true", help="Render the interface chrome without colors.")
    parser.add_argument(
        "--log-file",
        nargs="?",
        type=Path,
        const=config.DEFAULT_LOG_PATH,
        default=None,
        help=f"Append diagnostics to FILE (default when given without FILE: {config.DEFAULT_LOG_PATH}).",
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level for --log-file output.")
    parser.add_argument("--render", metavar="IMAGE", help="Print IMAGE as half-block text and exit.")
    parser.add_argument(
        "--width",
        type=_positive_int,
        default=None,
        help="Column width for --render output (default: terminal width).",
    )
    parser.add_argument(
        "--height",
        type=_positive_int,
        default=None,
        help="Row count for --render output; the image is cropped to fill the box.",
    )
    return parser


def render_image_text(path: Path, width: int, height: int | None = None) -> str:
    """Render ``path`` as styled half-block text ``width`` columns wide."""
    decoder = PillowImageDecoder()
    target_height = height * 2 if height is not None else None
    buffer = decoder.decode(path, target_width=width, target_height=target_height)
    return render_grid_text(compose(buffer))


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and launch the browser or a one-shot render."""
    args = build_parser().parse_args(argv)
    configure_logging(resolve_log_file(args.log_file), args.log_level)
    _init_collation()

    if args.render is not None:
        if args.path is not None:
            raise SystemExit("Cannot combine positional path with --render.")
        render_path = Path(args.render)
        if not render_path.exists():
            raise SystemExit(f"Path not found: {render_path}")
        width = args.width if args.width is not None else _default_render_width()
        try:
            sys.stdout.write(render_image_text(render_path, width, args.height))
        except DecodeError as exc:
            raise SystemExit(f"Cannot render {exc.path}: {exc.reason}") from exc
        return

    path = Path(args.path).expanduser() if args.path else Path.cwd()
    if not path.exists():
        raise SystemExit(f"Path not found: {path}")
    if not path.is_dir():
        path = path.parent

    from .app import SessionOptions, run_session

    view_mode = args.view_mode or config.load_view_mode()
    options = SessionOptions(
        start_directory=path,
        view_mode=ViewMode(view_mode),
        scroll_mode=config.load_scroll_mode() if args.scroll_mode is None else args.scroll_mode,
        show_hidden=config.load_show_hidden() if args.show_hidden is None else args.show_hidden,
        media_only=args.media_only,
        mouse=False if args.no_mouse else config.load_mouse_enabled(),
        no_color=args.no_color,
    )
    try:
        run_session(options)
    except KeyboardInterrupt:
        logger.info("interrupted")


if __name__ == "__main__":
    main()

"""Tests for the browsing state machine.

Exercises selection movement, scrolling, the activation debouncer and the
browse/gallery transitions against an in-memory directory tree.
"""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from termgallery.compose_scheduler import ComposeScheduler
from termgallery.compositor import CellGrid
from termgallery.errors import ListError
from termgallery.gallery import Gallery
from termgallery.listing import DirectoryEntry, EntryKind, sort_entries
from termgallery.navigation import (
    ActivationDebouncer,
    Browsing,
    Direction,
    Navigator,
    ViewMode,
    Viewing,
)

ROOT = Path("/data")


def _dir(parent: Path, name: str) -> DirectoryEntry:
    return DirectoryEntry(name=name, path=parent / name, kind=EntryKind.DIRECTORY)


def _file(parent: Path, name: str, size: int = 100) -> DirectoryEntry:
    return DirectoryEntry(
        name=name,
        path=parent / name,
        kind=EntryKind.FILE,
        size_bytes=size,
        extension=Path(name).suffix.lower(),
    )


class FakeFilesystem:
    """Directory listings keyed by path; unknown paths fail like a missing dir."""

    def __init__(self, tree: dict[Path, list[DirectoryEntry]]) -> None:
        self.tree = tree
        self.calls: list[Path] = []

    def __call__(self, directory: Path, *, show_hidden: bool = False, media_only: bool = False) -> list[DirectoryEntry]:
        self.calls.append(directory)
        if directory not in self.tree:
            raise ListError(directory, "No such file or directory")
        entries = [e for e in self.tree[directory] if show_hidden or not e.name.startswith(".")]
        return sort_entries(entries)


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _make_navigator(
    tree: dict[Path, list[DirectoryEntry]],
    *,
    start: Path = ROOT,
    width: int = 140,
    height: int = 60,
    view_mode: ViewMode = ViewMode.GRID,
    clock: FakeClock | None = None,
) -> tuple[Navigator, FakeFilesystem]:
    fs = FakeFilesystem(tree)
    scheduler = ComposeScheduler(lambda path, w: CellGrid(cells=(), width=w), threaded=False)

    def open_gallery(paths: list[Path], index: int, w: int, h: int) -> Gallery:
        return Gallery(paths, index, scheduler, w, h)

    navigator = Navigator(
        start,
        open_gallery,
        terminal_width=width,
        terminal_height=height,
        view_mode=view_mode,
        list_fn=fs,
        debouncer=ActivationDebouncer(monotonic=clock or FakeClock()),
    )
    return navigator, fs


def _images(count: int) -> list[DirectoryEntry]:
    return [_file(ROOT, f"img{i:02d}.png") for i in range(count)]


class ChangeDirectoryTests(unittest.TestCase):
    def test_entries_are_sorted_directories_first(self) -> None:
        tree = {ROOT: [_file(ROOT, "b.txt"), _file(ROOT, "a.png"), _dir(ROOT, "Sub")]}
        nav, _ = _make_navigator(tree)

        self.assertEqual([e.name for e in nav.state.entries], ["Sub", "a.png", "b.txt"])
        self.assertEqual(nav.state.selected_index, 0)
        self.assertEqual(nav.state.scroll_offset, 0)

    def test_list_error_yields_empty_listing_with_notice(self) -> None:
        nav, _ = _make_navigator({ROOT: []}, start=Path("/missing"))

        self.assertEqual(nav.state.entries, [])
        self.assertIn("No such file or directory", nav.state.status)
        self.assertIsInstance(nav.state.mode, Browsing)

    def test_go_back_selects_directory_we_came_from(self) -> None:
        sub = ROOT / "b"
        tree = {ROOT: [_dir(ROOT, "a"), _dir(ROOT, "b"), _dir(ROOT, "c")], sub: []}
        nav, _ = _make_navigator(tree, start=sub)

        self.assertTrue(nav.go_back())

        self.assertEqual(nav.state.current_directory, ROOT)
        self.assertEqual(nav.state.selected_index, 1)

    def test_go_back_from_symlinked_directory_returns_to_link_parent(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp).resolve()
            browse = base / "browse"
            target = base / "elsewhere" / "target"
            browse.mkdir()
            target.mkdir(parents=True)
            (browse / "link").symlink_to(target, target_is_directory=True)
            scheduler = ComposeScheduler(lambda path, w: CellGrid(cells=(), width=w), threaded=False)
            nav = Navigator(browse, lambda paths, index, w, h: Gallery(paths, index, scheduler, w, h))

            nav.select_path(browse / "link")
            self.assertTrue(nav.open_selected())
            self.assertEqual(nav.state.current_directory, browse / "link")

            self.assertTrue(nav.go_back())

            self.assertEqual(nav.state.current_directory, browse)
            self.assertEqual(nav.state.selected_entry.name, "link")

    def test_go_back_at_filesystem_root_is_noop(self) -> None:
        root = Path("/")
        nav, fs = _make_navigator({root: []}, start=root)
        calls = len(fs.calls)

        self.assertFalse(nav.go_back())
        self.assertEqual(nav.state.current_directory, root)
        self.assertEqual(len(fs.calls), calls)


class MoveSelectionTests(unittest.TestCase):
    def test_grid_down_moves_one_row(self) -> None:
        nav, _ = _make_navigator({ROOT: _images(10)})
        self.assertEqual(nav.layout().columns, 4)
        nav.state.selected_index = 1

        nav.move_selection(Direction.DOWN)

        self.assertEqual(nav.state.selected_index, 5)

    def test_grid_down_from_last_row_clamps_without_wrap(self) -> None:
        nav, _ = _make_navigator({ROOT: _images(10)})
        nav.state.selected_index = 9

        self.assertFalse(nav.move_selection(Direction.DOWN))
        self.assertEqual(nav.state.selected_index, 9)

    def test_grid_up_from_first_row_clamps_to_zero(self) -> None:
        nav, _ = _make_navigator({ROOT: _images(10)})
        nav.state.selected_index = 1

        nav.move_selection(Direction.UP)

        self.assertEqual(nav.state.selected_index, 0)

    def test_left_and_right_step_by_one(self) -> None:
        nav, _ = _make_navigator({ROOT: _images(10)})

        nav.move_selection(Direction.RIGHT)
        nav.move_selection(Direction.RIGHT)
        nav.move_selection(Direction.LEFT)

        self.assertEqual(nav.state.selected_index, 1)
        self.assertTrue(nav.move_selection(Direction.LEFT))
        self.assertFalse(nav.move_selection(Direction.LEFT))
        self.assertEqual(nav.state.selected_index, 0)

    def test_list_mode_down_moves_one_entry(self) -> None:
        nav, _ = _make_navigator({ROOT: _images(10)}, view_mode=ViewMode.LIST)

        nav.move_selection(Direction.DOWN)

        self.assertEqual(nav.state.selected_index, 1)

    def test_moving_past_viewport_scrolls_minimally(self) -> None:
        nav, _ = _make_navigator({ROOT: _images(40)}, height=45)
        layout = nav.layout()
        self.assertEqual(layout.max_visible_rows, 2)
        nav.state.selected_index = 5

        nav.move_selection(Direction.DOWN)

        self.assertEqual(nav.state.selected_index, 9)
        self.assertEqual(nav.state.scroll_offset, 4)

        nav.move_selection(Direction.UP)
        nav.move_selection(Direction.UP)

        self.assertEqual(nav.state.selected_index, 1)
        self.assertEqual(nav.state.scroll_offset, 0)

    def test_empty_directory_ignores_moves(self) -> None:
        nav, _ = _make_navigator({ROOT: []})

        self.assertFalse(nav.move_selection(Direction.DOWN))
        self.assertEqual(nav.state.selected_index, 0)


class ScrollTests(unittest.TestCase):
    def test_scroll_by_moves_whole_rows_and_drags_selection(self) -> None:
        nav, _ = _make_navigator({ROOT: _images(40)}, height=45)

        nav.scroll_by(3)

        self.assertEqual(nav.state.scroll_offset, 12)
        self.assertEqual(nav.state.selected_index, 12)

    def test_scroll_by_clamps_to_max_offset(self) -> None:
        nav, _ = _make_navigator({ROOT: _images(40)}, height=45)

        nav.scroll_by(100)

        self.assertEqual(nav.state.scroll_offset, nav.layout().max_scroll_offset)
        visible = nav.visible_indices()
        self.assertIn(nav.state.selected_index, visible)

        nav.scroll_by(-100)
        self.assertEqual(nav.state.scroll_offset, 0)

    def test_select_index_brings_entry_into_view(self) -> None:
        nav, _ = _make_navigator({ROOT: _images(40)}, height=45)

        nav.select_index(30)

        self.assertIn(30, nav.visible_indices())
        self.assertEqual(nav.state.scroll_offset % 4, 0)
        self.assertFalse(nav.select_index(99))

    def test_relayout_keeps_offset_aligned_and_selection_visible(self) -> None:
        nav, _ = _make_navigator({ROOT: _images(40)}, height=45)
        nav.select_index(30)

        nav.relayout(72, 45)

        self.assertEqual(nav.layout().columns, 2)
        self.assertEqual(nav.state.scroll_offset % 2, 0)
        self.assertIn(30, nav.visible_indices())


class ToggleTests(unittest.TestCase):
    def test_toggle_view_mode_resets_scroll_and_keeps_selection(self) -> None:
        nav, _ = _make_navigator({ROOT: _images(8)})
        nav.select_index(3)

        mode = nav.toggle_view_mode()

        self.assertIs(mode, ViewMode.LIST)
        self.assertEqual(nav.state.selected_index, 3)
        self.assertEqual(nav.state.scroll_offset, 0)
        self.assertIs(nav.toggle_view_mode(), ViewMode.GRID)

    def test_toggle_hidden_relists(self) -> None:
        tree = {ROOT: [_file(ROOT, ".hidden.png"), _file(ROOT, "shown.png")]}
        nav, _ = _make_navigator(tree)
        self.assertEqual(len(nav.state.entries), 1)

        self.assertTrue(nav.toggle_hidden())

        self.assertEqual(len(nav.state.entries), 2)

    def test_refresh_keeps_selected_entry_by_path(self) -> None:
        entries = _images(3)
        tree = {ROOT: list(entries)}
        nav, _ = _make_navigator(tree)
        nav.select_index(2)

        tree[ROOT] = [_file(ROOT, "aaa.png")] + entries
        nav.refresh()

        self.assertEqual(nav.state.selected_entry.name, "img02.png")


class ActivationTests(unittest.TestCase):
    def test_two_activations_within_window_open_directory_once(self) -> None:
        clock = FakeClock()
        sub = ROOT / "Sub"
        nav, fs = _make_navigator({ROOT: [_dir(ROOT, "Sub")], sub: []}, clock=clock)

        self.assertFalse(nav.activate())
        clock.advance(0.3)
        self.assertTrue(nav.activate())

        self.assertEqual(nav.state.current_directory, sub)
        self.assertEqual(fs.calls.count(sub), 1)

    def test_activations_600ms_apart_only_rearm(self) -> None:
        clock = FakeClock()
        sub = ROOT / "Sub"
        nav, fs = _make_navigator({ROOT: [_dir(ROOT, "Sub")], sub: []}, clock=clock)

        self.assertFalse(nav.activate())
        clock.advance(0.6)
        self.assertFalse(nav.activate())

        self.assertEqual(nav.state.current_directory, ROOT)
        self.assertNotIn(sub, fs.calls)
        self.assertEqual(nav.debouncer.armed_target, sub)

    def test_activation_on_different_target_rearms(self) -> None:
        clock = FakeClock()
        nav, _ = _make_navigator({ROOT: [_dir(ROOT, "A"), _dir(ROOT, "B")]}, clock=clock)

        nav.activate()
        nav.select_index(1)
        clock.advance(0.1)

        self.assertFalse(nav.activate())
        self.assertEqual(nav.debouncer.armed_target, ROOT / "B")

    def test_open_selected_enters_gallery_with_media_siblings(self) -> None:
        tree = {
            ROOT: [
                _dir(ROOT, "Sub"),
                _file(ROOT, "a.png"),
                _file(ROOT, "b.txt"),
                _file(ROOT, "c.jpg"),
            ]
        }
        nav, _ = _make_navigator(tree)
        nav.select_path(ROOT / "c.jpg")

        self.assertTrue(nav.open_selected())

        self.assertIsInstance(nav.state.mode, Viewing)
        gallery = nav.gallery
        self.assertEqual(gallery.state.image_paths, [ROOT / "a.png", ROOT / "c.jpg"])
        self.assertEqual(gallery.state.current_index, 1)

    def test_non_image_file_sets_status_instead_of_opening(self) -> None:
        nav, _ = _make_navigator({ROOT: [_file(ROOT, "notes.txt")]})

        self.assertFalse(nav.open_selected())

        self.assertIsInstance(nav.state.mode, Browsing)
        self.assertIn("notes.txt", nav.state.status)

    def test_gallery_factory_cannot_reenter_activation(self) -> None:
        scheduler = ComposeScheduler(lambda path, w: CellGrid(cells=(), width=w), threaded=False)
        nested: list[bool] = []
        built: list[Gallery] = []

        def reentrant_factory(paths: list[Path], index: int, w: int, h: int) -> Gallery:
            nested.append(nav.open_selected())
            nested.append(nav.activate())
            nested.append(nav.activate())
            gallery = Gallery(paths, index, scheduler, w, h)
            built.append(gallery)
            return gallery

        nav = Navigator(
            ROOT,
            reentrant_factory,
            list_fn=FakeFilesystem({ROOT: [_file(ROOT, "a.png"), _file(ROOT, "b.png")]}),
            debouncer=ActivationDebouncer(monotonic=FakeClock()),
        )

        self.assertTrue(nav.open_selected())

        self.assertEqual(nested, [False, False, False])
        self.assertEqual(len(built), 1)
        self.assertIsInstance(nav.state.mode, Viewing)
        self.assertIs(nav.gallery, built[0])

    def test_not_an_image_notice_clears_when_selection_moves(self) -> None:
        nav, _ = _make_navigator({ROOT: [_file(ROOT, "a.txt"), _file(ROOT, "b.png")]})

        nav.open_selected()
        self.assertEqual(nav.state.status, "Not an image: a.txt")

        self.assertTrue(nav.move_selection(Direction.RIGHT))

        self.assertEqual(nav.state.status, "")

    def test_not_an_image_notice_survives_a_blocked_move(self) -> None:
        nav, _ = _make_navigator({ROOT: [_file(ROOT, "a.txt"), _file(ROOT, "b.png")]})

        nav.open_selected()
        self.assertFalse(nav.move_selection(Direction.LEFT))

        self.assertEqual(nav.state.status, "Not an image: a.txt")

    def test_activation_is_ignored_while_viewing(self) -> None:
        nav, _ = _make_navigator({ROOT: [_file(ROOT, "a.png")]})
        nav.open_selected()

        self.assertFalse(nav.activate())
        self.assertFalse(nav.open_selected())

    def test_exit_gallery_returns_to_browsing_on_viewed_image(self) -> None:
        nav, _ = _make_navigator({ROOT: [_file(ROOT, "a.png"), _file(ROOT, "b.png")]})
        nav.open_selected()
        nav.gallery.next()

        self.assertTrue(nav.exit_gallery())

        self.assertIsInstance(nav.state.mode, Browsing)
        self.assertEqual(nav.state.selected_index, 1)
        self.assertFalse(nav.exit_gallery())


class DebouncerTests(unittest.TestCase):
    def test_confirmation_clears_intent(self) -> None:
        clock = FakeClock()
        debouncer = ActivationDebouncer(monotonic=clock)
        target = Path("/x")

        self.assertFalse(debouncer.register(target))
        clock.advance(0.49)
        self.assertTrue(debouncer.register(target))
        self.assertIsNone(debouncer.armed_target)
        self.assertFalse(debouncer.register(target))


if __name__ == "__main__":
    unittest.main()

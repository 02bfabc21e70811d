"""Tests for ANSI-aware width measurement and label shaping."""

from __future__ import annotations

import unittest

from termgallery.ansi import (
    center_label,
    char_display_width,
    clip_ansi_line,
    display_width,
    pad_ansi_line,
    truncate_label,
)


class AnsiWidthTests(unittest.TestCase):
    def test_wide_and_combining_characters(self) -> None:
        self.assertEqual(char_display_width("a"), 1)
        self.assertEqual(char_display_width("📁"), 2)
        self.assertEqual(char_display_width("\u0301"), 0)
        self.assertEqual(char_display_width("\ufe0f"), 0)

    def test_escape_sequences_have_no_width(self) -> None:
        self.assertEqual(display_width("\033[1;36mabc\033[0m"), 3)
        self.assertEqual(display_width("\033]66;s=3;x\a"), 0)

    def test_clip_keeps_styles_and_stops_before_wide_overflow(self) -> None:
        self.assertEqual(clip_ansi_line("\033[31mabcdef\033[0m", 3), "\033[31mabc")
        self.assertEqual(clip_ansi_line("a📁b", 2), "a")
        self.assertEqual(clip_ansi_line("abc", 0), "")

    def test_pad_fills_to_exact_width(self) -> None:
        padded = pad_ansi_line("\033[33mhi\033[0m", 5)

        self.assertEqual(display_width(padded), 5)
        self.assertTrue(padded.endswith("   "))


class LabelTests(unittest.TestCase):
    def test_short_labels_are_untouched(self) -> None:
        self.assertEqual(truncate_label("cat.png", 10), "cat.png")

    def test_long_labels_end_with_ellipsis(self) -> None:
        label = truncate_label("a-very-long-file-name.png", 10)

        self.assertEqual(label, "a-very-...")
        self.assertEqual(display_width(label), 10)

    def test_tiny_widths(self) -> None:
        self.assertEqual(truncate_label("abcdef", 2), "..")
        self.assertEqual(truncate_label("abcdef", 0), "")

    def test_center_label(self) -> None:
        self.assertEqual(center_label("ab", 6), "  ab  ")
        self.assertEqual(center_label("abc", 6), " abc  ")


if __name__ == "__main__":
    unittest.main()

"""Unit tests for frame text layout."""

import numpy as np
import pytest

from sizwe_guide.models.presentation import PresentationContent
from sizwe_guide.tools.text_layout import (
    ELLIPSIS,
    TextLayoutRenderer,
    _line_height,
    wrap_words,
)


def char_width(text):
    """Fixed-width measure: 10px per character."""
    return len(text) * 10


class TestWrapWords:
    """Test greedy word wrapping."""

    def test_packs_words_greedily(self):
        words = "the quick brown fox jumps over the lazy dog".split()

        lines = wrap_words(words, char_width, max_width=100)

        assert lines == ["the quick", "brown fox", "jumps over", "the lazy", "dog"]

    def test_lines_never_exceed_width(self):
        words = ("Plants convert light energy into chemical energy stored in glucose " * 5).split()

        lines = wrap_words(words, char_width, max_width=150)

        assert all(char_width(line) <= 150 for line in lines)

    def test_preserves_word_order(self):
        words = "one two three four five six seven eight nine ten".split()

        lines = wrap_words(words, char_width, max_width=120)

        assert " ".join(lines).split() == words

    def test_new_line_only_when_next_word_overflows(self):
        lines = wrap_words(["aaaa", "bbbb", "cc"], char_width, max_width=90)

        # "aaaa bbbb" is exactly 90px wide
        assert lines == ["aaaa bbbb", "cc"]

    def test_long_word_is_split(self):
        lines = wrap_words(["a", "abcdefghijkl", "b"], char_width, max_width=50)

        assert lines == ["a", "abcde", "fghij", "kl b"]

    def test_empty_input(self):
        assert wrap_words([], char_width, max_width=100) == []


class TestTextLayoutRenderer:
    """Test TextLayoutRenderer frame output."""

    @pytest.fixture
    def renderer(self):
        return TextLayoutRenderer(
            resolution=(1920, 1080),
            title_font_size=72,
            summary_font_size=40,
            summary_min_font_size=24,
        )

    def test_text_width_inside_panel(self, renderer):
        assert renderer.text_width == 1920 - 2 * 160 - 2 * 48

    def test_render_produces_full_frame(self, renderer, presentation):
        frame = renderer.render(presentation)

        assert frame.size == (1920, 1080)
        array = frame.to_array()
        assert array.shape == (1080, 1920, 3)
        assert array.dtype == np.uint8

    def test_short_summary_keeps_every_word(self, renderer, presentation):
        frame = renderer.render(presentation)
        layout = frame.layout

        assert not layout.clipped
        assert layout.summary_font_size == 40
        assert " ".join(layout.summary_lines).split() == presentation.summary.split()
        assert layout.title_lines == ["Photosynthesis"]

    def test_lines_fit_text_width(self, renderer):
        summary = "Learners explore how cells divide, grow and specialise into tissues. " * 6

        layout = renderer.layout_summary(summary, available_height=10_000)

        assert len(layout.summary_lines) > 1
        assert all(width <= layout.max_width for width in layout.line_widths)

    def test_shrinks_font_before_clipping(self, renderer):
        summary = " ".join(["Photosynthesis happens in the chloroplasts of leaf cells."] * 8)
        full = renderer.layout_summary(summary, available_height=10_000)
        lines_at_default = len(full.summary_lines)
        assert lines_at_default >= 5

        # One line short of fitting at the default size
        height = (lines_at_default - 1) * _line_height(40)
        layout = renderer.layout_summary(summary, available_height=height)

        assert layout.summary_font_size < 40
        assert not layout.clipped
        assert " ".join(layout.summary_lines).split() == summary.split()

    def test_overflow_clipped_with_ellipsis(self, renderer):
        summary = "The water cycle moves water between oceans, air and land. " * 200

        layout = renderer.layout_summary(summary, available_height=400)

        assert layout.clipped
        assert layout.summary_font_size == 24
        assert len(layout.summary_lines) * _line_height(24) <= 400
        assert layout.summary_lines[-1].endswith(ELLIPSIS)
        assert all(width <= layout.max_width for width in layout.line_widths)

    def test_render_reports_overflow(self, renderer):
        content = PresentationContent(
            title="The Water Cycle",
            summary="Evaporation, condensation and precipitation repeat endlessly. " * 300,
        )

        frame = renderer.render(content)

        assert frame.layout.clipped
        assert frame.size == (1920, 1080)

    def test_min_font_never_above_default(self):
        renderer = TextLayoutRenderer(
            resolution=(1280, 720), summary_font_size=20, summary_min_font_size=30
        )
        assert renderer.summary_min_font_size == 20

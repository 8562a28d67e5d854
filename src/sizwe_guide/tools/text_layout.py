"""Frame layout for presentation videos using Pillow.

Draws one static 1920x1080 frame: gradient background, difficulty badge,
centered title and the word-wrapped summary inside a translucent panel.

Summaries that do not fit are handled by shrinking the summary font down
to a minimum size and, if that is still not enough, clipping trailing
lines and ending the last visible line with an ellipsis.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from ..config import settings
from ..models.presentation import PresentationContent


logger = logging.getLogger(__name__)

ELLIPSIS = "…"

# Gradient endpoints (top -> bottom) and text colours
BACKGROUND_TOP = (37, 99, 235)
BACKGROUND_BOTTOM = (109, 40, 217)
TEXT_PRIMARY = (255, 255, 255)
TEXT_SECONDARY = (235, 235, 245)
PANEL_FILL = (255, 255, 255, 26)
BADGE_FILL = (255, 255, 255, 51)

MARGIN_X = 160
MARGIN_BOTTOM = 80
BADGE_TOP = 90
PANEL_PADDING = 48
LINE_SPACING = 1.5
FONT_STEP = 2


def _resolve_font(size: int, bold: bool = False) -> ImageFont.ImageFont:
    """Load a truetype font, falling back to Pillow's bundled font."""
    if bold:
        candidates: Sequence[str] = (
            "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
            "/System/Library/Fonts/Supplemental/Arial Bold.ttf",
            "C:/Windows/Fonts/arialbd.ttf",
        )
    else:
        candidates = (
            "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
            "/System/Library/Fonts/Supplemental/Arial.ttf",
            "C:/Windows/Fonts/arial.ttf",
        )

    for path in candidates:
        try:
            return ImageFont.truetype(path, size=size)
        except (OSError, IOError):
            continue

    return ImageFont.load_default(size=size)


def _split_long_word(word: str, measure: Callable[[str], float], max_width: float) -> List[str]:
    """Break a word that is wider than max_width into pieces that fit."""
    pieces: List[str] = []
    current = ""
    for char in word:
        if current and measure(current + char) > max_width:
            pieces.append(current)
            current = char
        else:
            current += char
    if current:
        pieces.append(current)
    return pieces


def wrap_words(words: Sequence[str], measure: Callable[[str], float], max_width: float) -> List[str]:
    """Greedily pack words onto lines no wider than max_width.

    A new line starts when adding the next word would exceed the width.
    A single word wider than the limit is broken across lines.
    """
    lines: List[str] = []
    current = ""
    for word in words:
        if measure(word) > max_width:
            if current:
                lines.append(current)
                current = ""
            pieces = _split_long_word(word, measure, max_width)
            lines.extend(pieces[:-1])
            current = pieces[-1]
            continue

        candidate = f"{current} {word}" if current else word
        if measure(candidate) <= max_width:
            current = candidate
        else:
            lines.append(current)
            current = word
    if current:
        lines.append(current)
    return lines


def _line_height(size: int) -> int:
    return int(round(size * LINE_SPACING))


def _with_ellipsis(line: str, measure: Callable[[str], float], max_width: float) -> str:
    """Append an ellipsis, dropping trailing characters until it fits."""
    text = line.rstrip()
    while text and measure(text + ELLIPSIS) > max_width:
        text = text[:-1].rstrip()
    return text + ELLIPSIS


@dataclass
class FrameLayout:
    """Where text ended up on the frame."""
    title_lines: List[str] = field(default_factory=list)
    summary_lines: List[str] = field(default_factory=list)
    summary_font_size: int = 0
    clipped: bool = False
    max_width: float = 0.0
    line_widths: List[float] = field(default_factory=list)


@dataclass
class RenderedFrame:
    """Finished frame plus its layout report."""
    image: Image.Image
    layout: FrameLayout

    @property
    def size(self) -> Tuple[int, int]:
        return self.image.size

    def to_array(self) -> np.ndarray:
        """RGB array in the (height, width, 3) shape moviepy expects."""
        return np.asarray(self.image.convert("RGB"))


class TextLayoutRenderer:
    """Renders PresentationContent onto a fixed-size frame."""

    def __init__(
        self,
        resolution: Optional[Tuple[int, int]] = None,
        title_font_size: Optional[int] = None,
        summary_font_size: Optional[int] = None,
        summary_min_font_size: Optional[int] = None,
    ):
        self.resolution = resolution or settings.resolution
        self.title_font_size = title_font_size or settings.title_font_size
        self.summary_font_size = summary_font_size or settings.summary_font_size
        self.summary_min_font_size = min(
            summary_min_font_size or settings.summary_min_font_size,
            self.summary_font_size,
        )

    @property
    def text_width(self) -> int:
        """Maximum summary line width in pixels."""
        width, _ = self.resolution
        return width - 2 * MARGIN_X - 2 * PANEL_PADDING

    def render(self, content: PresentationContent) -> RenderedFrame:
        """Draw the full frame. The image is complete when this returns."""
        width, height = self.resolution
        image = Image.new("RGB", self.resolution, color=BACKGROUND_TOP)
        self._draw_gradient(image)

        overlay = Image.new("RGBA", self.resolution, (0, 0, 0, 0))
        overlay_draw = ImageDraw.Draw(overlay)
        draw = ImageDraw.Draw(image)

        # Badge
        badge_font = _resolve_font(28)
        badge_text = content.difficulty.value
        badge_w = draw.textlength(badge_text, font=badge_font) + 48
        badge_h = 28 + 24
        badge_left = (width - badge_w) / 2
        badge_box = (badge_left, BADGE_TOP, badge_left + badge_w, BADGE_TOP + badge_h)
        overlay_draw.rounded_rectangle(badge_box, radius=badge_h // 2, fill=BADGE_FILL)

        # Title
        title_font = _resolve_font(self.title_font_size, bold=True)
        title_measure = lambda text: draw.textlength(text, font=title_font)
        title_lines = wrap_words(content.title.split(), title_measure, width - 2 * MARGIN_X)
        title_top = BADGE_TOP + badge_h + 40
        title_bottom = title_top + len(title_lines) * _line_height(self.title_font_size)

        # Summary panel
        panel_top = title_bottom + 40
        # Long titles on small frames can push the panel off the bottom edge
        panel_bottom = max(panel_top, height - MARGIN_BOTTOM)
        panel_box = (MARGIN_X, panel_top, width - MARGIN_X, panel_bottom)
        overlay_draw.rounded_rectangle(panel_box, radius=24, fill=PANEL_FILL)
        available_height = panel_bottom - panel_top - 2 * PANEL_PADDING

        layout = self.layout_summary(content.summary, available_height)
        layout.title_lines = title_lines

        image.paste(overlay, (0, 0), overlay)
        draw = ImageDraw.Draw(image)

        draw.text(
            (badge_left + 24, BADGE_TOP + 12), badge_text, font=badge_font, fill=TEXT_PRIMARY
        )
        self._draw_centered(draw, title_lines, title_font, title_top,
                            _line_height(self.title_font_size), TEXT_PRIMARY)

        summary_font = _resolve_font(layout.summary_font_size)
        self._draw_centered(draw, layout.summary_lines, summary_font,
                            panel_top + PANEL_PADDING,
                            _line_height(layout.summary_font_size), TEXT_SECONDARY)

        if layout.clipped:
            logger.warning(
                f"Summary for '{content.title}' clipped to {len(layout.summary_lines)} lines "
                f"at {layout.summary_font_size}px"
            )
        return RenderedFrame(image=image, layout=layout)

    def layout_summary(self, summary: str, available_height: float) -> FrameLayout:
        """Wrap the summary, shrinking the font and then clipping to fit."""
        words = summary.split()
        max_width = self.text_width
        scratch = ImageDraw.Draw(Image.new("RGB", (1, 1)))

        size = self.summary_font_size
        while True:
            font = _resolve_font(size)
            measure = lambda text, font=font: scratch.textlength(text, font=font)
            lines = wrap_words(words, measure, max_width)
            fits = len(lines) * _line_height(size) <= available_height
            if fits or size - FONT_STEP < self.summary_min_font_size:
                break
            size -= FONT_STEP

        clipped = False
        if not fits:
            max_lines = max(1, int(available_height // _line_height(size)))
            if len(lines) > max_lines:
                lines = lines[:max_lines]
                lines[-1] = _with_ellipsis(lines[-1], measure, max_width)
                clipped = True

        return FrameLayout(
            summary_lines=lines,
            summary_font_size=size,
            clipped=clipped,
            max_width=max_width,
            line_widths=[measure(line) for line in lines],
        )

    def _draw_gradient(self, image: Image.Image) -> None:
        width, height = image.size
        draw = ImageDraw.Draw(image)
        for y in range(height):
            ratio = y / max(1, height - 1)
            colour = tuple(
                int(top + (bottom - top) * ratio)
                for top, bottom in zip(BACKGROUND_TOP, BACKGROUND_BOTTOM)
            )
            draw.line([(0, y), (width, y)], fill=colour)

    def _draw_centered(
        self,
        draw: ImageDraw.ImageDraw,
        lines: List[str],
        font: ImageFont.ImageFont,
        top: float,
        line_height: int,
        fill: Tuple[int, int, int],
    ) -> None:
        width, _ = self.resolution
        y = top
        for line in lines:
            line_width = draw.textlength(line, font=font)
            draw.text(((width - line_width) / 2, y), line, font=font, fill=fill)
            y += line_height

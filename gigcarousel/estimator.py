"""Estimate how tall a gig panel will be once drawn on a slide.

Two interchangeable strategies are provided:

``AnalyticEstimator``
    A character-count approximation. The gig title is assumed to wrap every
    ``chars_per_line`` characters and each extra line adds ``line_height``
    pixels. Needs no fonts and is a pure function of the title length.

``MeasuredEstimator``
    Lays the panel out with the renderer's own code on a scratch Pillow
    surface, reads back the painted height, and discards the surface. This
    follows real font metrics, genre truncation and wrapping, so it is the
    authoritative choice whenever fonts are available.

Both return a non-negative ``int`` and are callable, so the packer can take
either (or any plain function of a gig) without knowing which one it has.
"""

from __future__ import annotations

import math
from typing import Optional

from PIL import Image, ImageDraw

from .gigs import GigRecord
from .renderer import draw_panel, layout_panel
from .style import StyleConfig

STRATEGIES = ("analytic", "measured")
# "dom" is the name the browser-based tooling used for the measured strategy
_ALIASES = {"dom": "measured"}


class HeightEstimator:
    """Base class for panel height estimators."""

    name = "base"

    def __init__(self, style: Optional[StyleConfig] = None) -> None:
        self.style = style or StyleConfig()

    def estimate(self, gig: GigRecord) -> int:
        raise NotImplementedError

    def __call__(self, gig: GigRecord) -> int:
        return self.estimate(gig)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.style!r})"


class AnalyticEstimator(HeightEstimator):
    name = "analytic"

    def estimate(self, gig: GigRecord) -> int:
        style = self.style
        name_lines = max(1, math.ceil(len(gig.name) / style.chars_per_line))
        return style.base_height + (name_lines - 1) * style.line_height + style.padding


class MeasuredEstimator(HeightEstimator):
    """Measure a panel by painting it off-screen.

    Every call creates its own surface, so calls never share drawing state
    and may safely run in parallel.
    """

    name = "measured"

    def estimate(self, gig: GigRecord) -> int:
        style = self.style
        probe = ImageDraw.Draw(Image.new("L", (1, 1)))
        layout = layout_panel(gig, style, probe)

        canvas_height = max(style.slide_height, layout.height + style.title_line_height)
        surface = Image.new("RGBA", (style.panel_width, canvas_height), (0, 0, 0, 0))
        try:
            draw_panel(ImageDraw.Draw(surface), layout, (0, 0), style)
            bbox = surface.getchannel("A").getbbox()
        finally:
            surface.close()
        painted = bbox[3] if bbox else 0
        return int(math.ceil(painted)) + style.item_margin


def make_estimator(strategy: str = "analytic", style: Optional[StyleConfig] = None) -> HeightEstimator:
    """Return the estimator registered under ``strategy``.

    Raises
    ------
    ValueError
        If ``strategy`` is not ``"analytic"``, ``"measured"`` or ``"dom"``.
    """
    key = _ALIASES.get(strategy.lower(), strategy.lower())
    if key == "analytic":
        return AnalyticEstimator(style)
    if key == "measured":
        return MeasuredEstimator(style)
    raise ValueError(
        f"Unknown estimator strategy {strategy!r}; expected one of {STRATEGIES + tuple(_ALIASES)}"
    )


def estimate_height(gig: GigRecord, style: Optional[StyleConfig] = None, strategy: str = "analytic") -> int:
    return make_estimator(strategy, style).estimate(gig)

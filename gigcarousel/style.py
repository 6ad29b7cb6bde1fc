"""Visual constants shared by the height estimators and the slide renderer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .gigs import InvalidInputError

BRAND_BLUE = "#00B2E3"
BRAND_ORANGE = "#FF5C35"
SLIDE_BACKGROUND = "#111827"
PANEL_BACKGROUND = "#262626"

INSTAGRAM_HEIGHT = 960
HEADER_HEIGHT = 48
MIN_BOTTOM_MARGIN = 24
CONTAINER_HEIGHT = INSTAGRAM_HEIGHT - HEADER_HEIGHT - MIN_BOTTOM_MARGIN - 16


@dataclass(frozen=True)
class StyleConfig:
    """Dimensions of a slide and of the gig panels stacked on it.

    The first four fields drive the analytic estimate; the rest describe the
    panel layout used by the renderer and the measured estimate. All values
    are pixels unless noted.
    """

    chars_per_line: int = 35
    base_height: int = 64
    line_height: int = 24
    padding: int = 8

    slide_width: int = 540
    slide_height: int = INSTAGRAM_HEIGHT
    header_height: int = HEADER_HEIGHT
    slide_margin: int = 16
    panel_padding: int = 6
    column_gap: int = 12
    right_column_width: int = 96
    row_gap: int = 2
    item_margin: int = 1
    title_font_size: int = 20
    title_line_height: int = 25
    body_font_size: int = 18
    body_line_height: int = 28
    tag_font_size: int = 14
    max_genre_tags: int = 2
    font_path: Optional[str] = None

    def __post_init__(self) -> None:
        value = self.chars_per_line
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise InvalidInputError(
                f"chars_per_line must be a positive integer, got {value!r}"
            )

    @property
    def panel_width(self) -> int:
        return self.slide_width - 2 * self.slide_margin

    @property
    def left_column_width(self) -> int:
        return (
            self.panel_width
            - 2 * self.panel_padding
            - self.right_column_width
            - self.column_gap
        )

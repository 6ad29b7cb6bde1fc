"""Rasterise carousel slides with Pillow.

Each content slide is a fixed 540x960 canvas: a header row, then gig panels
stacked top to bottom. A panel holds the gig title (wrapped), an optional genre
label, the venue and suburb on one row, and the start time and price in a right
column. ``layout_panel`` computes that arrangement; ``draw_panel`` paints it.
The measured height estimator draws panels through the same functions, so the
packer's notion of a panel's height matches what ends up in the PNG.

Example usage::

    from pathlib import Path
    from gigcarousel.renderer import render_carousel

    paths = render_carousel(slide_set, "St Kilda", "2025-01-31", Path("out"))

Fonts are loaded with ``ImageFont.truetype``. When the requested font file is
not installed, Pillow's bundled default font is used at the same size.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date as date_cls
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFont

from .gigs import GigRecord, format_price, get_suburb, to_title_case
from .style import (
    BRAND_BLUE,
    BRAND_ORANGE,
    PANEL_BACKGROUND,
    SLIDE_BACKGROUND,
    StyleConfig,
)

DEFAULT_FONT = "DejaVuSans.ttf"
BOLD_FONT = "DejaVuSans-Bold.ttf"
ELLIPSIS = "…"
GENRE_SEPARATOR = " · "


@lru_cache(maxsize=32)
def load_font(size: int, font_path: Optional[str] = None, bold: bool = False):
    """Return a FreeType font of ``size`` pixels, falling back to Pillow's own."""
    path = font_path or (BOLD_FONT if bold else DEFAULT_FONT)
    try:
        return ImageFont.truetype(path, size)
    except OSError:
        logging.info("Font %s not available, using Pillow default", path)
        return ImageFont.load_default(size=size)


def _wrap(text: str, font, width: int, draw: ImageDraw.ImageDraw) -> List[str]:
    """Greedy word wrap by rendered width; overlong words are split."""
    lines: List[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if draw.textlength(candidate, font=font) <= width:
            current = candidate
            continue
        if current:
            lines.append(current)
            current = ""
        # a single word wider than the column is broken character by character
        while draw.textlength(word, font=font) > width:
            cut = len(word)
            while cut > 1 and draw.textlength(word[:cut], font=font) > width:
                cut -= 1
            lines.append(word[:cut])
            word = word[cut:]
        current = word
    if current:
        lines.append(current)
    return lines or [""]


def _truncate(text: str, font, width: int, draw: ImageDraw.ImageDraw) -> str:
    if draw.textlength(text, font=font) <= width:
        return text
    while text and draw.textlength(text + ELLIPSIS, font=font) > width:
        text = text[:-1]
    return text.rstrip() + ELLIPSIS


@dataclass
class PanelLayout:
    """Resolved text and geometry of one gig panel."""

    title_lines: List[str]
    genre_label: str
    venue_line: str
    start_time: str
    price: str
    height: int


def layout_panel(gig: GigRecord, style: StyleConfig, draw: ImageDraw.ImageDraw) -> PanelLayout:
    title_font = load_font(style.title_font_size, style.font_path, bold=True)
    body_font = load_font(style.body_font_size, style.font_path)
    tag_font = load_font(style.tag_font_size, style.font_path)
    width = style.left_column_width

    title_lines = _wrap(to_title_case(gig.name), title_font, width, draw)

    # genres sit after the last title line, only when there is room for them
    genre_label = ""
    if gig.genre_tags:
        label = GENRE_SEPARATOR.join(gig.genre_tags[: style.max_genre_tags])
        used = draw.textlength(title_lines[-1], font=title_font)
        gap = style.column_gap
        if used + gap + draw.textlength(label, font=tag_font) <= width:
            genre_label = label

    suburb = get_suburb(gig.venue.address)
    venue_text = to_title_case(gig.venue.name)
    if suburb:
        venue_text = f"{venue_text} • {suburb}"
    venue_line = _truncate(venue_text, body_font, width, draw)

    left = len(title_lines) * style.title_line_height + style.row_gap + style.body_line_height
    right = 2 * style.body_line_height
    height = 2 * style.panel_padding + max(left, right)
    return PanelLayout(
        title_lines=title_lines,
        genre_label=genre_label,
        venue_line=venue_line,
        start_time=gig.start_time,
        price=format_price(gig),
        height=height,
    )


def draw_panel(
    draw: ImageDraw.ImageDraw,
    layout: PanelLayout,
    origin: Tuple[int, int],
    style: StyleConfig,
) -> None:
    x, y = origin
    title_font = load_font(style.title_font_size, style.font_path, bold=True)
    body_font = load_font(style.body_font_size, style.font_path)
    tag_font = load_font(style.tag_font_size, style.font_path)

    draw.rounded_rectangle(
        [x, y, x + style.panel_width - 1, y + layout.height - 1],
        radius=8,
        fill=PANEL_BACKGROUND,
    )
    text_x = x + style.panel_padding
    text_y = y + style.panel_padding
    for line in layout.title_lines:
        draw.text((text_x, text_y), line, font=title_font, fill="white")
        text_y += style.title_line_height
    if layout.genre_label:
        last = layout.title_lines[-1]
        gx = text_x + draw.textlength(last, font=title_font) + style.column_gap
        draw.text(
            (gx, text_y - style.title_line_height + 4),
            layout.genre_label,
            font=tag_font,
            fill=BRAND_BLUE,
        )
    text_y += style.row_gap
    draw.text((text_x, text_y), layout.venue_line, font=body_font, fill=BRAND_BLUE)

    right_x = x + style.panel_width - style.panel_padding
    top = y + style.panel_padding
    draw.text((right_x, top), layout.start_time, font=title_font, fill="white", anchor="ra")
    if layout.price:
        draw.text(
            (right_x, top + style.body_line_height),
            layout.price,
            font=body_font,
            fill=BRAND_ORANGE,
            anchor="ra",
        )


def format_long_date(day: str) -> str:
    """``"2025-01-31"`` -> ``"Friday, January 31, 2025"``."""
    parsed = date_cls.fromisoformat(day)
    return f"{parsed:%A}, {parsed:%B} {parsed.day}, {parsed.year}"


def slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def _new_slide(style: StyleConfig) -> Tuple[Image.Image, ImageDraw.ImageDraw]:
    image = Image.new("RGB", (style.slide_width, style.slide_height), SLIDE_BACKGROUND)
    return image, ImageDraw.Draw(image)


def render_title_slide(location: str, day: str, style: Optional[StyleConfig] = None) -> Image.Image:
    style = style or StyleConfig()
    image, draw = _new_slide(style)
    centre = style.slide_width // 2
    heading = load_font(36, style.font_path, bold=True)
    sub = load_font(28, style.font_path)
    y = style.slide_height // 3
    for part in re.split(r",\s*|\s+and\s+", location):
        draw.text((centre, y), part, font=heading, fill="white", anchor="ma")
        y += 44
    y += 16
    draw.text((centre, y), "Gig Guide", font=sub, fill="white", anchor="ma")
    y += 48
    draw.text((centre, y), format_long_date(day), font=sub, fill=BRAND_BLUE, anchor="ma")
    return image


def render_content_slide(
    gigs: Sequence[GigRecord],
    index: int,
    total: int,
    location: str,
    style: Optional[StyleConfig] = None,
) -> Image.Image:
    """Draw one slide of gigs. ``index`` is zero-based."""
    style = style or StyleConfig()
    image, draw = _new_slide(style)
    header = load_font(style.body_font_size, style.font_path, bold=True)
    mid = style.header_height // 2
    draw.text((style.slide_margin, mid), location, font=header, fill="white", anchor="lm")
    draw.text(
        (style.slide_width - style.slide_margin, mid),
        f"{index + 1} / {total}",
        font=header,
        fill=BRAND_BLUE,
        anchor="rm",
    )
    y = style.header_height
    for gig in gigs:
        layout = layout_panel(gig, style, draw)
        draw_panel(draw, layout, (style.slide_margin, y), style)
        y += layout.height + style.item_margin
    return image


def render_carousel(
    slide_set,
    location: str,
    day: str,
    output_dir: str | Path,
    style: Optional[StyleConfig] = None,
) -> List[Path]:
    """Write the title slide and every content slide of ``slide_set`` as PNGs.

    Returns the written paths in carousel order, title slide first.
    """
    style = style or StyleConfig()
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    stem = f"gigs_{day.replace('-', '')}_{slugify(location)}_carousel"
    paths: List[Path] = []

    title_path = out / f"{stem}0.png"
    render_title_slide(location, day, style).save(title_path)
    paths.append(title_path)

    total = len(slide_set.slides)
    for i, slide in enumerate(slide_set.slides):
        path = out / f"{stem}{i + 1}.png"
        render_content_slide(slide, i, total, location, style).save(path)
        logging.info("Rendered slide %d/%d with %d gigs to %s", i + 1, total, len(slide), path)
        paths.append(path)
    return paths

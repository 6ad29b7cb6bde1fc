"""Captions for the gig carousel.

Each content slide gets a caption listing its gigs, with the venue's Instagram
handle where one is known. Instagram shows only one caption per carousel, so
``combine_captions`` builds the post caption from the title caption plus a
shout-out line naming venues from across the slides. Instagram limits how many
accounts a caption may mention; when there are more venues than
``max_mentions`` a random selection is made that still covers every slide.
"""

from __future__ import annotations

import json
import logging
import random
import re
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .gigs import GigRecord
from .renderer import format_long_date

PUBLIC_URL = "https://lml.live/?dateRange=today"
MAX_VENUE_MENTIONS = 19
HANDLE_PATTERN = re.compile(r"@[a-zA-Z0-9_.]+")
SHOUTOUT_PREFIX = (
    "Shoutout to a random selection of today's venues "
    "(often there are too many to @ here): "
)

TITLE_CAPTION = (
    "Live Music Locator is a not-for-profit service designed to make it possible "
    "to discover every gig playing at every venue across every genre at any one "
    "time. This information will always be verified and free, importantly "
    "supporting musicians, our small to medium live music venues, and you the "
    f"punters. More detailed gig information here: {PUBLIC_URL}"
)


def load_venue_handles(path: str | Path | None) -> Dict[str, str]:
    """Read a ``{venue_id: "@handle"}`` mapping from a JSON file.

    A missing path or file gives an empty mapping, so captions simply go
    without handles.

    Raises
    ------
    ValueError
        If the file is not valid JSON or its top level is not an object.
    """
    if path is None:
        return {}
    handles_path = Path(path)
    if not handles_path.exists():
        logging.warning("Venue handles file not found: %s", handles_path)
        return {}
    with handles_path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Venue handles file {handles_path} must hold a JSON object")
    return {str(k): str(v) for k, v in data.items() if v}


def _gig_line(gig: GigRecord, handles: Dict[str, str]) -> str:
    handle = handles.get(gig.venue.id, "")
    if handle:
        return f"🎤 {gig.name} @ {gig.venue.name} ({handle}) - {gig.start_time}"
    return f"🎤 {gig.name} @ {gig.venue.name} - {gig.start_time}"


def generate_caption(
    slide_gigs: Sequence[GigRecord],
    slide_index: int,
    total_slides: int,
    date: str,
    location: str,
    venue_handles: Optional[Dict[str, str]] = None,
    public_url: str = PUBLIC_URL,
) -> str:
    """Caption for one content slide. ``slide_index`` is zero-based."""
    handles = venue_handles or {}
    caption = f"More information here: {public_url}\n\n"
    caption += f"🎵 Live Music Locator - {location} - {format_long_date(date)}\n"
    caption += f"Slide {slide_index + 1} of {total_slides}\n\n"
    caption += "\n".join(_gig_line(gig, handles) for gig in slide_gigs)
    return caption


def _unique_handles(text: str) -> List[str]:
    seen: List[str] = []
    for handle in HANDLE_PATTERN.findall(text):
        if handle not in seen:
            seen.append(handle)
    return seen


def select_mentions(
    per_slide: Sequence[Sequence[str]],
    max_mentions: int = MAX_VENUE_MENTIONS,
    rng: Optional[random.Random] = None,
) -> List[str]:
    """Choose at most ``max_mentions`` handles, one per slide first.

    When every handle fits, all are returned in first-seen order. Otherwise
    slides are visited in random order picking one random handle each, and
    the remaining slots are filled from the leftovers at random.
    """
    rng = rng or random.Random()
    all_handles: List[str] = []
    for handles in per_slide:
        for handle in handles:
            if handle not in all_handles:
                all_handles.append(handle)
    if len(all_handles) <= max_mentions:
        return all_handles

    logging.warning(
        "Found %d venue handles but only %d can be mentioned", len(all_handles), max_mentions
    )
    chosen: List[str] = []
    order = list(range(len(per_slide)))
    rng.shuffle(order)
    for index in order:
        if len(chosen) >= max_mentions:
            break
        candidates = [h for h in per_slide[index] if h not in chosen]
        if candidates:
            chosen.append(rng.choice(candidates))

    remaining = [h for h in all_handles if h not in chosen]
    rng.shuffle(remaining)
    chosen.extend(remaining[: max_mentions - len(chosen)])
    return chosen


def combine_captions(
    captions: Sequence[str],
    max_mentions: int = MAX_VENUE_MENTIONS,
    rng: Optional[random.Random] = None,
) -> str:
    """Merge per-slide captions into the single caption of a carousel post.

    ``captions[0]`` is the title slide caption and is used verbatim; handles
    mentioned in the remaining captions are appended as a shout-out line.
    """
    if not captions:
        return ""
    per_slide = [_unique_handles(c) for c in captions[1:]]
    mentions = select_mentions(per_slide, max_mentions=max_mentions, rng=rng)
    combined = captions[0]
    if mentions:
        combined += "\n\n" + SHOUTOUT_PREFIX + " ".join(mentions)
    return combined

"""Command-line entry point for the gig carousel pipeline.

This script fetches the day's gigs from the Live Music Locator API, keeps the
ones in each carousel's area, packs them into fixed-height slides and reports
the result. With ``--render`` the slides are written as PNG files; with
``--publish`` they are also uploaded and posted to Instagram. A JSON plan is
written per location so a run can be inspected afterwards.

Usage example:

    python main.py \
        --date 2025-01-31 \
        --location "St Kilda" \
        --output-dir ./carousels \
        --estimator measured \
        --render
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence
from zoneinfo import ZoneInfo

import requests

from gigcarousel import gigs as gig_source
from gigcarousel import publisher
from gigcarousel.captions import (
    TITLE_CAPTION,
    combine_captions,
    generate_caption,
    load_venue_handles,
)
from gigcarousel.config import CarouselConfig
from gigcarousel.estimator import STRATEGIES
from gigcarousel.gigs import LOCATIONS, GigRecord, InvalidInputError, filter_by_postcodes
from gigcarousel.packer import SlideSet, plan_carousel
from gigcarousel.publisher import PublishError
from gigcarousel.renderer import render_carousel, slugify

TIMEZONE = "Australia/Melbourne"
API_LOCATION = "melbourne"


def melbourne_today() -> str:
    """Today's date in Melbourne as ``YYYY-MM-DD``."""
    return datetime.now(ZoneInfo(TIMEZONE)).date().isoformat()


def _gig_summary(gig: GigRecord) -> Dict[str, object]:
    return {
        "name": gig.name,
        "venue": gig.venue.name,
        "venue_id": gig.venue.id,
        "start_time": gig.start_time,
    }


def build_plan(
    slide_set: SlideSet,
    location: str,
    day: str,
    venue_handles: Optional[Dict[str, str]] = None,
) -> Dict[str, object]:
    """Describe a packed carousel as JSON-serialisable data."""
    total = len(slide_set.slides)
    captions = [TITLE_CAPTION] + [
        generate_caption(slide, i, total, day, location, venue_handles)
        for i, slide in enumerate(slide_set.slides)
    ]
    return {
        "location": location,
        "date": day,
        "gig_count": slide_set.gig_count,
        "truncated": slide_set.truncated,
        "dropped_gigs": slide_set.dropped_gigs,
        "slides": [[_gig_summary(g) for g in slide] for slide in slide_set.slides],
        "warnings": [str(w) for w in slide_set.warnings],
        "captions": captions,
    }


def process_location(
    location: str,
    gigs: Sequence[GigRecord],
    day: str,
    config: CarouselConfig,
    output_dir: Path,
    render: bool = False,
    publish: bool = False,
    test_mode: bool = False,
    venue_handles: Optional[Dict[str, str]] = None,
) -> Dict[str, object]:
    """Pack, report and optionally render and publish one location's carousel.

    Parameters
    ----------
    location: str
        Display name of the area, a key of ``LOCATIONS``.
    gigs: sequence of GigRecord
        The whole day's gigs, sorted by start time. Filtered here.
    day: str
        Date of the gigs, ``YYYY-MM-DD``.
    config: CarouselConfig
        Layout and credential settings.
    output_dir: Path
        Where the plan JSON and any PNG files are written.
    render: bool
        Write slide images.
    publish: bool
        Upload the images and post the carousel. Implies ``render``.
    test_mode: bool
        Go through the publishing steps without network access.

    Returns
    -------
    dict
        The plan that was written to ``{day}_{slug}_plan.json``.
    """
    local_gigs = filter_by_postcodes(gigs, LOCATIONS[location])
    print(f"{len(local_gigs)} gigs found for {location}")
    slide_set = plan_carousel(
        local_gigs,
        config.estimator(),
        config.container_height_px,
        config.max_content_slides,
    )
    for i, slide in enumerate(slide_set.slides):
        print(f"  Slide {i + 1}: {len(slide)} gigs ({slide[0].start_time} - {slide[-1].start_time})")
    for warning in slide_set.oversize_warnings:
        print(f"  Warning: {warning}")
    if slide_set.truncated:
        shown = len(slide_set.slides)
        print(
            f"  Warning: Only showing {shown} of {shown + slide_set.dropped_slides} "
            "slides due to Instagram limitations"
        )

    plan = build_plan(slide_set, location, day, venue_handles)
    output_dir.mkdir(parents=True, exist_ok=True)

    if (render or publish) and slide_set.slides:
        paths = render_carousel(slide_set, location, day, output_dir / slugify(location), config.style())
        plan["images"] = [str(p) for p in paths]
        print(f"  Rendered {len(paths)} images")
        if publish:
            if test_mode:
                urls = [p.as_uri() for p in paths]
            else:
                if not config.github_repo or not config.github_token:
                    raise ValueError("GITHUB_REPO and GITHUB_TOKEN are required to publish")
                urls = [
                    publisher.upload_to_github(p, config.github_repo, config.github_token)
                    for p in paths
                ]
            caption = combine_captions(plan["captions"])
            post_id = publisher.post_carousel(
                urls,
                caption,
                account_id=config.instagram_account_id or "",
                access_token=config.instagram_access_token or "",
                test_mode=test_mode,
            )
            plan["post_id"] = post_id
            print(f"  Posted carousel {post_id}")

    plan_path = output_dir / f"{day}_{slugify(location)}_plan.json"
    with plan_path.open("w", encoding="utf-8") as f:
        json.dump(plan, f, ensure_ascii=False, indent=2)
    logging.info("Wrote plan to %s", plan_path)
    return plan


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Pack the day's gigs into Instagram carousel slides and optionally post them."
    )
    parser.add_argument(
        "--date",
        default=None,
        help="Date of the gigs as YYYY-MM-DD (default: today in Melbourne)",
    )
    parser.add_argument(
        "--location",
        action="append",
        choices=sorted(LOCATIONS),
        default=None,
        help="Carousel area to build; repeat for several (default: all)",
    )
    parser.add_argument(
        "--output-dir",
        default="carousels",
        help="Directory where plans and images are written",
    )
    parser.add_argument(
        "--estimator",
        choices=list(STRATEGIES) + ["dom"],
        default=None,
        help="Panel height estimator (default: analytic)",
    )
    parser.add_argument(
        "--container-height",
        type=int,
        default=None,
        help="Pixel height available for gig panels on one slide",
    )
    parser.add_argument(
        "--chars-per-line",
        type=int,
        default=None,
        help="Title wrap width used by the analytic estimator",
    )
    parser.add_argument(
        "--max-slides",
        type=int,
        default=None,
        help="Maximum content slides per carousel (default: 9)",
    )
    parser.add_argument(
        "--venue-handles",
        default=None,
        help="JSON file mapping venue IDs to Instagram handles",
    )
    parser.add_argument(
        "--render",
        action="store_true",
        help="Render slides to PNG files",
    )
    parser.add_argument(
        "--publish",
        action="store_true",
        help="Upload rendered slides and post them to Instagram",
    )
    parser.add_argument(
        "--test-mode",
        action="store_true",
        help=(
            "Run the publishing steps without uploading or posting. "
            "Useful for checking configuration and images."
        ),
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log progress at INFO level",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(message)s",
    )
    config = CarouselConfig.from_env().override(
        container_height_px=args.container_height,
        chars_per_line=args.chars_per_line,
        max_content_slides=args.max_slides,
        estimator_strategy=args.estimator,
        venue_handles_file=args.venue_handles,
    )
    day = args.date or melbourne_today()
    output_dir = Path(args.output_dir)
    locations: List[str] = args.location or sorted(LOCATIONS)
    try:
        venue_handles = load_venue_handles(config.venue_handles_file)
    except (OSError, ValueError) as e:
        print(f"Failed to read venue handles: {e}")
        return 1

    try:
        gigs = gig_source.fetch_gigs(API_LOCATION, day, base_url=config.gigs_api_url)
    except (requests.RequestException, InvalidInputError) as e:
        print(f"Failed to fetch gigs for {day}: {e}")
        return 1
    print(f"{len(gigs)} total gigs found for {day}")

    failed = 0
    for location in locations:
        try:
            process_location(
                location,
                gigs,
                day,
                config,
                output_dir,
                render=args.render,
                publish=args.publish,
                test_mode=args.test_mode,
                venue_handles=venue_handles,
            )
        except (InvalidInputError, PublishError, ValueError, OSError, requests.RequestException) as e:
            print(f"Failed to build carousel for {location}: {e}")
            failed += 1
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())

"""Top‑level package for the gig carousel generator.

This package exposes a minimal API for fetching gig listings, packing them
into fixed-height slides, captioning and rendering the slides, and publishing
the result as an Instagram carousel. See individual modules for details.
"""

from .gigs import GigRecord, InvalidInputError, Venue, PriceInfo, fetch_gigs
from .estimator import AnalyticEstimator, MeasuredEstimator, make_estimator
from .packer import SlideSet, pack, limit, plan_carousel
from .captions import generate_caption, combine_captions
from .publisher import post_carousel, upload_to_github

__all__ = [
    "GigRecord",
    "InvalidInputError",
    "Venue",
    "PriceInfo",
    "fetch_gigs",
    "AnalyticEstimator",
    "MeasuredEstimator",
    "make_estimator",
    "SlideSet",
    "pack",
    "limit",
    "plan_carousel",
    "generate_caption",
    "combine_captions",
    "post_carousel",
    "upload_to_github",
]

"""Run configuration read from environment variables.

Command-line flags in ``main.py`` override whatever is found here. Credentials
are only needed when publishing.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from .estimator import make_estimator
from .gigs import GIGS_API_URL
from .packer import MAX_CONTENT_SLIDES
from .style import CONTAINER_HEIGHT, StyleConfig


def _int_env(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class CarouselConfig:
    """Options recognised by the carousel pipeline.

    Attributes
    ----------
    container_height_px: int
        Height budget for gig panels on one slide (slide height minus header
        and bottom margins).
    chars_per_line: int
        Wrap width used by the analytic estimator.
    max_content_slides: int
        Content slides allowed per carousel; the title slide is extra.
    estimator_strategy: str
        ``"analytic"`` or ``"measured"``.
    """

    container_height_px: int = CONTAINER_HEIGHT
    chars_per_line: int = 35
    max_content_slides: int = MAX_CONTENT_SLIDES
    estimator_strategy: str = "analytic"
    gigs_api_url: str = GIGS_API_URL
    github_repo: Optional[str] = None
    github_token: Optional[str] = None
    instagram_access_token: Optional[str] = None
    instagram_account_id: Optional[str] = None
    venue_handles_file: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CarouselConfig":
        env = os.environ if environ is None else environ
        return cls(
            container_height_px=_int_env(env, "GIGCAROUSEL_CONTAINER_HEIGHT", CONTAINER_HEIGHT),
            chars_per_line=_int_env(env, "GIGCAROUSEL_CHARS_PER_LINE", 35),
            max_content_slides=_int_env(env, "GIGCAROUSEL_MAX_SLIDES", MAX_CONTENT_SLIDES),
            estimator_strategy=env.get("GIGCAROUSEL_ESTIMATOR") or "analytic",
            gigs_api_url=env.get("GIGS_API_URL") or GIGS_API_URL,
            github_repo=env.get("GITHUB_REPO"),
            github_token=env.get("GITHUB_TOKEN"),
            instagram_access_token=env.get("INSTAGRAM_ACCESS_TOKEN"),
            instagram_account_id=env.get("INSTAGRAM_BUSINESS_ACCOUNT_ID"),
            venue_handles_file=env.get("VENUE_HANDLES_FILE"),
        )

    def override(self, **changes) -> "CarouselConfig":
        """Return a copy with every non-None keyword applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def style(self) -> StyleConfig:
        return StyleConfig(chars_per_line=self.chars_per_line)

    def estimator(self):
        return make_estimator(self.estimator_strategy, self.style())

"""Split a day's gigs into carousel slides.

``pack`` walks the gigs once, in the order given (callers sort by start time),
and starts a new slide whenever the next panel would overflow the height
budget. A gig taller than the whole budget cannot fit anywhere; it is still
shown, on a slide of its own, and reported in ``SlideSet.warnings``.

``limit`` then enforces Instagram's carousel cap. Ten items are allowed per
post and one goes to the title slide, leaving nine for gigs. Later slides hold
later gigs, so the tail is what gets dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, List, Sequence, Tuple, Union

from .gigs import GigRecord, InvalidInputError, validate_gig

MAX_CONTENT_SLIDES = 9

Slide = Tuple[GigRecord, ...]


@dataclass(frozen=True)
class OversizeWarning:
    """A gig whose panel alone is taller than the slide budget."""

    item_index: int
    gig_name: str
    measured_height: int
    budget: int

    def __str__(self) -> str:
        return (
            f"Gig #{self.item_index} {self.gig_name!r} is too tall "
            f"({self.measured_height}px > {self.budget}px) and will be truncated"
        )


@dataclass(frozen=True)
class DroppedSlidesWarning:
    """Slides removed to respect the carousel cap."""

    dropped_slides: int
    dropped_gigs: int
    kept_slides: int

    def __str__(self) -> str:
        return (
            f"Only showing {self.kept_slides} of {self.kept_slides + self.dropped_slides} "
            f"slides; {self.dropped_gigs} gigs were left out"
        )


SlideWarning = Union[OversizeWarning, DroppedSlidesWarning]


@dataclass(frozen=True)
class SlideSet:
    """Packed slides plus the diagnostics produced while packing them.

    Attributes
    ----------
    slides: tuple of Slide
        Content slides in display order. Each slide is a tuple of gigs.
    warnings: tuple
        ``OversizeWarning`` entries in gig order, followed by at most one
        ``DroppedSlidesWarning`` once ``limit`` has truncated the set.
    truncated: bool
        True when slides were dropped. Anything shown to an operator should
        say so.
    """

    slides: Tuple[Slide, ...] = ()
    warnings: Tuple[SlideWarning, ...] = ()
    truncated: bool = False

    @property
    def gig_count(self) -> int:
        return sum(len(s) for s in self.slides)

    @property
    def oversize_warnings(self) -> List[OversizeWarning]:
        return [w for w in self.warnings if isinstance(w, OversizeWarning)]

    def _dropped(self) -> List[DroppedSlidesWarning]:
        return [w for w in self.warnings if isinstance(w, DroppedSlidesWarning)]

    @property
    def dropped_slides(self) -> int:
        return sum(w.dropped_slides for w in self._dropped())

    @property
    def dropped_gigs(self) -> int:
        return sum(w.dropped_gigs for w in self._dropped())


Estimator = Callable[[GigRecord], int]


def _measure(estimator: Estimator, gig: GigRecord) -> int:
    height = estimator(gig)
    if isinstance(height, bool) or not isinstance(height, int) or height < 0:
        raise InvalidInputError(
            f"Estimator returned {height!r} for {gig.name!r}; expected a non-negative int"
        )
    return height


def pack(gigs: Sequence[GigRecord], estimator: Estimator, budget_px: int) -> SlideSet:
    """Greedily pack gigs into slides without reordering them.

    Parameters
    ----------
    gigs: sequence of GigRecord
        Gigs in display order.
    estimator: callable
        Returns the panel height of a gig in pixels.
    budget_px: int
        Height available for panels on one slide.

    Returns
    -------
    SlideSet
        Every input gig appears in exactly one slide, in input order. A slide
        holding more than one gig never exceeds ``budget_px``.

    Raises
    ------
    InvalidInputError
        If ``budget_px`` is not positive, a gig lacks a name or venue name, or
        the estimator returns something other than a non-negative int. Input is
        validated before any packing happens.
    """
    if isinstance(budget_px, bool) or not isinstance(budget_px, int) or budget_px <= 0:
        raise InvalidInputError(f"budget_px must be a positive integer, got {budget_px!r}")
    for gig in gigs:
        validate_gig(gig)

    slides: List[Slide] = []
    warnings: List[SlideWarning] = []
    current: List[GigRecord] = []
    current_height = 0

    for index, gig in enumerate(gigs):
        height = _measure(estimator, gig)
        if height > budget_px:
            warning = OversizeWarning(index, gig.name, height, budget_px)
            logging.warning("%s", warning)
            warnings.append(warning)
        if current and current_height + height > budget_px:
            slides.append(tuple(current))
            current = [gig]
            current_height = height
        else:
            current.append(gig)
            current_height += height

    if current:
        slides.append(tuple(current))
    logging.info("Packed %d gigs into %d slides (budget %dpx)", len(gigs), len(slides), budget_px)
    return SlideSet(slides=tuple(slides), warnings=tuple(warnings))


def limit(slide_set: SlideSet, max_content_slides: int = MAX_CONTENT_SLIDES) -> SlideSet:
    """Keep at most ``max_content_slides`` slides, dropping the latest ones.

    A set that already fits is returned unchanged.
    """
    if isinstance(max_content_slides, bool) or not isinstance(max_content_slides, int) or max_content_slides < 1:
        raise InvalidInputError(
            f"max_content_slides must be a positive integer, got {max_content_slides!r}"
        )
    if len(slide_set.slides) <= max_content_slides:
        return slide_set

    kept = slide_set.slides[:max_content_slides]
    dropped = slide_set.slides[max_content_slides:]
    warning = DroppedSlidesWarning(
        dropped_slides=len(dropped),
        dropped_gigs=sum(len(s) for s in dropped),
        kept_slides=len(kept),
    )
    logging.warning("%s", warning)
    return replace(
        slide_set,
        slides=kept,
        warnings=slide_set.warnings + (warning,),
        truncated=True,
    )


def plan_carousel(
    gigs: Sequence[GigRecord],
    estimator: Estimator,
    budget_px: int,
    max_content_slides: int = MAX_CONTENT_SLIDES,
) -> SlideSet:
    """Pack ``gigs`` and trim the result to the carousel cap."""
    return limit(pack(gigs, estimator, budget_px), max_content_slides)

"""Fetch gig listings from the Live Music Locator API.

This module turns the JSON returned by the public gigs endpoint into immutable
``GigRecord`` objects. All optional fields are resolved here, once, so the
layout and caption code never has to guess whether a price or genre list is
present. Gigs without a start time are given the sentinel ``"23:59"`` so they
sort after every timed gig of the day.

The HTTP call uses ``requests``. A ``session`` may be supplied so callers (and
tests) can control connection reuse or substitute a fake.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import requests

GIGS_API_URL = "https://api.lml.live/gigs/query"
UNTIMED_START = "23:59"

# Postcodes covered by each carousel.
LOCATIONS: Dict[str, Tuple[str, ...]] = {
    "St Kilda": ("3182", "3183", "3185"),
    "Fitzroy, Collingwood and Richmond": ("3065", "3066", "3067", "3068", "3121"),
}


class InvalidInputError(ValueError):
    """Raised when a gig record or layout parameter cannot be used."""


@dataclass(frozen=True)
class Venue:
    """Where a gig takes place.

    Attributes
    ----------
    name: str
        Display name of the venue. Required.
    address: str
        Free-text street address; the tail usually holds suburb and postcode.
    id: str
        Identifier used to look up the venue's Instagram handle.
    postcode: str
        Dedicated postcode when the API supplies one, otherwise empty.
    """

    name: str
    address: str = ""
    id: str = ""
    postcode: str = ""


@dataclass(frozen=True)
class PriceInfo:
    tags: Tuple[str, ...] = ()
    # one entry per listed price; an entry without an amount is kept as ""
    amounts: Tuple[str, ...] = ()


@dataclass(frozen=True)
class GigRecord:
    """A single live-music performance.

    Attributes
    ----------
    name: str
        Title of the gig. Required and non-empty.
    venue: Venue
        The venue playing host.
    start_time: str
        ``HH:MM`` in 24-hour time, or ``"23:59"`` when the listing has none.
    genre_tags: tuple of str
        Genres in the order the API returned them. May be empty.
    price: PriceInfo
        Information tags (e.g. ``"free"``) and price amounts.
    """

    name: str
    venue: Venue
    start_time: str = UNTIMED_START
    genre_tags: Tuple[str, ...] = ()
    price: PriceInfo = field(default_factory=PriceInfo)

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "GigRecord":
        """Build a record from one element of the gigs API response.

        Raises
        ------
        InvalidInputError
            If ``name`` or ``venue.name`` is missing or blank.
        """
        name = (payload.get("name") or "").strip()
        venue_data = payload.get("venue") or {}
        venue_name = (venue_data.get("name") or "").strip()
        if not name:
            raise InvalidInputError(f"Gig is missing a name: {dict(payload)!r}")
        if not venue_name:
            raise InvalidInputError(f"Gig {name!r} is missing a venue name")
        venue = Venue(
            name=venue_name,
            address=venue_data.get("address") or "",
            id=str(venue_data.get("id") or ""),
            postcode=str(venue_data.get("postcode") or ""),
        )
        amounts = tuple(
            str(p.get("amount") or "")
            for p in payload.get("prices") or []
            if isinstance(p, Mapping)
        )
        return cls(
            name=name,
            venue=venue,
            start_time=payload.get("start_time") or UNTIMED_START,
            genre_tags=tuple(payload.get("genre_tags") or ()),
            price=PriceInfo(
                tags=tuple(payload.get("information_tags") or ()),
                amounts=amounts,
            ),
        )


def validate_gig(gig: GigRecord) -> None:
    """Raise ``InvalidInputError`` if a record lacks its required fields."""
    if not isinstance(gig, GigRecord):
        raise InvalidInputError(f"Expected a GigRecord, got {type(gig).__name__}")
    if not gig.name or not gig.name.strip():
        raise InvalidInputError("Gig record has an empty name")
    if gig.venue is None or not gig.venue.name or not gig.venue.name.strip():
        raise InvalidInputError(f"Gig {gig.name!r} has no venue name")


def sort_gigs(gigs: Iterable[GigRecord]) -> List[GigRecord]:
    """Return gigs ordered by start time; equal times keep their API order."""
    return sorted(gigs, key=lambda g: g.start_time)


def get_postcode(venue: Venue) -> str:
    """Return the venue's postcode, falling back to the address text."""
    if venue.postcode:
        return venue.postcode
    match = re.search(r"\b(\d{4})\b", venue.address)
    return match.group(1) if match else ""


def get_suburb(address: str) -> str:
    """Extract the suburb from the end of an address.

    ``"123 Fitzroy St, St Kilda 3182"`` gives ``"St Kilda"``.
    """
    match = re.search(r"(?:,\s*)?([A-Za-z\s]+)(?:\s+\d{4})?$", address)
    return match.group(1).strip() if match else ""


def to_title_case(text: str) -> str:
    return re.sub(r"\w\S*", lambda m: m.group(0)[0].upper() + m.group(0)[1:].lower(), text)


def format_price(gig: GigRecord) -> str:
    """Short price label shown on a gig panel.

    Any price amount means the gig is ticketed; otherwise a ``free``
    information tag shows ``"Free"``; with neither the label is blank.
    """
    if gig.price.amounts:
        return "$Ticketed"
    if any(tag.lower() == "free" for tag in gig.price.tags):
        return "Free"
    return ""


def filter_by_postcodes(gigs: Iterable[GigRecord], postcodes: Sequence[str]) -> List[GigRecord]:
    wanted = set(postcodes)
    return [g for g in gigs if get_postcode(g.venue) in wanted]


def parse_gigs(payload: Iterable[Mapping[str, Any]]) -> List[GigRecord]:
    """Convert an API response body into sorted ``GigRecord`` objects."""
    return sort_gigs(GigRecord.from_api(item) for item in payload)


def fetch_gigs(
    location: str = "melbourne",
    date_from: str = "",
    date_to: Optional[str] = None,
    base_url: str = GIGS_API_URL,
    session: Optional[requests.Session] = None,
    timeout: float = 30,
) -> List[GigRecord]:
    """Download gigs for a location and date range.

    Parameters
    ----------
    location: str
        City slug understood by the API, e.g. ``"melbourne"``.
    date_from: str
        First day (``YYYY-MM-DD``) to include.
    date_to: str, optional
        Last day to include. Defaults to ``date_from``.
    base_url: str, optional
        Query endpoint. Defaults to the public Live Music Locator API.
    session: requests.Session, optional
        Session to issue the request with. A plain ``requests.get`` is used
        when omitted.

    Returns
    -------
    List[GigRecord]
        Gigs sorted by start time, untimed gigs last.

    Raises
    ------
    requests.HTTPError
        If the API responds with an error status.
    InvalidInputError
        If the API returns something other than a list, or a gig lacks a name
        or venue name.
    """
    params = {
        "location": location,
        "date_from": date_from,
        "date_to": date_to or date_from,
    }
    logging.info("Fetching gigs from %s with %s", base_url, params)
    getter = session.get if session is not None else requests.get
    response = getter(base_url, params=params, timeout=timeout)
    response.raise_for_status()
    data = response.json()
    if not isinstance(data, list):
        raise InvalidInputError(f"Expected a list of gigs, got {type(data).__name__}")
    gigs = parse_gigs(data)
    logging.info("Fetched %d gigs for %s", len(gigs), date_from)
    return gigs

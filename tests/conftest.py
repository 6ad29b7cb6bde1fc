import pytest

from gigcarousel.gigs import GigRecord, PriceInfo, Venue


def make_gig(name="Band", venue="The Espy", start="20:00", address="11 The Esplanade, St Kilda 3182", **kwargs):
    return GigRecord(
        name=name,
        venue=Venue(name=venue, address=address, id=kwargs.pop("venue_id", "v1")),
        start_time=start,
        genre_tags=tuple(kwargs.pop("genre_tags", ())),
        price=kwargs.pop("price", PriceInfo()),
    )


@pytest.fixture
def gig_factory():
    return make_gig

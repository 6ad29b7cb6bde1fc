import random

import pytest

from gigcarousel.estimator import AnalyticEstimator
from gigcarousel.gigs import GigRecord, InvalidInputError, Venue
from gigcarousel.packer import (
    DroppedSlidesWarning,
    OversizeWarning,
    SlideSet,
    limit,
    pack,
    plan_carousel,
)


def heights_of(gigs):
    """Estimator that reads the height encoded in the gig name."""
    table = {g.name: int(g.name.split("-")[1]) for g in gigs}
    return lambda gig: table[gig.name]


def sized_gigs(gig_factory, sizes):
    return [gig_factory(f"g{i}-{h}") for i, h in enumerate(sizes)]


def test_short_and_oversize_names(gig_factory):
    a, b, c = gig_factory("A" * 10), gig_factory("B" * 10), gig_factory("C" * 80)
    result = pack([a, b, c], AnalyticEstimator(), 100)
    # 72 + 72 > 100, so A and B each get a slide; C (120px) is alone
    assert result.slides == ((a,), (b,), (c,))
    assert result.warnings == (OversizeWarning(2, "C" * 80, 120, 100),)
    assert not result.truncated


def test_twenty_five_equal_gigs(gig_factory):
    gigs = [gig_factory(f"gig {i}") for i in range(25)]
    result = pack(gigs, lambda g: 50, 460)
    assert [len(s) for s in result.slides] == [9, 9, 7]

    limited = limit(result, 2)
    assert limited.truncated
    assert [len(s) for s in limited.slides] == [9, 9]
    assert limited.gig_count == 18
    assert limited.dropped_gigs == 7
    assert limited.warnings[-1] == DroppedSlidesWarning(dropped_slides=1, dropped_gigs=7, kept_slides=2)


def test_exact_fit_stays_on_slide(gig_factory):
    gigs = sized_gigs(gig_factory, [40, 60, 1])
    result = pack(gigs, heights_of(gigs), 100)
    assert [len(s) for s in result.slides] == [2, 1]


def test_oversize_first_item_is_not_preceded_by_empty_slide(gig_factory):
    gigs = sized_gigs(gig_factory, [150, 30, 30])
    result = pack(gigs, heights_of(gigs), 100)
    assert [len(s) for s in result.slides] == [1, 2]
    assert result.oversize_warnings[0].item_index == 0


def test_oversize_item_closes_open_slide(gig_factory):
    gigs = sized_gigs(gig_factory, [30, 30, 150, 0, 30])
    result = pack(gigs, heights_of(gigs), 100)
    assert [len(s) for s in result.slides] == [2, 1, 2]
    assert result.slides[1] == (gigs[2],)


def test_empty_input_gives_empty_set():
    assert pack([], lambda g: 10, 100) == SlideSet()


@pytest.mark.parametrize("budget", [0, -5, 10.5, True])
def test_invalid_budget(gig_factory, budget):
    with pytest.raises(InvalidInputError):
        pack([gig_factory()], lambda g: 10, budget)


def test_malformed_gig_fails_before_packing(gig_factory):
    calls = []

    def estimator(gig):
        calls.append(gig)
        return 10

    bad = GigRecord(name="No Venue", venue=Venue(name=""))
    with pytest.raises(InvalidInputError):
        pack([gig_factory(), bad], estimator, 100)
    assert calls == []


def test_bad_estimator_output(gig_factory):
    with pytest.raises(InvalidInputError):
        pack([gig_factory()], lambda g: -1, 100)
    with pytest.raises(InvalidInputError):
        pack([gig_factory()], lambda g: 12.5, 100)


def test_packing_properties_hold_for_random_inputs(gig_factory):
    rng = random.Random(1234)
    for _ in range(200):
        budget = rng.randint(50, 500)
        sizes = [rng.randint(0, 600) for _ in range(rng.randint(1, 40))]
        gigs = sized_gigs(gig_factory, sizes)
        estimator = heights_of(gigs)
        result = pack(gigs, estimator, budget)

        flattened = [g for slide in result.slides for g in slide]
        assert flattened == gigs
        for slide in result.slides:
            assert slide
            if len(slide) > 1:
                assert sum(estimator(g) for g in slide) <= budget
        oversize = [i for i, h in enumerate(sizes) if h > budget]
        assert [w.item_index for w in result.oversize_warnings] == oversize
        for i in oversize:
            assert (gigs[i],) in result.slides
        assert pack(gigs, estimator, budget) == result


def test_limit_is_noop_when_within_cap(gig_factory):
    gigs = sized_gigs(gig_factory, [60, 60, 60])
    packed = pack(gigs, heights_of(gigs), 100)
    assert limit(packed, 3) is packed
    limited = limit(pack(gigs, heights_of(gigs), 100), 2)
    assert limit(limited, 2) == limited
    assert limit(limited, 2).truncated


def test_limit_drops_trailing_gigs(gig_factory):
    gigs = sized_gigs(gig_factory, [60] * 12)
    limited = limit(pack(gigs, heights_of(gigs), 100), 9)
    assert [g for s in limited.slides for g in s] == gigs[:9]
    assert limited.dropped_slides == 3


def test_limit_rejects_bad_cap():
    with pytest.raises(InvalidInputError):
        limit(SlideSet(), 0)


def test_plan_carousel_defaults_to_nine_slides(gig_factory):
    gigs = sized_gigs(gig_factory, [100] * 15)
    plan = plan_carousel(gigs, heights_of(gigs), 100)
    assert len(plan.slides) == 9
    assert plan.truncated
    assert plan.dropped_gigs == 6

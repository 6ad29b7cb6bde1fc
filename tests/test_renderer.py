from PIL import Image

from gigcarousel.packer import SlideSet
from gigcarousel.renderer import (
    format_long_date,
    render_carousel,
    render_content_slide,
    render_title_slide,
    slugify,
)
from gigcarousel.style import StyleConfig


def test_format_long_date():
    assert format_long_date("2025-01-31") == "Friday, January 31, 2025"


def test_slugify():
    assert slugify("Fitzroy, Collingwood and Richmond") == "fitzroy-collingwood-and-richmond"


def test_slides_have_instagram_dimensions(gig_factory):
    style = StyleConfig()
    title = render_title_slide("St Kilda", "2025-01-31", style)
    content = render_content_slide([gig_factory(), gig_factory("Second")], 0, 2, "St Kilda", style)
    assert title.size == (540, 960)
    assert content.size == (540, 960)


def test_render_carousel_writes_title_and_content_slides(tmp_path, gig_factory):
    slide_set = SlideSet(slides=((gig_factory("One"),), (gig_factory("Two"), gig_factory("Three"))))
    paths = render_carousel(slide_set, "St Kilda", "2025-01-31", tmp_path)
    assert [p.name for p in paths] == [
        "gigs_20250131_st-kilda_carousel0.png",
        "gigs_20250131_st-kilda_carousel1.png",
        "gigs_20250131_st-kilda_carousel2.png",
    ]
    for path in paths:
        with Image.open(path) as img:
            assert img.size == (540, 960)

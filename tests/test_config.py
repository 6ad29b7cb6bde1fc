import pytest

from gigcarousel.config import CarouselConfig
from gigcarousel.estimator import AnalyticEstimator, MeasuredEstimator
from gigcarousel.style import CONTAINER_HEIGHT


def test_defaults_from_empty_environment():
    config = CarouselConfig.from_env({})
    assert config.container_height_px == CONTAINER_HEIGHT == 872
    assert config.max_content_slides == 9
    assert config.chars_per_line == 35
    assert isinstance(config.estimator(), AnalyticEstimator)


def test_environment_overrides():
    config = CarouselConfig.from_env(
        {
            "GIGCAROUSEL_CONTAINER_HEIGHT": "476",
            "GIGCAROUSEL_CHARS_PER_LINE": "30",
            "GIGCAROUSEL_ESTIMATOR": "measured",
            "INSTAGRAM_BUSINESS_ACCOUNT_ID": "42",
        }
    )
    assert config.container_height_px == 476
    assert config.style().chars_per_line == 30
    assert isinstance(config.estimator(), MeasuredEstimator)
    assert config.instagram_account_id == "42"


def test_malformed_integer_names_variable():
    with pytest.raises(ValueError, match="GIGCAROUSEL_MAX_SLIDES"):
        CarouselConfig.from_env({"GIGCAROUSEL_MAX_SLIDES": "nine"})


def test_override_ignores_none():
    config = CarouselConfig().override(max_content_slides=None, chars_per_line=20)
    assert config.max_content_slides == 9
    assert config.chars_per_line == 20

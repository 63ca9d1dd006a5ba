"""Pytest configuration and fixtures."""

import pytest

from adsift.config import FilterConfiguration
from adsift.models import FragmentDescriptor


@pytest.fixture
def config() -> FilterConfiguration:
    """Default filter configuration."""
    return FilterConfiguration()


@pytest.fixture
def strict_config() -> FilterConfiguration:
    """Default filter configuration in strict mode."""
    return FilterConfiguration(strict_mode=True)


@pytest.fixture
def ad_fragment() -> FragmentDescriptor:
    """Short fragment with an ad keyword in its URL."""
    return FragmentDescriptor(url="https://x/video/ad_segment_001.ts", duration=8)


@pytest.fixture
def content_fragment() -> FragmentDescriptor:
    """Long regular content fragment."""
    return FragmentDescriptor(url="https://x/video/episode_001.ts", duration=1800)

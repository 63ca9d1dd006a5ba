"""Tests for data models."""

import pytest
from pydantic import ValidationError

from adsift.models import (
    DetectionResult,
    DurationRange,
    FilterStats,
    CacheStats,
    FragmentDescriptor,
    PlaylistRewriteResult,
    Rule,
)


class TestDurationRange:
    """Tests for DurationRange."""

    def test_valid_range(self) -> None:
        """Test creating a valid range."""
        window = DurationRange(min=5, max=30)
        assert window.contains(5)
        assert window.contains(30)
        assert not window.contains(30.5)

    def test_max_below_min(self) -> None:
        """Test that max must not be below min."""
        with pytest.raises(ValidationError, match="greater than or equal to min"):
            DurationRange(min=10, max=5)

    def test_negative_bounds(self) -> None:
        """Test that negative bounds are rejected."""
        with pytest.raises(ValidationError):
            DurationRange(min=-1, max=5)


class TestRule:
    """Tests for Rule."""

    def test_defaults(self) -> None:
        """Test rule defaults."""
        rule = Rule(name="custom")
        assert rule.enabled is True
        assert rule.url_patterns == []
        assert rule.title_patterns == []
        assert rule.duration_range is None
        assert rule.priority == 0
        assert rule.match_type == "contains"

    def test_invalid_match_type(self) -> None:
        """Test that unknown match types are rejected."""
        with pytest.raises(ValidationError):
            Rule(name="custom", match_type="glob")

    def test_empty_name(self) -> None:
        """Test that rule names cannot be empty."""
        with pytest.raises(ValidationError):
            Rule(name="")

    def test_enabled_is_mutable(self) -> None:
        """Test toggling a rule at runtime."""
        rule = Rule(name="custom")
        rule.enabled = False
        assert rule.enabled is False


class TestFragmentDescriptor:
    """Tests for FragmentDescriptor."""

    def test_minimal(self) -> None:
        """Test fragment with only a URL."""
        fragment = FragmentDescriptor(url="https://x/seg.ts")
        assert fragment.duration is None
        assert fragment.title is None
        assert fragment.index is None

    def test_numeric_string_duration(self) -> None:
        """Test that numeric strings are accepted as durations."""
        assert FragmentDescriptor(url="u", duration="5.64").duration == 5.64

    @pytest.mark.parametrize("value", ["abc", "", -3, float("nan"), True, [1]])
    def test_malformed_duration_is_unknown(self, value) -> None:
        """Test that malformed durations become None instead of failing."""
        assert FragmentDescriptor(url="u", duration=value).duration is None


class TestDetectionResult:
    """Tests for DetectionResult."""

    def test_confidence_bounds(self) -> None:
        """Test that confidence must stay within [0, 1]."""
        with pytest.raises(ValidationError):
            DetectionResult(is_ad=True, confidence=1.2, reason="x")
        with pytest.raises(ValidationError):
            DetectionResult(is_ad=True, confidence=-0.1, reason="x")

    def test_invalid_ad_type(self) -> None:
        """Test that ad_type is restricted."""
        with pytest.raises(ValidationError):
            DetectionResult(is_ad=True, confidence=0.5, reason="x", ad_type="banner")


class TestPlaylistRewriteResult:
    """Tests for PlaylistRewriteResult."""

    def test_retained_segments(self) -> None:
        """Test retained segment count."""
        result = PlaylistRewriteResult(content="", removed_segments=2, original_segments=5)
        assert result.retained_segments == 3

    def test_to_file(self, tmp_path) -> None:
        """Test writing the manifest text."""
        result = PlaylistRewriteResult(
            content="#EXTM3U\nseg.ts", removed_segments=0, original_segments=1
        )
        path = tmp_path / "out.m3u8"
        result.to_file(path)
        assert path.read_text(encoding="utf-8") == "#EXTM3U\nseg.ts"


class TestFilterStats:
    """Tests for FilterStats serialization."""

    def test_json_roundtrip(self) -> None:
        """Test serializing and deserializing stats."""
        stats = FilterStats(
            enabled=True,
            strict_mode=False,
            fallback_rules=3,
            rules=4,
            enabled_rules=2,
            cache=CacheStats(size=1, total_detections=1, ad_detections=0),
        )
        assert FilterStats.from_json(stats.to_json()) == stats

"""Tests for the classifier verdict cache."""

from __future__ import annotations

import pytest

from adsift.cache import STRICT_SCOPE, ClassifierCache, cache_scope


@pytest.fixture
def cache() -> ClassifierCache:
    """Empty classifier cache."""
    return ClassifierCache()


class TestClassifierCache:
    """Tests for ClassifierCache."""

    def test_set_and_get(self, cache: ClassifierCache) -> None:
        """Test storing and retrieving a verdict."""
        cache.set("https://x/a.ts", 8.0, True)
        assert cache.get("https://x/a.ts", 8.0) is True

    def test_get_missing_key(self, cache: ClassifierCache) -> None:
        """Test that a miss returns None."""
        assert cache.get("https://x/a.ts", 8.0) is None

    def test_false_verdict_is_a_hit(self, cache: ClassifierCache) -> None:
        """Test that a cached False is distinguishable from a miss."""
        cache.set("https://x/a.ts", 8.0, False)
        assert cache.get("https://x/a.ts", 8.0) is False

    def test_key_includes_duration(self, cache: ClassifierCache) -> None:
        """Test that the same URL with another duration is a separate entry."""
        cache.set("https://x/a.ts", 8.0, True)
        assert cache.get("https://x/a.ts", 9.0) is None
        assert cache.make_key("https://x/a.ts", 8.0) in cache

    def test_scopes_are_separate(self, cache: ClassifierCache) -> None:
        """Test that a strict-scope verdict does not answer unscoped lookups."""
        cache.set("https://x/a.ts", 8.0, False, STRICT_SCOPE)
        assert cache.get("https://x/a.ts", 8.0) is None
        assert cache.get("https://x/a.ts", 8.0, STRICT_SCOPE) is False
        assert cache_scope(True) == STRICT_SCOPE
        assert cache_scope(False) == ""

    def test_overwrite(self, cache: ClassifierCache) -> None:
        """Test that set overwrites an existing entry."""
        cache.set("u", 5.0, True)
        cache.set("u", 5.0, False)
        assert cache.get("u", 5.0) is False
        assert len(cache) == 1

    def test_delete(self, cache: ClassifierCache) -> None:
        """Test deleting an entry."""
        cache.set("u", 5.0, True)
        cache.delete("u", 5.0)
        cache.delete("missing", None)
        assert len(cache) == 0

    def test_clear(self, cache: ClassifierCache) -> None:
        """Test clearing all entries."""
        for i in range(5):
            cache.set(f"u{i}", float(i), i % 2 == 0)
        cache.clear()
        assert len(cache) == 0
        assert cache.stats().size == 0

    def test_stats(self, cache: ClassifierCache) -> None:
        """Test cache statistics."""
        cache.set("a", 5.0, True)
        cache.set("b", 5.0, True)
        cache.set("c", 90.0, False)
        stats = cache.stats()
        assert stats.size == 3
        assert stats.total_detections == 3
        assert stats.ad_detections == 2

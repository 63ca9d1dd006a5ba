"""Verdict cache for the segment classifier."""

from __future__ import annotations

import logging
from typing import Optional

from adsift.models import CacheStats

logger = logging.getLogger(__name__)

CacheKey = tuple[str, Optional[float], str]

STRICT_SCOPE = "strict"


class ClassifierCache:
    """In-memory verdict cache keyed by ``(url, duration)``.

    Each entry also carries a scope so verdicts reached under strict mode
    never answer lookups made outside it (and vice versa); within one scope
    the key is exactly ``(url, duration)``.

    Grows without bound until ``clear()`` is called. Not thread-safe; use one
    cache per classifier or synchronize externally.
    """

    def __init__(self) -> None:
        """Initialize an empty cache."""
        self._entries: dict[CacheKey, bool] = {}
        logger.debug("Initialized ClassifierCache")

    @staticmethod
    def make_key(url: str, duration: Optional[float], scope: str = "") -> CacheKey:
        """Build the composite cache key for a fragment."""
        return (url, duration, scope)

    def get(self, url: str, duration: Optional[float], scope: str = "") -> Optional[bool]:
        """Retrieve a cached verdict.

        Returns:
            Cached ad verdict, or None on a miss
        """
        verdict = self._entries.get(self.make_key(url, duration, scope))
        if verdict is None:
            logger.debug(f"Cache miss for {url} ({duration}s)")
        else:
            logger.debug(f"Cache hit for {url} ({duration}s): is_ad={verdict}")
        return verdict

    def set(
        self, url: str, duration: Optional[float], is_ad: bool, scope: str = ""
    ) -> None:
        """Insert or overwrite a cached verdict."""
        self._entries[self.make_key(url, duration, scope)] = is_ad

    def delete(self, url: str, duration: Optional[float], scope: str = "") -> None:
        """Drop a single entry if present."""
        self._entries.pop(self.make_key(url, duration, scope), None)

    def clear(self) -> None:
        """Clear all cache entries."""
        count = len(self._entries)
        self._entries.clear()
        logger.info(f"Cleared {count} classifier cache entries")

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def stats(self) -> CacheStats:
        """Summarize cache contents.

        Every entry is one distinct detection, so ``size`` and
        ``total_detections`` agree.
        """
        total = len(self._entries)
        return CacheStats(
            size=total,
            total_detections=total,
            ad_detections=sum(1 for verdict in self._entries.values() if verdict),
        )


def cache_scope(strict_mode: bool) -> str:
    """Cache scope for a filter mode."""
    return STRICT_SCOPE if strict_mode else ""

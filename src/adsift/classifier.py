"""Multi-signal heuristic classifier for stream segments."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from adsift.cache import ClassifierCache, cache_scope
from adsift.config import FilterConfiguration, default_configuration
from adsift.detection.patterns import TieredKeywordMatcher, title_matcher, url_matcher
from adsift.models import AdType, CacheStats, DetectionResult, FragmentDescriptor

logger = logging.getLogger(__name__)

CACHE_HIT_CONFIDENCE = 0.9
MISSING_DURATION_CONFIDENCE = 0.1
CONTENT_CONFIDENCE = 0.95


@dataclass(frozen=True)
class DurationBucket:
    """Inclusive duration window with the verdict it implies."""

    min: float
    max: float
    is_ad: bool
    confidence: float
    ad_type: Optional[AdType]
    label: str


# Checked in order; the first bucket containing the duration wins. Short
# buckets stay below the filter's medium threshold; duration alone never
# decides a filter verdict.
DURATION_BUCKETS: tuple[DurationBucket, ...] = (
    DurationBucket(3.0, 8.0, True, 0.35, "short", "very short fragment"),
    DurationBucket(8.0, 20.0, True, 0.3, "short", "short fragment"),
    DurationBucket(20.0, 45.0, True, 0.3, "mid-roll", "mid-length fragment"),
)

PRE_ROLL_MAX_INDEX = 3
PRE_ROLL_MIN_DURATION = 3.0
PRE_ROLL_MAX_DURATION = 15.0
PRE_ROLL_CONFIDENCE = 0.25


class SegmentClassifier:
    """Scores fragments using duration, URL, title and sequence signals.

    The four analyses run independently; the final confidence is the maximum
    of their confidences and the fragment is flagged as an ad if any analysis
    says so. Verdicts are memoized per ``(url, duration)`` within the strict or
    non-strict scope of the configuration; a cache hit skips
    every analysis, including title and sequence.
    """

    def __init__(
        self,
        cache: Optional[ClassifierCache] = None,
        url_keywords: Optional[TieredKeywordMatcher] = None,
        title_keywords: Optional[TieredKeywordMatcher] = None,
    ) -> None:
        """Initialize the classifier.

        Args:
            cache: Verdict cache (a private one is created if None)
            url_keywords: Matcher for URL text
            title_keywords: Matcher for title text
        """
        self.cache = cache if cache is not None else ClassifierCache()
        self.url_keywords = url_keywords or url_matcher()
        self.title_keywords = title_keywords or title_matcher()

    def classify(
        self,
        fragment: FragmentDescriptor,
        config: Optional[FilterConfiguration] = None,
    ) -> DetectionResult:
        """Classify one fragment.

        Args:
            fragment: Fragment to classify
            config: Filter configuration (defaults used if None)

        Returns:
            Combined DetectionResult
        """
        config = config or default_configuration()

        scope = cache_scope(config.strict_mode)
        cached = self.cache.get(fragment.url, fragment.duration, scope)
        if cached is not None:
            return DetectionResult(
                is_ad=cached,
                confidence=CACHE_HIT_CONFIDENCE,
                reason="cache hit",
                ad_type="unknown",
            )

        if not fragment.duration:
            logger.debug(f"No duration for {fragment.url}, skipping analysis")
            return DetectionResult(
                is_ad=False,
                confidence=MISSING_DURATION_CONFIDENCE,
                reason="missing duration",
            )

        duration = fragment.duration
        results = [
            self._safe("duration", self.analyze_duration, duration, config),
            self._safe("url", self.url_keywords.analyze, fragment.url),
        ]
        if fragment.title:
            results.append(self._safe("title", self.title_keywords.analyze, fragment.title))
        if fragment.index is not None:
            results.append(
                self._safe("sequence", self.analyze_sequence, fragment.index, duration, config)
            )

        result = combine(results)
        self.cache.set(fragment.url, fragment.duration, result.is_ad, scope)

        logger.debug(
            f"Classified {fragment.url} ({duration}s): is_ad={result.is_ad} "
            f"confidence={result.confidence:.2f} ({result.reason})"
        )
        return result

    def classify_batch(
        self,
        fragments: Iterable[FragmentDescriptor],
        config: Optional[FilterConfiguration] = None,
    ) -> list[DetectionResult]:
        """Classify fragments in order."""
        config = config or default_configuration()
        return [self.classify(fragment, config) for fragment in fragments]

    def analyze_duration(
        self, duration: float, config: FilterConfiguration
    ) -> DetectionResult:
        """Bucket a fragment by its duration."""
        if duration > config.min_content_duration:
            return DetectionResult(
                is_ad=False,
                confidence=CONTENT_CONFIDENCE,
                reason=f"regular content fragment ({duration}s)",
            )

        for bucket in DURATION_BUCKETS:
            if not bucket.min <= duration <= bucket.max:
                continue
            if bucket.ad_type == "mid-roll" and not config.skip_mid_roll:
                break
            return DetectionResult(
                is_ad=bucket.is_ad,
                confidence=bucket.confidence,
                reason=f"{bucket.label} ({duration}s)",
                ad_type=bucket.ad_type,
            )

        if duration < 1.0:
            return DetectionResult(
                is_ad=False,
                confidence=0.05,
                reason=f"sub-second fragment ({duration}s)",
            )
        return DetectionResult(
            is_ad=False,
            confidence=0.2,
            reason=f"ambiguous duration ({duration}s)",
        )

    def analyze_sequence(
        self, index: int, duration: float, config: FilterConfiguration
    ) -> DetectionResult:
        """Weak positional signal for short fragments at the start of a stream."""
        if (
            config.skip_pre_roll
            and index < PRE_ROLL_MAX_INDEX
            and PRE_ROLL_MIN_DURATION <= duration <= PRE_ROLL_MAX_DURATION
        ):
            return DetectionResult(
                is_ad=True,
                confidence=PRE_ROLL_CONFIDENCE,
                reason=f"possible pre-roll (index {index}, {duration}s)",
                ad_type="short",
            )

        return DetectionResult(
            is_ad=False,
            confidence=0.1,
            reason="no sequence pattern",
        )

    def clear_cache(self) -> None:
        """Forget every cached verdict."""
        self.cache.clear()

    def stats(self) -> CacheStats:
        """Return cache statistics."""
        return self.cache.stats()

    @staticmethod
    def _safe(name: str, analysis: Callable[..., DetectionResult], *args) -> DetectionResult:
        try:
            return analysis(*args)
        except Exception as e:
            logger.warning(f"{name} analysis failed, ignoring signal: {e}")
            return DetectionResult(
                is_ad=False,
                confidence=0.0,
                reason=f"{name} analysis failed",
            )


def combine(results: list[DetectionResult]) -> DetectionResult:
    """Fold sub-results into one verdict.

    Confidence is the maximum, ``is_ad`` is the OR, and reason/ad type come
    from the first sub-result holding the maximum confidence.
    """
    strongest = results[0]
    for result in results[1:]:
        if result.confidence > strongest.confidence:
            strongest = result

    return DetectionResult(
        is_ad=any(result.is_ad for result in results),
        confidence=min(1.0, strongest.confidence),
        reason=strongest.reason,
        ad_type=strongest.ad_type,
    )

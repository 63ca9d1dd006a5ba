"""Composite ad filter combining classifier, user rules and mode flags."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Optional

from adsift.cache import cache_scope
from adsift.classifier import SegmentClassifier
from adsift.config import FilterConfiguration, default_configuration
from adsift.models import (
    DetectionResult,
    FilterDecision,
    FilterStats,
    FragmentDescriptor,
    Rule,
)
from adsift.registry import FALLBACK_RULES, PatternRegistry, first_match

logger = logging.getLogger(__name__)

HIGH_CONFIDENCE = 0.7
MEDIUM_CONFIDENCE = 0.4


class AdFilter:
    """Final per-fragment ad verdicts for a playback pipeline.

    Decision order, first decisive step wins:

    1. filtering disabled: not an ad
    2. classifier confidence >= HIGH_CONFIDENCE: classifier verdict
    3. first enabled user rule that matches: ad
    4. non-strict mode, built-in fallback rule matches: ad
    5. non-strict mode, classifier says ad with confidence >= MEDIUM_CONFIDENCE: ad
    6. not an ad

    The final verdict is written back into the classifier cache so that a
    repeated lookup agrees with what the filter decided. Entries are scoped by
    strict mode, so filters in different modes can share one classifier.
    """

    def __init__(
        self,
        config: Optional[FilterConfiguration] = None,
        classifier: Optional[SegmentClassifier] = None,
        registry: Optional[PatternRegistry] = None,
    ) -> None:
        """Initialize the filter.

        Args:
            config: Filter configuration (defaults used if None)
            classifier: Segment classifier (a private one is created if None)
            registry: Rule registry (built from config.rules if None)
        """
        self.config = config or default_configuration()
        self.classifier = classifier or SegmentClassifier()
        self.registry = registry or PatternRegistry.from_configuration(self.config)
        logger.debug(
            f"Initialized AdFilter with enabled={self.config.enabled} "
            f"strict_mode={self.config.strict_mode} rules={len(self.registry)}"
        )

    def explain(self, fragment: FragmentDescriptor) -> FilterDecision:
        """Decide whether a fragment is an ad and report which step decided.

        Args:
            fragment: Fragment to evaluate

        Returns:
            FilterDecision with the verdict, deciding step and detection result
        """
        if not self.config.enabled:
            return FilterDecision(is_ad=False, step="disabled")

        detection = self.classifier.classify(fragment, self.config)
        decision = self._decide(fragment, detection)
        self.classifier.cache.set(
            fragment.url, fragment.duration, decision.is_ad, cache_scope(self.config.strict_mode)
        )

        if decision.is_ad:
            logger.debug(
                f"Ad fragment {fragment.url} decided by {decision.step}"
                + (f" ({decision.rule_name})" if decision.rule_name else "")
            )
        return decision

    def _decide(
        self, fragment: FragmentDescriptor, detection: DetectionResult
    ) -> FilterDecision:
        if detection.confidence >= HIGH_CONFIDENCE:
            return FilterDecision(
                is_ad=detection.is_ad, step="high_confidence", detection=detection
            )

        rule = self.registry.match(fragment)
        if rule is not None:
            return FilterDecision(
                is_ad=True, step="rule", rule_name=rule.name, detection=detection
            )

        if not self.config.strict_mode:
            fallback = self.match_fallback(fragment)
            if fallback is not None:
                return FilterDecision(
                    is_ad=True,
                    step="fallback_rule",
                    rule_name=fallback.name,
                    detection=detection,
                )
            if detection.is_ad and detection.confidence >= MEDIUM_CONFIDENCE:
                return FilterDecision(
                    is_ad=True, step="medium_confidence", detection=detection
                )

        return FilterDecision(is_ad=False, step="default", detection=detection)

    def match_fallback(self, fragment: FragmentDescriptor) -> Optional[Rule]:
        """Match the built-in fallback rules, ignoring over-long fragments."""
        if fragment.duration is not None and fragment.duration > self.config.max_ad_duration:
            return None
        return first_match(FALLBACK_RULES, fragment)

    def is_ad(self, fragment: FragmentDescriptor) -> bool:
        """Return the final ad verdict for a fragment."""
        return self.explain(fragment).is_ad

    def classify(self, fragment: FragmentDescriptor) -> DetectionResult:
        """Run only the segment classifier with this filter's configuration."""
        return self.classifier.classify(fragment, self.config)

    def filter_fragments(
        self, fragments: Iterable[FragmentDescriptor]
    ) -> list[FragmentDescriptor]:
        """Drop ad fragments, keeping the original order.

        Args:
            fragments: Fragments to filter (not modified)

        Returns:
            Fragments whose verdict is "not an ad"
        """
        fragments = list(fragments)
        kept = [fragment for fragment in fragments if not self.is_ad(fragment)]
        logger.info(
            f"Filtered {len(fragments)} fragments: kept {len(kept)}, "
            f"removed {len(fragments) - len(kept)}"
        )
        return kept

    def create_fragment_filter(self) -> Callable[[list[dict[str, Any]]], list[dict[str, Any]]]:
        """Build a filter for raw HLS fragment dicts.

        Fragments carry their URL under ``url`` or ``uri`` and optionally
        ``duration``, ``title`` and ``index``. Entries without a URL pass
        through untouched.
        """

        def fragment_filter(fragments: list[dict[str, Any]]) -> list[dict[str, Any]]:
            kept = []
            for raw in fragments:
                url = raw.get("url") or raw.get("uri")
                if not url:
                    kept.append(raw)
                    continue
                fragment = FragmentDescriptor(
                    url=url,
                    duration=raw.get("duration"),
                    title=raw.get("title") if isinstance(raw.get("title"), str) else None,
                    index=raw.get("index") if isinstance(raw.get("index"), int) else None,
                )
                if self.is_ad(fragment):
                    logger.info(f"Skipping ad fragment: {url}")
                else:
                    kept.append(raw)
            return kept

        return fragment_filter

    def update_config(self, **changes) -> FilterConfiguration:
        """Replace configuration fields and drop cached verdicts.

        Returns:
            The new configuration, for the caller to persist
        """
        data = self.config.model_dump()
        data.update(changes)
        self.config = FilterConfiguration.model_validate(data)
        self.registry = PatternRegistry.from_configuration(self.config)
        self.classifier.clear_cache()
        logger.info(f"Updated filter configuration: {sorted(changes)}")
        return self.config

    def add_rule(self, rule: Rule) -> None:
        """Add a user rule."""
        self.registry.add(rule)
        self.classifier.clear_cache()

    def remove_rule(self, name: str) -> bool:
        """Remove a user rule; unknown names are ignored."""
        removed = self.registry.remove(name)
        if removed:
            self.classifier.clear_cache()
        return removed

    def toggle_rule(self, name: str, enabled: bool) -> bool:
        """Enable or disable a user rule; unknown names are ignored."""
        toggled = self.registry.set_enabled(name, enabled)
        if toggled:
            self.classifier.clear_cache()
        return toggled

    def stats(self) -> FilterStats:
        """Summarize configuration, rules and cache."""
        rule_stats = self.registry.stats()
        return FilterStats(
            enabled=self.config.enabled,
            strict_mode=self.config.strict_mode,
            fallback_rules=len(FALLBACK_RULES),
            rules=rule_stats["rules"],
            enabled_rules=rule_stats["enabled_rules"],
            cache=self.classifier.stats(),
        )


def classify(
    fragment: FragmentDescriptor, config: Optional[FilterConfiguration] = None
) -> DetectionResult:
    """Classify a fragment with a fresh classifier."""
    return SegmentClassifier().classify(fragment, config)


def is_ad(fragment: FragmentDescriptor, config: Optional[FilterConfiguration] = None) -> bool:
    """Return the final ad verdict for a fragment with a fresh filter."""
    return AdFilter(config).is_ad(fragment)


def filter_fragments(
    fragments: Iterable[FragmentDescriptor],
    config: Optional[FilterConfiguration] = None,
) -> list[FragmentDescriptor]:
    """Drop ad fragments with a fresh filter."""
    return AdFilter(config).filter_fragments(fragments)

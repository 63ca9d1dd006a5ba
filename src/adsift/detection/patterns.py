"""Tiered keyword tables for spotting ads in segment URLs and titles."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from adsift.models import DetectionResult

logger = logging.getLogger(__name__)

# Ad-serving domains and keywords that almost never appear in content URLs
URL_STRONG_KEYWORDS = [
    "doubleclick",
    "googlesyndication",
    "googleadservices",
    "adserver",
    "adservice",
    "admanager",
    "adtag",
    "vpaid",
    "preroll",
    "midroll",
    "postroll",
    "advertisement",
]

URL_WEAK_KEYWORDS = [
    "ad",
    "ads",
    "advert",
    "adverts",
    "commercial",
    "commercials",
    "promo",
    "promotion",
    "sponsor",
    "sponsored",
    "marketing",
    "publicity",
    "endorsement",
    "vast",
]

URL_PATTERNS = [
    re.compile(r"/ads?/", re.IGNORECASE),
    re.compile(r"/commercials?/", re.IGNORECASE),
    re.compile(r"/promo/", re.IGNORECASE),
    re.compile(r"/sponsor/", re.IGNORECASE),
    re.compile(r"_ad_", re.IGNORECASE),
    re.compile(r"-ad-", re.IGNORECASE),
    re.compile(r"\.ad\.", re.IGNORECASE),
    re.compile(r"ad_slot", re.IGNORECASE),
    re.compile(r"ad_unit", re.IGNORECASE),
]

TITLE_STRONG_KEYWORDS = [
    "advertisement",
    "commercial break",
    "sponsored by",
    "广告",
    "赞助商",
    "插播广告",
]

TITLE_WEAK_KEYWORDS = [
    "ad",
    "ads",
    "commercial",
    "promo",
    "promotion",
    "sponsor",
    "sponsored",
    "marketing",
    "trailer",
    "preview",
    "popup",
    "banner",
    "推广",
    "赞助",
    "品牌",
    "营销",
    "商业",
    "宣传片",
    "预告",
    "插播",
]

URL_STRONG_CONFIDENCE = 0.9
URL_PATTERN_CONFIDENCE = 0.7
TITLE_STRONG_CONFIDENCE = 0.9

_TOKEN_SPLIT = re.compile(r"[^0-9a-z]+")


def tokenize(text: str) -> set[str]:
    """Split lower-cased text into alphanumeric tokens."""
    return {token for token in _TOKEN_SPLIT.split(text.lower()) if token}


@dataclass
class TieredKeywordMatcher:
    """Two-tier keyword matcher.

    The first strong keyword found short-circuits with ``strong_confidence``.
    Otherwise every weak keyword hit adds ``weak_step`` on top of
    ``weak_base``, capped at ``weak_cap``. Extra regex patterns can then raise
    (never lower) the confidence to ``pattern_confidence``.

    Weak keywords that are plain ASCII words are matched as whole tokens so
    that ``ad`` does not fire on ``download``; anything else (e.g. CJK text)
    is matched as a substring.
    """

    label: str
    strong_keywords: list[str] = field(default_factory=list)
    weak_keywords: list[str] = field(default_factory=list)
    patterns: list[re.Pattern] = field(default_factory=list)
    strong_confidence: float = 0.9
    weak_base: float = 0.3
    weak_step: float = 0.2
    weak_cap: float = 0.8
    pattern_confidence: float = 0.7

    def __post_init__(self) -> None:
        """Validate keyword lists."""
        if not all(isinstance(k, str) for k in self.strong_keywords):
            raise ValueError("All strong_keywords must be strings")
        if not all(isinstance(k, str) for k in self.weak_keywords):
            raise ValueError("All weak_keywords must be strings")

        logger.debug(
            f"Initialized {self.label} matcher with {len(self.strong_keywords)} strong "
            f"and {len(self.weak_keywords)} weak keywords"
        )

    def analyze(self, text: str) -> DetectionResult:
        """Score a piece of text.

        Args:
            text: URL or title to inspect

        Returns:
            DetectionResult, a low-confidence non-ad verdict when nothing matched
        """
        text_lower = text.lower()

        for keyword in self.strong_keywords:
            if keyword in text_lower:
                return DetectionResult(
                    is_ad=True,
                    confidence=self.strong_confidence,
                    reason=f"{self.label} contains ad marker: {keyword}",
                    ad_type="embedded",
                )

        tokens = tokenize(text_lower)
        matched = [k for k in self.weak_keywords if self._weak_hit(k, text_lower, tokens)]

        confidence = 0.0
        reasons = []
        if matched:
            confidence = min(self.weak_cap, self.weak_base + len(matched) * self.weak_step)
            reasons.append(f"{self.label} contains ad keywords: {', '.join(matched)}")

        for pattern in self.patterns:
            if pattern.search(text):
                confidence = max(confidence, self.pattern_confidence)
                reasons.append(f"{self.label} matches ad pattern: {pattern.pattern}")
                break

        if not reasons:
            return DetectionResult(
                is_ad=False,
                confidence=0.1,
                reason=f"{self.label} has no ad markers",
            )

        return DetectionResult(
            is_ad=True,
            confidence=confidence,
            reason="; ".join(reasons),
            ad_type="unknown",
        )

    @staticmethod
    def _weak_hit(keyword: str, text_lower: str, tokens: set[str]) -> bool:
        if keyword.isascii() and keyword.isalnum():
            return keyword in tokens
        return keyword in text_lower


def url_matcher() -> TieredKeywordMatcher:
    """Build the matcher used for segment URLs."""
    return TieredKeywordMatcher(
        label="URL",
        strong_keywords=list(URL_STRONG_KEYWORDS),
        weak_keywords=list(URL_WEAK_KEYWORDS),
        patterns=list(URL_PATTERNS),
        strong_confidence=URL_STRONG_CONFIDENCE,
        weak_base=0.3,
        weak_step=0.2,
        weak_cap=0.8,
        pattern_confidence=URL_PATTERN_CONFIDENCE,
    )


def title_matcher() -> TieredKeywordMatcher:
    """Build the matcher used for segment titles."""
    return TieredKeywordMatcher(
        label="Title",
        strong_keywords=list(TITLE_STRONG_KEYWORDS),
        weak_keywords=list(TITLE_WEAK_KEYWORDS),
        strong_confidence=TITLE_STRONG_CONFIDENCE,
        weak_base=0.4,
        weak_step=0.2,
        weak_cap=0.85,
    )

"""Strip ad segments from M3U8 manifests before playback starts."""

from __future__ import annotations

import logging
import re
from typing import Optional

from adsift.config import FilterConfiguration, default_configuration
from adsift.detection.patterns import TieredKeywordMatcher, url_matcher
from adsift.filter import HIGH_CONFIDENCE
from adsift.models import FragmentDescriptor, PlaylistRewriteResult, RewriteStats
from adsift.registry import FALLBACK_RULES, first_match

logger = logging.getLogger(__name__)

DISCONTINUITY_TAG = "#EXT-X-DISCONTINUITY"
EXTINF_TAG = "#EXTINF:"
# Tags that apply only to the next media segment and go with it
SEGMENT_TAGS = ("#EXT-X-BYTERANGE", "#EXT-X-PROGRAM-DATE-TIME", "#EXT-X-GAP")

# Known ad segment durations for specific playback sources
SOURCE_AD_DURATIONS: dict[str, list[float]] = {
    "ruyi": [5.64, 2.96, 3.48, 4.0, 0.96, 10.0, 1.266667],
    "ffzy": [5.0, 10.0, 15.0],
    "bfzy": [5.0, 10.0, 15.0],
}

# Common ad durations, used only outside strict mode
COMMON_AD_DURATIONS: list[float] = [
    5.0, 5.64, 10.0, 15.0, 20.0, 30.0,
    2.96, 3.48, 4.0, 0.96, 1.266667,
]

# Duration, then optional whitespace-separated attributes, then the title
_EXTINF_RE = re.compile(
    r"^#EXTINF:\s*([-+]?(?:\d+\.?\d*|\.\d+))(?:\s+[^,]*)?\s*(?:,(.*))?$"
)


def parse_extinf(line: str) -> tuple[Optional[float], Optional[str]]:
    """Parse duration and title from an ``#EXTINF`` line.

    Formats: ``#EXTINF:5.640000,`` / ``#EXTINF:5.640000`` /
    ``#EXTINF:10.0,Episode title`` / ``#EXTINF:-1 tvg-id="x",Name``.
    Trailing characters glued to the number (``5.64abc``, ``1e1``) make the
    duration malformed.

    Returns:
        (duration, title); duration is None when missing or malformed
    """
    match = _EXTINF_RE.match(line.strip())
    if not match:
        return None, None
    try:
        duration = float(match.group(1))
    except ValueError:
        return None, None
    title = (match.group(2) or "").strip() or None
    if duration < 0:
        return None, title
    return duration, title


def source_durations(
    source_id: Optional[str], config: FilterConfiguration
) -> list[float]:
    """Ad durations for a source: built-in table plus configured overrides."""
    if not source_id:
        return []
    durations = list(SOURCE_AD_DURATIONS.get(source_id, []))
    durations.extend(config.source_ad_durations.get(source_id, []))
    return durations


def is_ad_duration(
    duration: float,
    source_id: Optional[str],
    config: FilterConfiguration,
) -> bool:
    """Check a declared duration against the known ad durations.

    Source-specific durations always apply; the common table is consulted
    only outside strict mode.
    """
    tolerance = config.duration_tolerance
    for ad_duration in source_durations(source_id, config):
        if abs(duration - ad_duration) <= tolerance:
            return True

    if config.strict_mode:
        return False

    return any(abs(duration - ad_duration) <= tolerance for ad_duration in COMMON_AD_DURATIONS)


def is_ad_url(
    fragment: FragmentDescriptor,
    config: FilterConfiguration,
    keywords: Optional[TieredKeywordMatcher] = None,
) -> bool:
    """Decide whether a manifest URI line points at an ad.

    User rules always apply. Outside strict mode the built-in fallback rules
    and high-confidence URL markers apply as well.
    """
    rule = first_match(config.rules, fragment)
    if rule is not None:
        logger.debug(f"URI {fragment.url} matched rule '{rule.name}'")
        return True

    if config.strict_mode:
        return False

    within_ad_length = fragment.duration is None or fragment.duration <= config.max_ad_duration
    if within_ad_length and first_match(FALLBACK_RULES, fragment) is not None:
        return True

    result = (keywords or url_matcher()).analyze(fragment.url)
    return result.is_ad and result.confidence >= HIGH_CONFIDENCE


def _is_uri(stripped: str) -> bool:
    return bool(stripped) and not stripped.startswith("#")


def _is_segment_line(stripped: str) -> bool:
    """True for ``#EXTINF`` and tags that describe only the next segment."""
    return stripped.startswith(EXTINF_TAG) or stripped.startswith(SEGMENT_TAGS)


def _retract_segment(kept: list[str], start: int) -> None:
    """Drop segment-scoped lines kept since the previous URI."""
    kept[start:] = [line for line in kept[start:] if not _is_segment_line(line.strip())]


def rewrite_playlist(
    manifest: str,
    source_id: Optional[str] = None,
    config: Optional[FilterConfiguration] = None,
) -> PlaylistRewriteResult:
    """Remove ad segments from manifest text in one forward pass.

    Removing a segment drops its URI, its ``#EXTINF`` and the tags that apply
    to that segment alone (``#EXT-X-BYTERANGE``, ``#EXT-X-PROGRAM-DATE-TIME``,
    ``#EXT-X-GAP``). Tags that carry over to later segments or describe the
    whole playlist (``#EXT-X-KEY``, ``#EXT-X-MAP``, ``#EXT-X-ENDLIST``, ...)
    are kept.

    Args:
        manifest: Raw M3U8 text
        source_id: Playback source identifier selecting source-specific durations
        config: Filter configuration (defaults used if None)

    Returns:
        PlaylistRewriteResult with the rewritten text and segment counts
    """
    config = config or default_configuration()
    lines = manifest.split("\n") if manifest else []
    original_segments = sum(1 for line in lines if _is_uri(line.strip()))

    if not config.enabled or not manifest:
        return PlaylistRewriteResult(
            content=manifest,
            removed_segments=0,
            original_segments=original_segments,
        )

    keywords = url_matcher()
    kept: list[str] = []
    removed_segments = 0
    skip_segment = False
    segment_start = 0
    pending_duration: Optional[float] = None
    pending_title: Optional[str] = None
    index = 0

    for line in lines:
        stripped = line.strip()

        if stripped == DISCONTINUITY_TAG:
            logger.debug("Dropping discontinuity marker")
            continue

        if stripped.startswith(EXTINF_TAG):
            if skip_segment:
                logger.debug("Ad #EXTINF without a URI, resuming")
                skip_segment = False
            pending_duration, pending_title = parse_extinf(stripped)
            if pending_duration is not None and is_ad_duration(
                pending_duration, source_id, config
            ):
                logger.debug(f"Ad duration detected: {pending_duration}s")
                _retract_segment(kept, segment_start)
                skip_segment = True
                pending_duration = pending_title = None
                continue
            kept.append(line)
            continue

        if skip_segment:
            if _is_uri(stripped):
                skip_segment = False
                removed_segments += 1
                index += 1
                segment_start = len(kept)
                logger.debug(f"Dropped ad segment: {stripped}")
                continue
            if stripped.startswith(SEGMENT_TAGS):
                continue

        if _is_uri(stripped):
            fragment = FragmentDescriptor(
                url=stripped,
                duration=pending_duration,
                title=pending_title,
                index=index,
            )
            pending_duration = pending_title = None
            index += 1
            if is_ad_url(fragment, config, keywords):
                _retract_segment(kept, segment_start)
                segment_start = len(kept)
                removed_segments += 1
                logger.debug(f"Dropped ad URI: {stripped}")
                continue
            kept.append(line)
            segment_start = len(kept)
            continue

        kept.append(line)

    logger.info(
        f"Rewrote manifest (source={source_id or '-'}): "
        f"removed {removed_segments} of {original_segments} segments"
    )
    return PlaylistRewriteResult(
        content="\n".join(kept),
        removed_segments=removed_segments,
        original_segments=original_segments,
    )


class M3U8AdFilter:
    """Stateful manifest filter for one playback source.

    Keeps running totals across every manifest it rewrites, e.g. for the
    successive playlist reloads of a live stream.
    """

    def __init__(
        self,
        source_id: Optional[str] = None,
        config: Optional[FilterConfiguration] = None,
    ) -> None:
        """Initialize the manifest filter.

        Args:
            source_id: Playback source identifier
            config: Filter configuration (defaults used if None)
        """
        self.source_id = source_id or ""
        self.config = config or default_configuration()
        self._stats = RewriteStats()

    def filter(self, manifest: str) -> str:
        """Rewrite a manifest and return the new text."""
        result = self.rewrite(manifest)
        return result.content

    def rewrite(self, manifest: str) -> PlaylistRewriteResult:
        """Rewrite a manifest and update the running totals."""
        result = rewrite_playlist(manifest, self.source_id or None, self.config)
        self._stats.total_filtered += result.removed_segments
        self._stats.total_processed += result.original_segments
        return result

    def stats(self) -> RewriteStats:
        """Return a copy of the running totals."""
        return self._stats.model_copy()

    def update_config(self, **changes) -> FilterConfiguration:
        """Replace configuration fields."""
        data = self.config.model_dump()
        data.update(changes)
        self.config = FilterConfiguration.model_validate(data)
        return self.config

    def set_source(self, source_id: str) -> None:
        """Switch to another playback source."""
        self.source_id = source_id
        logger.debug(f"M3U8AdFilter source set to '{source_id}'")

"""AdSift - heuristic ad detection for HLS streams."""

__version__ = "0.1.0"

from adsift.cache import ClassifierCache
from adsift.classifier import SegmentClassifier
from adsift.config import FilterConfiguration, Settings, default_configuration
from adsift.filter import AdFilter, classify, filter_fragments, is_ad
from adsift.models import (
    DetectionResult,
    DurationRange,
    FragmentDescriptor,
    PlaylistRewriteResult,
    Rule,
)
from adsift.playlist import M3U8AdFilter, rewrite_playlist
from adsift.registry import PatternRegistry, RuleError

__all__ = [
    "AdFilter",
    "ClassifierCache",
    "DetectionResult",
    "DurationRange",
    "FilterConfiguration",
    "FragmentDescriptor",
    "M3U8AdFilter",
    "PatternRegistry",
    "PlaylistRewriteResult",
    "Rule",
    "RuleError",
    "SegmentClassifier",
    "Settings",
    "__version__",
    "classify",
    "default_configuration",
    "filter_fragments",
    "is_ad",
    "rewrite_playlist",
]

"""Data models for AdSift."""

import json
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

AdType = Literal["short", "mid-roll", "embedded", "unknown"]
MatchType = Literal["contains", "regex"]


class DurationRange(BaseModel):
    """Inclusive duration window in seconds."""

    min: float = Field(..., ge=0.0)
    max: float = Field(..., ge=0.0)

    @field_validator("max")
    @classmethod
    def max_not_below_min(cls, v, info):
        """Validate that max >= min."""
        if "min" in info.data and v < info.data["min"]:
            raise ValueError("max must be greater than or equal to min")
        return v

    def contains(self, duration: float) -> bool:
        """Check whether a duration falls inside the window."""
        return self.min <= duration <= self.max


class Rule(BaseModel):
    """A user-editable ad pattern.

    Attributes:
        name: Unique rule name within a registry
        enabled: Whether the rule takes part in matching
        url_patterns: Patterns tested against the fragment URL
        title_patterns: Patterns tested against the fragment title
        duration_range: Optional duration window the fragment must fall in
        priority: Informational ranking, rules are evaluated in listed order
        match_type: How patterns are compared (substring or regex)
    """

    name: str = Field(..., min_length=1)
    enabled: bool = True
    url_patterns: list[str] = Field(default_factory=list)
    title_patterns: list[str] = Field(default_factory=list)
    duration_range: Optional[DurationRange] = None
    priority: int = 0
    match_type: MatchType = "contains"


class FragmentDescriptor(BaseModel):
    """One playback segment as handed over by the playback pipeline."""

    url: str
    duration: Optional[float] = None
    title: Optional[str] = None
    index: Optional[int] = None

    @field_validator("duration", mode="before")
    @classmethod
    def coerce_duration(cls, v):
        """Treat unparseable or negative durations as unknown."""
        if v is None or isinstance(v, bool):
            return None
        try:
            value = float(v)
        except (TypeError, ValueError):
            return None
        if value != value or value < 0:
            return None
        return value


class DetectionResult(BaseModel):
    """Verdict produced by one analysis or by the whole classifier."""

    is_ad: bool
    confidence: float = Field(..., ge=0.0, le=1.0)
    reason: str
    ad_type: Optional[AdType] = None


class FilterDecision(BaseModel):
    """Explains how the composite filter reached its verdict."""

    is_ad: bool
    step: Literal[
        "disabled",
        "high_confidence",
        "rule",
        "fallback_rule",
        "medium_confidence",
        "default",
    ]
    rule_name: Optional[str] = None
    detection: Optional[DetectionResult] = None


class PlaylistRewriteResult(BaseModel):
    """Result of stripping ad segments from a manifest."""

    content: str
    removed_segments: int = Field(..., ge=0)
    original_segments: int = Field(..., ge=0)

    @property
    def retained_segments(self) -> int:
        """Number of segments left in the rewritten manifest."""
        return self.original_segments - self.removed_segments

    def to_file(self, path: Path) -> None:
        """Write the rewritten manifest text to a file."""
        path.write_text(self.content, encoding="utf-8")


class CacheStats(BaseModel):
    """Snapshot of the classifier cache."""

    size: int = Field(..., ge=0)
    total_detections: int = Field(..., ge=0)
    ad_detections: int = Field(..., ge=0)


class FilterStats(BaseModel):
    """Snapshot of a composite filter's configuration."""

    enabled: bool
    strict_mode: bool
    fallback_rules: int = Field(..., ge=0)
    rules: int = Field(..., ge=0)
    enabled_rules: int = Field(..., ge=0)
    cache: CacheStats

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return self.model_dump_json()

    @classmethod
    def from_json(cls, json_str: str) -> "FilterStats":
        """Deserialize from JSON string."""
        data = json.loads(json_str)
        return cls.model_validate(data)


class RewriteStats(BaseModel):
    """Running totals for a stateful manifest filter."""

    total_filtered: int = Field(default=0, ge=0)
    total_processed: int = Field(default=0, ge=0)

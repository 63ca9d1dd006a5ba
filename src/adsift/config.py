"""Configuration system for AdSift."""

from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode

from adsift.models import Rule
from adsift.registry import default_rules


class FilterConfiguration(BaseModel):
    """Caller-owned ad filter configuration.

    Passed explicitly into every classification, filtering and rewrite call.
    The core never persists it; see ``adsift.store`` for the JSON store.
    """

    enabled: bool = Field(default=True, description="Master switch for ad filtering")
    strict_mode: bool = Field(
        default=False,
        description="Only use user rules and source-specific durations",
    )
    rules: list[Rule] = Field(
        default_factory=default_rules,
        description="User-editable ad rules, evaluated in listed order",
    )
    skip_pre_roll: bool = Field(
        default=True, description="Flag early short fragments as pre-roll ads"
    )
    skip_mid_roll: bool = Field(
        default=True, description="Flag mid-length fragments as mid-roll ads"
    )
    skip_post_roll: bool = Field(
        default=True, description="Reserved for post-roll handling"
    )
    max_ad_duration: float = Field(
        default=300.0,
        gt=0.0,
        description="Fragments longer than this never match built-in fallback rules",
    )
    min_content_duration: float = Field(
        default=60.0,
        gt=0.0,
        description="Fragments longer than this are treated as regular content",
    )
    source_ad_durations: dict[str, list[float]] = Field(
        default_factory=dict,
        description="Per-source ad durations merged over the built-in table",
    )
    duration_tolerance: float = Field(
        default=0.01,
        ge=0.0,
        le=1.0,
        description="Tolerance for exact ad duration matches in manifests",
    )

    @field_validator("rules")
    @classmethod
    def validate_unique_rule_names(cls, v: list[Rule]) -> list[Rule]:
        """Validate that rule names are unique."""
        names = [rule.name for rule in v]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            msg = f"Duplicate rule names: {duplicates}"
            raise ValueError(msg)
        return v


def default_configuration() -> FilterConfiguration:
    """Return a fresh configuration with the default rule table."""
    return FilterConfiguration()


class Settings(BaseSettings):
    """Application settings with support for environment variables."""

    config_path: Path = Field(
        default_factory=lambda: Path.home() / ".config" / "adsift" / "config.json",
        description="JSON file holding the saved filter configuration",
    )
    source_id: str = Field(
        default="",
        description="Default playback source identifier for manifest rewriting",
    )
    log_level: str = Field(default="WARNING", description="Logging level for the CLI")
    disabled_rules: Annotated[list[str], NoDecode] = Field(
        default=[],
        description="Rule names to disable on top of the saved configuration",
    )

    model_config = {
        "env_prefix": "ADSIFT_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a known logging level name."""
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed_levels:
            msg = f"log_level must be one of {allowed_levels}, got '{v}'"
            raise ValueError(msg)
        return v.upper()

    @field_validator("disabled_rules", mode="before")
    @classmethod
    def parse_disabled_rules(cls, v):
        """Parse disabled_rules from comma-separated string if needed."""
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        return v or []

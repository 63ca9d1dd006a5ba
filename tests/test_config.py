"""Tests for the configuration system."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from adsift.config import FilterConfiguration, Settings, default_configuration
from adsift.models import Rule


class TestFilterConfiguration:
    """Tests for FilterConfiguration."""

    def test_defaults(self) -> None:
        """Test default configuration values."""
        config = FilterConfiguration()
        assert config.enabled is True
        assert config.strict_mode is False
        assert config.skip_pre_roll is True
        assert config.skip_mid_roll is True
        assert config.skip_post_roll is True
        assert config.max_ad_duration == 300
        assert config.min_content_duration == 60
        assert config.duration_tolerance == 0.01
        assert config.source_ad_durations == {}

    def test_default_rules(self) -> None:
        """Test that the default rule table is loaded."""
        names = [rule.name for rule in FilterConfiguration().rules]
        assert names == ["Pre-roll Ads", "Mid-roll Ads", "Sponsor Content", "Generic Ads"]

    def test_default_configuration_is_fresh(self) -> None:
        """Test that default instances do not share rule objects."""
        first = default_configuration()
        second = default_configuration()
        first.rules[0].enabled = False
        assert second.rules[0].enabled is True

    def test_duplicate_rule_names(self) -> None:
        """Test that duplicate rule names are rejected."""
        with pytest.raises(ValidationError, match="Duplicate rule names"):
            FilterConfiguration(rules=[Rule(name="a"), Rule(name="a")])

    def test_invalid_max_ad_duration(self) -> None:
        """Test that max_ad_duration must be positive."""
        with pytest.raises(ValidationError):
            FilterConfiguration(max_ad_duration=0)

    def test_invalid_tolerance(self) -> None:
        """Test tolerance bounds."""
        with pytest.raises(ValidationError):
            FilterConfiguration(duration_tolerance=-0.1)


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch) -> None:
        """Test default settings."""
        monkeypatch.delenv("ADSIFT_LOG_LEVEL", raising=False)
        monkeypatch.delenv("ADSIFT_SOURCE_ID", raising=False)
        settings = Settings(_env_file=None)
        assert settings.config_path.name == "config.json"
        assert settings.source_id == ""
        assert settings.log_level == "WARNING"
        assert settings.disabled_rules == []

    def test_env_override(self, monkeypatch) -> None:
        """Test environment variable overrides."""
        monkeypatch.setenv("ADSIFT_SOURCE_ID", "ruyi")
        monkeypatch.setenv("ADSIFT_LOG_LEVEL", "debug")
        settings = Settings(_env_file=None)
        assert settings.source_id == "ruyi"
        assert settings.log_level == "DEBUG"

    def test_invalid_log_level(self) -> None:
        """Test that unknown log levels are rejected."""
        with pytest.raises(ValidationError, match="log_level must be one of"):
            Settings(log_level="loud", _env_file=None)

    def test_disabled_rules_from_string(self) -> None:
        """Test parsing disabled_rules from a comma-separated string."""
        settings = Settings(disabled_rules=" Mid-roll Ads , Generic Ads ", _env_file=None)
        assert settings.disabled_rules == ["Mid-roll Ads", "Generic Ads"]

    def test_disabled_rules_from_env(self, monkeypatch) -> None:
        """Test parsing disabled_rules from a comma-separated variable."""
        monkeypatch.setenv("ADSIFT_DISABLED_RULES", "Mid-roll Ads,Generic Ads")
        settings = Settings(_env_file=None)
        assert settings.disabled_rules == ["Mid-roll Ads", "Generic Ads"]

    def test_custom_config_path(self) -> None:
        """Test setting the config path explicitly."""
        settings = Settings(config_path=Path("/tmp/adsift.json"), _env_file=None)
        assert settings.config_path == Path("/tmp/adsift.json")

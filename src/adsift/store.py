"""JSON file persistence for the filter configuration."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from adsift.config import FilterConfiguration, default_configuration

logger = logging.getLogger(__name__)


class ConfigStoreError(Exception):
    """Exception raised when the configuration cannot be saved."""

    pass


class ConfigStore:
    """Loads and saves a FilterConfiguration as JSON.

    Saved fields are merged over the defaults on load, so a file holding only
    ``{"strict_mode": true}`` yields the default rule table in strict mode.
    """

    def __init__(self, path: Path) -> None:
        """Initialize the store.

        Args:
            path: JSON file location (created on first save)
        """
        self.path = Path(path)
        logger.debug(f"Initialized ConfigStore at {self.path}")

    def load(self) -> FilterConfiguration:
        """Load the saved configuration.

        Returns:
            Saved configuration merged over defaults, or defaults when the
            file is missing or unreadable
        """
        if not self.path.exists():
            logger.debug(f"No saved configuration at {self.path}, using defaults")
            return default_configuration()

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                saved = json.load(f)
            if not isinstance(saved, dict):
                raise ValueError("configuration file must hold a JSON object")
            data = default_configuration().model_dump()
            data.update(saved)
            return FilterConfiguration.model_validate(data)
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(f"Failed to read configuration from {self.path}: {e}")
            return default_configuration()

    def save(self, config: FilterConfiguration) -> None:
        """Write a configuration to disk.

        Raises:
            ConfigStoreError: If the file cannot be written
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(config.model_dump_json(indent=2), encoding="utf-8")
            logger.info(f"Saved configuration to {self.path}")
        except OSError as e:
            msg = f"Failed to save configuration to {self.path}: {e}"
            logger.error(msg)
            raise ConfigStoreError(msg) from e

    def update(self, **changes) -> FilterConfiguration:
        """Merge field changes into the saved configuration and save it.

        Raises:
            ConfigStoreError: If the file cannot be written
        """
        data = self.load().model_dump()
        data.update(changes)
        config = FilterConfiguration.model_validate(data)
        self.save(config)
        return config

    def reset(self) -> FilterConfiguration:
        """Delete the saved configuration and return the defaults."""
        try:
            self.path.unlink(missing_ok=True)
            logger.info(f"Reset configuration at {self.path}")
        except OSError as e:
            logger.warning(f"Error removing configuration file {self.path}: {e}")
        return default_configuration()


def load_configuration(
    path: Path, disabled_rules: Optional[list[str]] = None
) -> FilterConfiguration:
    """Load a configuration and switch off the named rules.

    Unknown rule names are ignored.
    """
    config = ConfigStore(path).load()
    for rule in config.rules:
        if disabled_rules and rule.name in disabled_rules:
            rule.enabled = False
    return config

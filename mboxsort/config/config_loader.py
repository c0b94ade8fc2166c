"""Configuration loader for application settings."""

import json
import logging
from pathlib import Path
from typing import Optional, Tuple

from mboxsort.errors import ConfigurationError
from .app_config import AppConfig

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Load and validate application configuration."""

    DEFAULT_CONFIG_PATHS = [
        Path("~/.mboxsort/config.json"),
        Path("config/mboxsort.json"),
    ]

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration loader.

        Args:
            config_path: Optional custom config file path
        """
        self.config_path = config_path
        self._config: Optional[AppConfig] = None

    def load_app_config(self) -> AppConfig:
        """
        Load application configuration from file.

        Returns:
            AppConfig instance (defaults if no config file exists)

        Raises:
            ConfigurationError: If an explicit config file is missing, or a
                config file is not valid JSON or fails validation
        """
        if self._config is not None:
            return self._config

        if self.config_path and not self.config_path.expanduser().exists():
            raise ConfigurationError(f"Config file not found: {self.config_path}")

        config_paths = [self.config_path] if self.config_path else self.DEFAULT_CONFIG_PATHS

        for config_path in config_paths:
            if config_path and config_path.expanduser().exists():
                try:
                    with open(config_path.expanduser(), "r", encoding="utf-8") as f:
                        config_data = json.load(f)
                except json.JSONDecodeError as e:
                    raise ConfigurationError(f"Invalid JSON in {config_path}: {e}") from e
                if not isinstance(config_data, dict):
                    raise ConfigurationError(f"Config in {config_path} must be a JSON object")
                try:
                    self._config = AppConfig.from_dict(config_data)
                except ConfigurationError as e:
                    raise ConfigurationError(f"Invalid config in {config_path}: {e}") from e
                logger.debug("Loaded configuration from %s", config_path)
                return self._config

        # Return default config if no file found
        self._config = AppConfig()
        return self._config

    def load_classification_rules(self) -> Tuple:
        """
        Build the classification rules named by the loaded configuration.

        Returns:
            Tuple of ClassificationRule
        """
        from mboxsort.services.classification.rules import rules_from_config

        return rules_from_config(self.load_app_config().classification)

    def reload(self) -> AppConfig:
        """Reload configuration from file."""
        self._config = None
        return self.load_app_config()

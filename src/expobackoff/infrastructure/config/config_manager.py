"""Configuration manager for loading and validating .backoff.yml"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from expobackoff.domain.backoff import Exponential, ExponentialBackoffBuilder, RandomSource
from expobackoff.domain.config import AppConfig, BackoffConfig

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".backoff.yml"

# Environment variable -> backoff setting
ENV_OVERRIDES = {
    "EXPOBACKOFF_FACTOR": "factor",
    "EXPOBACKOFF_INTERVAL": "interval",
    "EXPOBACKOFF_JITTER": "jitter",
    "EXPOBACKOFF_MAX": "max",
    "EXPOBACKOFF_JITTER_WITHIN_MAX": "jitter_within_max",
}


def _parse_number(value: str) -> Any:
    """Parse seconds from an env value, leaving ISO 8601 strings for Pydantic."""
    try:
        return float(value)
    except ValueError:
        return value


class ConfigurationError(Exception):
    """Configuration validation error."""

    pass


class ConfigManager:
    """Manages configuration from .backoff.yml and environment variables

    Loads configuration with validation using Pydantic models. Configuration priority:
    1. Default values (defined in Pydantic models)
    2. .backoff.yml file (searched from current directory upwards)
    3. Environment variables (EXPOBACKOFF_*)
    4. CLI arguments (handled by CLI layer)
    """

    DEFAULT_CONFIG = AppConfig().model_dump()

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config manager

        Args:
            config_path: Path to .backoff.yml (searches from current dir if None)

        Raises:
            ConfigurationError: If configuration validation fails
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)
        self.config_path = config_path or self._find_config_file()
        try:
            self.config: AppConfig = self._load_config()
        except ValidationError as e:
            errors = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"])
                msg = error["msg"]
                errors.append(f"  - {field}: {msg}")
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(errors)
            ) from e

    def _find_config_file(self) -> Optional[Path]:
        """Find .backoff.yml starting from current directory

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            config_file = parent / CONFIG_FILE_NAME
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return config_file
        logger.debug(f"No {CONFIG_FILE_NAME} found, using defaults")
        return None

    def _load_config(self) -> AppConfig:
        """Load configuration from file and validate with Pydantic

        Returns:
            Validated AppConfig instance

        Raises:
            ValidationError: If configuration is invalid
        """
        config_dict = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}
                config_dict = self._merge_config(config_dict, file_config)
                logger.info(f"Loaded configuration from {self.config_path}")
            except (OSError, yaml.YAMLError, AttributeError) as e:
                logger.warning(f"Failed to load config from {self.config_path}: {e}")
                logger.info("Using default configuration")

        config_dict = self._apply_env_overrides(config_dict)

        return AppConfig(**config_dict)

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries

        Args:
            base: Base configuration
            override: Override configuration

        Returns:
            Merged configuration
        """
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides

        Spans are given in seconds or as ISO 8601 durations;
        EXPOBACKOFF_MAX=none clears the ceiling.

        Args:
            config: Configuration dictionary

        Returns:
            Configuration with env overrides applied
        """
        backoff = config.setdefault("backoff", {})
        if not isinstance(backoff, dict):
            return config
        for env_name, key in ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if not value:
                continue
            if key == "max" and value.strip().lower() in ("none", "null"):
                backoff[key] = None
            elif key == "jitter_within_max":
                backoff[key] = value
            else:
                backoff[key] = _parse_number(value)
            logger.debug(f"Applied {env_name} override: {key}={backoff[key]}")
        return config

    def get_backoff_config(self) -> BackoffConfig:
        """Get backoff configuration

        Returns:
            Backoff configuration model
        """
        return self.config.backoff

    def build_backoff(self, rng: Optional[RandomSource] = None) -> Exponential:
        """Build a backoff calculator from the loaded configuration

        Args:
            rng: Optional random source for jitter

        Returns:
            Exponential backoff instance
        """
        return ExponentialBackoffBuilder.from_config(self.config.backoff).rng(rng).build()

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key (supports dot notation)

        Args:
            key: Configuration key (e.g., "backoff.factor" or "backoff")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split(".")
        value = self.config.model_dump()
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

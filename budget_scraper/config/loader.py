"""
YAML configuration loader with validation.

Loads run settings from YAML files with:
- Environment variable substitution
- Required-key validation
- Default values
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

import yaml
import structlog

from budget_scraper.core.errors import ConfigError
from budget_scraper.geocoding.geocoder import GeocoderConfig
from budget_scraper.navigators.base import PortalConfig

logger = structlog.get_logger(__name__)


DEFAULT_SETTINGS_FILE = "settings.yml"


def substitute_env_vars(text: str) -> str:
    """
    Substitute environment variables in text.

    Supports formats:
    - ${VAR_NAME} - required, warns and substitutes "" if missing
    - ${VAR_NAME:-default} - optional with default

    Args:
        text: Text with env var placeholders

    Returns:
        Text with substituted values
    """
    def replace(match):
        var_expr = match.group(1)
        if ":-" in var_expr:
            var_name, default = var_expr.split(":-", 1)
            return os.getenv(var_name) or default
        else:
            value = os.getenv(var_expr)
            if value is None:
                logger.warning("env_var_not_set", var=var_expr)
                return ""
            return value

    return re.sub(r"\$\{([^}]+)\}", replace, text)


@dataclass
class PathsConfig:
    """Output and cache locations."""

    output_dir: str = "public/data"
    cache_dir: str = "data/.cache"

    @property
    def scrape_cache(self) -> Path:
        return Path(self.cache_dir) / "scrape.json"

    @property
    def geocode_cache(self) -> Path:
        return Path(self.cache_dir) / "geocode.json"

    @property
    def progress_file(self) -> Path:
        return Path(self.cache_dir) / "progress.json"

    @classmethod
    def from_dict(cls, data: dict) -> "PathsConfig":
        defaults = cls()
        return cls(
            output_dir=data.get("output_dir") or defaults.output_dir,
            cache_dir=data.get("cache_dir") or defaults.cache_dir,
        )


@dataclass
class Settings:
    """Complete run configuration."""

    portal: PortalConfig = field(default_factory=PortalConfig)
    geocoder: GeocoderConfig = field(default_factory=GeocoderConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)


class ConfigLoader:
    """
    Configuration loader for scraper settings.

    Loads YAML config files and validates required keys.
    """

    REQUIRED_PORTAL_KEYS = ["base_url", "listing_path"]

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize config loader.

        Args:
            config_dir: Directory containing config files
                       (defaults to package config directory)
        """
        if config_dir:
            self.config_dir = Path(config_dir)
        else:
            self.config_dir = Path(__file__).parent

    def load_file(self, filename: str) -> dict:
        """
        Load YAML config file.

        Args:
            filename: Config file name (relative to config_dir)

        Returns:
            Parsed config dict

        Raises:
            ConfigError: If the file is missing or not valid YAML
        """
        filepath = self.config_dir / filename

        if not filepath.exists():
            raise ConfigError(f"Config file not found: {filepath}")

        logger.info("loading_config", file=str(filepath))

        with open(filepath, "r", encoding="utf-8") as f:
            content = f.read()

        # Substitute environment variables
        content = substitute_env_vars(content)

        try:
            config = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {filepath}: {e}") from e

        if config is not None and not isinstance(config, dict):
            raise ConfigError(f"Config root must be a mapping: {filepath}")

        return config or {}

    def load_settings(self, filename: str = DEFAULT_SETTINGS_FILE) -> Settings:
        """
        Load run settings from YAML.

        Args:
            filename: Settings file name

        Returns:
            Settings object
        """
        config = self.load_file(filename)
        return self._parse_settings(config)

    def _parse_settings(self, data: dict) -> Settings:
        """
        Parse settings document into Settings.

        Raises:
            ConfigError: If required fields missing or values malformed
        """
        portal_data = data.get("portal")
        if not isinstance(portal_data, dict):
            raise ConfigError("Missing required section: portal")

        for key in self.REQUIRED_PORTAL_KEYS:
            if not portal_data.get(key):
                raise ConfigError(f"Missing required field: portal.{key}")

        try:
            settings = Settings(
                portal=PortalConfig.from_dict(portal_data),
                geocoder=GeocoderConfig.from_dict(data.get("geocoder") or {}),
                paths=PathsConfig.from_dict(data.get("paths") or {}),
            )
        except (TypeError, ValueError, IndexError) as e:
            raise ConfigError(f"Invalid configuration value: {e}") from e

        logger.info(
            "settings_loaded",
            listing_url=settings.portal.listing_url,
            output_dir=settings.paths.output_dir,
        )
        return settings


def load_settings(config_path: Optional[Union[str, Path]] = None) -> Settings:
    """
    Convenience function to load settings.

    Args:
        config_path: Optional path to a settings YAML file

    Returns:
        Settings object
    """
    if config_path:
        config_dir = str(Path(config_path).parent)
        filename = Path(config_path).name
        loader = ConfigLoader(config_dir)
        return loader.load_settings(filename)
    else:
        loader = ConfigLoader()
        return loader.load_settings()

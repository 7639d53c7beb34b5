"""
Configuration module for the scraper.

Provides:
- YAML settings loading with validation
- Portal, geocoder and path settings
- Environment variable substitution
"""

from .loader import ConfigLoader, PathsConfig, Settings, load_settings, substitute_env_vars

__all__ = ["ConfigLoader", "PathsConfig", "Settings", "load_settings", "substitute_env_vars"]

"""Tests for configuration loading."""

import pytest

from budget_scraper.config.loader import (
    ConfigLoader,
    PathsConfig,
    Settings,
    load_settings,
    substitute_env_vars,
)
from budget_scraper.core.errors import ConfigError
from budget_scraper.navigators.base import PortalConfig


class TestSubstituteEnvVars:
    """Tests for substitute_env_vars function."""

    def test_set_variable(self, monkeypatch):
        """Test substitution of a set variable."""
        monkeypatch.setenv("BUDGET_TEST_VAR", "wartość")

        assert substitute_env_vars("a: ${BUDGET_TEST_VAR}") == "a: wartość"

    def test_default(self, monkeypatch):
        """Test default for an unset variable."""
        monkeypatch.delenv("BUDGET_TEST_VAR", raising=False)

        assert substitute_env_vars("${BUDGET_TEST_VAR:-domyślna}") == "domyślna"

    def test_missing_required(self, monkeypatch):
        """Test that a missing required variable becomes empty."""
        monkeypatch.delenv("BUDGET_TEST_VAR", raising=False)

        assert substitute_env_vars("x${BUDGET_TEST_VAR}y") == "xy"


class TestConfigLoader:
    """Tests for ConfigLoader."""

    def test_bundled_settings(self, monkeypatch):
        """Test loading the packaged settings.yml."""
        monkeypatch.delenv("BUDGET_PORTAL_URL", raising=False)
        monkeypatch.delenv("NOMINATIM_EMAIL", raising=False)

        settings = ConfigLoader().load_settings()

        assert isinstance(settings, Settings)
        assert settings.portal.listing_url == "https://budzetobywatelski.uml.lodz.pl/zlozone-projekty-2026"
        assert settings.portal.max_pages == 50
        assert settings.geocoder.email == "admin@budzetobywatelski.pl"
        assert settings.geocoder.center == (51.7592, 19.456)
        assert settings.paths.cache_dir == "data/.cache"

    def test_env_override(self, monkeypatch):
        """Test environment substitution in the bundled file."""
        monkeypatch.setenv("NOMINATIM_EMAIL", "ops@example.pl")

        settings = load_settings()

        assert settings.geocoder.user_agent == "BudzetObywatelskiScraper/1.0 (ops@example.pl)"

    def test_custom_file(self, tmp_path):
        """Test loading settings from an explicit path."""
        path = tmp_path / "custom.yml"
        path.write_text(
            "portal:\n"
            "  base_url: https://portal.test\n"
            "  listing_path: /projekty\n"
            "  concurrency: 3\n"
            "paths:\n"
            "  output_dir: out\n",
            encoding="utf-8",
        )

        settings = load_settings(path)

        assert settings.portal.listing_url == "https://portal.test/projekty"
        assert settings.portal.concurrency == 3
        assert settings.portal.request_interval == 1.0
        assert settings.paths.output_dir == "out"
        assert settings.paths.cache_dir == "data/.cache"

    def test_missing_file(self, tmp_path):
        """Test that a missing file is a configuration error."""
        with pytest.raises(ConfigError):
            load_settings(tmp_path / "missing.yml")

    def test_missing_portal_section(self, tmp_path):
        """Test that the portal section is required."""
        path = tmp_path / "settings.yml"
        path.write_text("paths:\n  output_dir: out\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="portal"):
            load_settings(path)

    def test_missing_required_key(self, tmp_path):
        """Test that required portal keys are enforced."""
        path = tmp_path / "settings.yml"
        path.write_text("portal:\n  base_url: https://portal.test\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="listing_path"):
            load_settings(path)

    def test_invalid_value(self, tmp_path):
        """Test that malformed values are configuration errors."""
        path = tmp_path / "settings.yml"
        path.write_text(
            "portal:\n  base_url: https://portal.test\n  listing_path: /p\n  max_pages: many\n",
            encoding="utf-8",
        )

        with pytest.raises(ConfigError):
            load_settings(path)


class TestConfigDataclasses:
    """Tests for configuration dataclasses."""

    def test_portal_defaults(self):
        """Test default portal values."""
        portal = PortalConfig.from_dict({})

        assert portal.page_param == "page"
        assert portal.generic_link_text == "szczegóły projektu"
        assert portal.banner_title == "Łódzki Budżet Obywatelski 2025/2026"

    def test_paths(self):
        """Test derived cache file paths."""
        paths = PathsConfig(cache_dir="cache")

        assert paths.scrape_cache.name == "scrape.json"
        assert paths.geocode_cache.name == "geocode.json"
        assert paths.progress_file.name == "progress.json"

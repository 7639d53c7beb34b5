"""Pipeline errors and failure typing."""


class ScraperError(Exception):
    """Base class for scraper failures."""

    error_code = "SCRAPER_ERROR"


class ConfigError(ScraperError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class FetchError(ScraperError):
    """Raised when a page cannot be fetched (timeout, connection, HTTP status)."""

    error_code = "FETCH_ERROR"


class OutputError(ScraperError):
    """Raised when output files cannot be written."""

    error_code = "OUTPUT_ERROR"


class NoProjectsFoundError(ScraperError):
    """Raised when discovery yields no project URLs at all."""

    error_code = "NO_PROJECTS_FOUND"


class NoProjectsScrapedError(ScraperError):
    """Raised when every detail page failed to scrape."""

    error_code = "NO_PROJECTS_SCRAPED"

"""
Core layer - stable foundation for the scraping system.

Components:
- models: ProjectRecord, ProjectTarget, GeocodeResult dataclasses
- http_client: Rate-limited, retrying HTTP client
- rate_limiter: Minimum-interval request pacing
- cache: JSON-file key/value caches
- selectors: Label vocabulary and HTML helpers
- normalizer: Type, cost and text normalization
- deduplicator: URL/id project deduplication
- errors: Pipeline error types
"""

from .models import GeocodeResult, GeocodeStatus, ProjectRecord, ProjectTarget, ProjectType
from .errors import (
    ConfigError,
    FetchError,
    NoProjectsFoundError,
    NoProjectsScrapedError,
    OutputError,
    ScraperError,
)
from .cache import DiskCache
from .rate_limiter import RateLimiter
from .http_client import HttpClient
from .normalizer import clean_text, normalize_project, normalize_type, parse_coordinates, parse_cost
from .deduplicator import Deduplicator

__all__ = [
    "GeocodeResult",
    "GeocodeStatus",
    "ProjectRecord",
    "ProjectTarget",
    "ProjectType",
    "ConfigError",
    "FetchError",
    "NoProjectsFoundError",
    "NoProjectsScrapedError",
    "OutputError",
    "ScraperError",
    "DiskCache",
    "RateLimiter",
    "HttpClient",
    "clean_text",
    "normalize_project",
    "normalize_type",
    "parse_coordinates",
    "parse_cost",
    "Deduplicator",
]

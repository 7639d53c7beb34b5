"""
Base class for navigator strategies.

Navigators implement the discovery phase of scraping - finding
all project detail URLs from the portal's listing pages.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urljoin

import structlog

from budget_scraper.core.models import ProjectTarget
from budget_scraper.core.http_client import HttpClient

logger = structlog.get_logger(__name__)


@dataclass
class PortalConfig:
    """Configuration for the civic budget portal."""

    base_url: str = "https://budzetobywatelski.uml.lodz.pl"
    listing_path: str = "/zlozone-projekty-2026"

    # Discovery settings
    detail_marker: str = "szczegoly-projektu"  # Substring of detail page hrefs
    generic_link_text: str = "szczegóły projektu"  # "details" buttons, skipped
    page_param: str = "page"
    max_pages: int = 50  # Safety limit for pagination

    # Detail pages
    banner_title: str = "Łódzki Budżet Obywatelski 2025/2026"

    # Fetching
    request_interval: float = 1.0  # Seconds between portal requests
    timeout: float = 30.0
    concurrency: int = 1  # Parallel detail fetches (capped at 5)

    # Extra metadata
    metadata: dict = field(default_factory=dict)

    @property
    def listing_url(self) -> str:
        return urljoin(self.base_url.rstrip("/") + "/", self.listing_path.lstrip("/"))

    @classmethod
    def from_dict(cls, data: dict) -> "PortalConfig":
        """Create from dictionary (e.g., from YAML)."""
        defaults = cls()
        return cls(
            base_url=data.get("base_url", defaults.base_url),
            listing_path=data.get("listing_path", defaults.listing_path),
            detail_marker=data.get("detail_marker", defaults.detail_marker),
            generic_link_text=data.get("generic_link_text", defaults.generic_link_text),
            page_param=data.get("page_param", defaults.page_param),
            max_pages=int(data.get("max_pages", defaults.max_pages)),
            banner_title=data.get("banner_title", defaults.banner_title),
            request_interval=float(data.get("request_interval", defaults.request_interval)),
            timeout=float(data.get("timeout", defaults.timeout)),
            concurrency=int(data.get("concurrency", defaults.concurrency)),
            metadata=data.get("metadata", {}),
        )


class NavigatorStrategy(ABC):
    """
    Abstract base class for navigator strategies.

    Navigators discover project detail URLs:
    - Paginated listing: crawl listing pages until exhausted
    - URL file: read a prepared list of detail URLs
    """

    def __init__(self, http_client: Optional[HttpClient] = None):
        """
        Initialize navigator.

        Args:
            http_client: Shared HTTP client (creates own if not provided)
        """
        self.http_client = http_client
        self._owns_client = http_client is None
        self.logger = logger.bind(navigator=self.__class__.__name__)

    async def __aenter__(self) -> "NavigatorStrategy":
        """Enter async context."""
        if self._owns_client:
            self.http_client = HttpClient()
            await self.http_client.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context."""
        if self._owns_client and self.http_client:
            await self.http_client.__aexit__(exc_type, exc_val, exc_tb)

    @abstractmethod
    async def discover(
        self,
        portal: PortalConfig,
        max_projects: Optional[int] = None,
    ) -> list[ProjectTarget]:
        """
        Discover project targets.

        Args:
            portal: Portal configuration
            max_projects: Optional limit on number of projects

        Returns:
            List of ProjectTarget objects with discovered URLs
        """
        pass

    def get_strategy_name(self) -> str:
        """Return human-readable strategy name."""
        return self.__class__.__name__

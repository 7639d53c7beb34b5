"""
Base class for parser strategies.

Parsers implement the extraction phase - converting project detail
pages into ProjectRecord objects.
"""

from abc import ABC, abstractmethod
from typing import Optional

import structlog

from budget_scraper.core.models import ProjectRecord, ProjectTarget
from budget_scraper.core.http_client import HttpClient

logger = structlog.get_logger(__name__)


class ParserStrategy(ABC):
    """
    Abstract base class for parser strategies.

    Parsers extract structured ProjectRecord data from discovered targets.
    """

    def __init__(self, http_client: Optional[HttpClient] = None):
        """
        Initialize parser.

        Args:
            http_client: Shared HTTP client (creates own if not provided)
        """
        self.http_client = http_client
        self._owns_client = http_client is None
        self.logger = logger.bind(parser=self.__class__.__name__)

    async def __aenter__(self) -> "ParserStrategy":
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
    async def extract(self, target: ProjectTarget) -> Optional[ProjectRecord]:
        """
        Extract project data from target.

        Args:
            target: ProjectTarget with URL and listing hints

        Returns:
            ProjectRecord or None if the page could not be fetched
        """
        pass

    def get_strategy_name(self) -> str:
        """Return human-readable strategy name."""
        return self.__class__.__name__

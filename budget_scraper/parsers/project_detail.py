"""
Project detail page parser.

Fetches a detail page (scrape cache first), runs the extractor chain and
normalizes the result into a ProjectRecord.
"""

from typing import Optional

from bs4 import BeautifulSoup

from budget_scraper.core.cache import DiskCache
from budget_scraper.core.errors import FetchError
from budget_scraper.core.http_client import HttpClient
from budget_scraper.core.models import ProjectRecord, ProjectTarget
from budget_scraper.core.normalizer import normalize_project
from budget_scraper.core.selectors import cleanup_navigation

from .base import ParserStrategy
from .extractors import (
    Extractor,
    ExtractionContext,
    resolve_title,
    run_extractors,
)

DEFAULT_BANNER_TITLE = "Łódzki Budżet Obywatelski 2025/2026"


class ProjectDetailParser(ParserStrategy):
    """
    Parser for civic budget project detail pages.

    Extracts:
    - Identifier, title, type, category, district
    - Location text and estimated cost
    - Description
    - Map widget coordinates, when the page embeds them
    """

    def __init__(
        self,
        http_client: Optional[HttpClient] = None,
        cache: Optional[DiskCache] = None,
        banner_title: str = DEFAULT_BANNER_TITLE,
        extractors: Optional[list[Extractor]] = None,
    ):
        """
        Initialize parser.

        Args:
            http_client: Shared HTTP client
            cache: Scrape cache keyed by detail URL
            banner_title: Generic site banner never used as a project title
            extractors: Custom extractor chain
        """
        super().__init__(http_client)
        self.cache = cache
        self.banner_title = banner_title
        self.extractors = extractors

        self.stats = {"cached": 0, "scraped": 0, "failed": 0}

    async def extract(self, target: ProjectTarget) -> Optional[ProjectRecord]:
        """
        Extract project from its detail page.

        Args:
            target: ProjectTarget with URL

        Returns:
            ProjectRecord or None when the page could not be fetched
        """
        if self.cache is not None and self.cache.has(target.url):
            self.logger.debug("cache_hit", url=target.url)
            self.stats["cached"] += 1
            return ProjectRecord.from_dict(self.cache.get(target.url))

        if not self.http_client:
            raise RuntimeError("Parser not initialized. Use 'async with' context.")

        self.logger.debug("fetching_detail", url=target.url)

        try:
            html = await self.http_client.get_text(target.url)
        except FetchError as e:
            self.logger.error("fetch_failed", url=target.url, error=str(e))
            self.stats["failed"] += 1
            return None

        record = self.parse_html(html, target)

        if self.cache is not None:
            self.cache.set(target.url, record.to_dict())

        self.stats["scraped"] += 1
        return record

    def parse_html(self, html: str, target: ProjectTarget) -> ProjectRecord:
        """
        Parse HTML content into ProjectRecord.

        Missing fields default to empty values, never raise.

        Args:
            html: Raw HTML content
            target: Project target info

        Returns:
            ProjectRecord
        """
        soup = BeautifulSoup(html, "lxml")
        cleanup_navigation(soup)

        context = ExtractionContext(
            url=target.url,
            listing_title=target.title,
            banner_title=self.banner_title,
        )

        fields = run_extractors(soup, context, self.extractors)
        fields["nazwa"] = resolve_title(fields, soup, context)

        if not fields.get("id") and target.id:
            fields["id"] = target.id

        # Listing hints fill what the detail page did not say
        for field_name, hint in (("typ", "type"), ("osiedle", "district")):
            if not fields.get(field_name) and target.metadata.get(hint):
                fields[field_name] = target.metadata[hint]

        record = normalize_project(fields, source_url=target.url)

        self.logger.info(
            "parsed_project",
            id=record.id,
            title=record.nazwa[:50],
            typ=record.typ,
            koszt=record.koszt,
            has_coordinates=record.has_coordinates,
        )

        return record

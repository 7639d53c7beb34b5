"""
Paginated listing navigator: listing pages → detail pages.

Crawls ``listing_url``, ``listing_url?page=2``, ... collecting links to
project detail pages until a page adds nothing new, the listing stops
offering a next page, or the page safety limit is hit.
"""

import re
from typing import Optional
from urllib.parse import urlencode

from bs4 import BeautifulSoup, Tag

from budget_scraper.core.models import ProjectTarget
from budget_scraper.core.selectors import absolute_url, element_text
from budget_scraper.parsers.extractors import project_id_from_url

from .base import NavigatorStrategy, PortalConfig

NEXT_PAGE_SELECTORS = 'a[rel="next"], .pagination .next, .pagination-next'
NEXT_PAGE_TEXT = re.compile(r"następna", re.IGNORECASE)

CARD_CLASSES = re.compile(r"project-item|projekt-item|card")
TYPE_HINT_SELECTORS = ".type, .typ, .badge"
DISTRICT_HINT_SELECTORS = ".district, .osiedle, .location"


def page_url(portal: PortalConfig, page: int) -> str:
    """Listing URL for a 1-based page number (no parameter for page 1)."""
    if page <= 1:
        return portal.listing_url
    return f"{portal.listing_url}?{urlencode({portal.page_param: page})}"


def _is_disabled(element: Tag) -> bool:
    for node in (element, element.parent):
        if node is not None and "disabled" in (node.get("class") or []):
            return True
    return element.get("aria-disabled") == "true"


def has_next_page(soup: BeautifulSoup) -> bool:
    """Detect an enabled "next page" link in the listing markup."""
    candidates = list(soup.select(NEXT_PAGE_SELECTORS))
    candidates += [a for a in soup.find_all("a") if NEXT_PAGE_TEXT.search(a.get_text(" ", strip=True))]
    return any(not _is_disabled(c) for c in candidates)


class PaginatedListingNavigator(NavigatorStrategy):
    """
    Navigator for the portal's paginated project listing.

    Supports:
    - Detail link filtering by URL marker and link text
    - Project id extraction from the detail URL
    - Type/district hints from the enclosing listing card
    - Best-effort pagination: a failing page ends the crawl with
      what was collected so far
    """

    async def discover(
        self,
        portal: PortalConfig,
        max_projects: Optional[int] = None,
    ) -> list[ProjectTarget]:
        """
        Discover projects from the listing pages.

        Args:
            portal: Portal configuration
            max_projects: Optional limit

        Returns:
            Unique ProjectTargets in order of first appearance
        """
        if not self.http_client:
            raise RuntimeError("Navigator not initialized. Use 'async with' context.")

        self.logger.info("discovering_projects", url=portal.listing_url, max_pages=portal.max_pages)

        targets: list[ProjectTarget] = []
        seen_urls: set[str] = set()
        page = 1

        while True:
            url = page_url(portal, page)
            self.logger.debug("fetching_page", page=page, url=url)

            try:
                html = await self.http_client.get_text(url)
                soup = BeautifulSoup(html, "lxml")
                page_targets = self._extract_targets(soup, portal, seen_urls)
            except Exception as e:
                self.logger.error("listing_page_failed", page=page, url=url, error=str(e))
                break

            self.logger.info("listing_page_parsed", page=page, new_projects=len(page_targets))

            if not page_targets:
                break

            targets.extend(page_targets)

            if max_projects and len(targets) >= max_projects:
                targets = targets[:max_projects]
                break

            if not has_next_page(soup):
                break

            if page >= portal.max_pages:
                self.logger.warning("page_limit_reached", max_pages=portal.max_pages)
                break

            page += 1

        self.logger.info("discovery_complete", pages=page, count=len(targets))

        return targets

    def _extract_targets(
        self,
        soup: BeautifulSoup,
        portal: PortalConfig,
        seen_urls: set[str],
    ) -> list[ProjectTarget]:
        """
        Extract new project targets from a parsed listing page.

        Args:
            soup: Parsed HTML
            portal: Portal configuration
            seen_urls: Set of already seen URLs (for dedup)

        Returns:
            List of ProjectTarget objects not seen before
        """
        targets: list[ProjectTarget] = []
        generic_text = portal.generic_link_text.lower()

        for link in soup.find_all("a", href=True):
            href = link["href"]
            if portal.detail_marker not in href:
                continue

            title = element_text(link)
            if not title or title.lower() == generic_text:
                continue

            url = absolute_url(portal.base_url, href)
            if url in seen_urls:
                continue
            seen_urls.add(url)

            targets.append(
                ProjectTarget(
                    url=url,
                    title=title,
                    id=project_id_from_url(url),
                    metadata=self._card_hints(link),
                )
            )

        return targets

    def _card_hints(self, link: Tag) -> dict:
        """Type and district shown on the listing card around the link."""
        card = link.find_parent(class_=CARD_CLASSES) or link.find_parent("article")
        if card is None:
            return {}

        hints = {}
        type_text = element_text(card.select_one(TYPE_HINT_SELECTORS))
        if type_text:
            hints["type"] = type_text
        district_text = element_text(card.select_one(DISTRICT_HINT_SELECTORS))
        if district_text:
            hints["district"] = district_text
        return hints

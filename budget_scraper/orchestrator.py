"""
Pipeline orchestrator for the civic budget scraper.

Coordinates:
- Discovery (paginated listing or URL file)
- Detail scraping with progress checkpoints
- Deduplication and ordering
- Geocoding
- Output generation and run summary
"""

import asyncio
from pathlib import Path
from typing import Optional, Union

import structlog

from .config.loader import Settings
from .core.cache import DiskCache
from .core.deduplicator import Deduplicator
from .core.errors import NoProjectsFoundError, NoProjectsScrapedError, OutputError
from .core.http_client import HttpClient
from .core.models import ProjectRecord, ProjectTarget
from .core.rate_limiter import RateLimiter
from .geocoding.geocoder import Geocoder
from .navigators.base import NavigatorStrategy
from .navigators.listing import PaginatedListingNavigator
from .navigators.url_file import UrlFileNavigator
from .output.assembler import (
    DATASET_FILENAME,
    GEOJSON_FILENAME,
    RAW_FILENAME,
    build_dataset,
    build_geojson,
    summarize,
    write_json,
)
from .parsers.project_detail import ProjectDetailParser

logger = structlog.get_logger(__name__)


MAX_CONCURRENCY = 5
CHECKPOINT_EVERY = 10


class BudgetPipeline:
    """
    Orchestrator for the scraping pipeline.

    Coordinates discovery, extraction, geocoding, and output.

    Usage:
        pipeline = BudgetPipeline(load_settings())
        records = await pipeline.run()
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        urls_file: Optional[Union[str, Path]] = None,
        skip_geocoding: bool = False,
        transport=None,
        geocode_transport=None,
        geocode_rate_limiter: Optional[RateLimiter] = None,
    ):
        """
        Initialize pipeline.

        Args:
            settings: Run settings (defaults apply when omitted)
            urls_file: Read detail URLs from this file instead of crawling
            skip_geocoding: Leave records without geocoded coordinates
            transport: Custom httpx transport for portal requests
            geocode_transport: Custom httpx transport for geocoding requests
            geocode_rate_limiter: Limiter for geocoding (1 req/s by default)
        """
        self.settings = settings or Settings()
        self.urls_file = urls_file
        self.skip_geocoding = skip_geocoding
        self.transport = transport
        self.geocode_transport = geocode_transport
        self.geocode_rate_limiter = geocode_rate_limiter or RateLimiter(
            min_interval=self.settings.geocoder.request_interval
        )

        paths = self.settings.paths
        self.output_dir = Path(paths.output_dir)
        self.scrape_cache = DiskCache(paths.scrape_cache, autoflush=False)
        self.geocode_cache = DiskCache(paths.geocode_cache)
        self.progress_file = paths.progress_file

        self.deduplicator = Deduplicator()
        self.http_client: Optional[HttpClient] = None

        # Statistics
        self.stats = {
            "projects_discovered": 0,
            "projects_scraped": 0,
            "projects_failed": 0,
            "duplicates_removed": 0,
            "errors": 0,
        }

    async def run(
        self,
        max_projects: Optional[int] = None,
        dry_run: bool = False,
    ) -> list[ProjectRecord]:
        """
        Run the scraping pipeline.

        Args:
            max_projects: Optional limit on discovered projects
            dry_run: If True, only discover without extracting

        Returns:
            Final project records (empty for a dry run)

        Raises:
            NoProjectsFoundError: If discovery finds nothing
            NoProjectsScrapedError: If no detail page could be scraped
            OutputError: If output files cannot be written
        """
        portal = self.settings.portal

        logger.info(
            "starting_scrape",
            listing_url=portal.listing_url,
            urls_file=str(self.urls_file) if self.urls_file else None,
            max_projects=max_projects,
            dry_run=dry_run,
        )

        self.http_client = HttpClient(
            min_interval=portal.request_interval,
            timeout=portal.timeout,
            transport=self.transport,
        )

        async with self.http_client:
            targets = await self._discover(max_projects)
            self.stats["projects_discovered"] = len(targets)

            if not targets:
                logger.error("no_projects_discovered", listing_url=portal.listing_url)
                raise NoProjectsFoundError(f"No projects discovered at {portal.listing_url}")

            if dry_run:
                for target in targets:
                    logger.info("discovered_target", url=target.url, title=target.title, id=target.id)
                return []

            records = await self._scrape(targets)

        if not records:
            raise NoProjectsScrapedError(f"None of {len(targets)} project pages could be scraped")

        records = self.deduplicator.deduplicate(records)
        self.stats["duplicates_removed"] = self.stats["projects_scraped"] - len(records)
        records.sort(key=lambda r: r.id)

        write_json(self.output_dir / RAW_FILENAME, [r.to_dict() for r in records])

        if self.skip_geocoding:
            logger.info("geocoding_skipped")
        else:
            await self._geocode(records)

        write_json(self.output_dir / DATASET_FILENAME, build_dataset(records))
        write_json(self.output_dir / GEOJSON_FILENAME, build_geojson(records))

        self.log_summary(records)

        return records

    def _make_navigator(self) -> NavigatorStrategy:
        if self.urls_file:
            return UrlFileNavigator(self.urls_file, http_client=self.http_client)
        return PaginatedListingNavigator(http_client=self.http_client)

    async def _discover(self, max_projects: Optional[int]) -> list[ProjectTarget]:
        """Discovery phase: completes before any detail page is fetched."""
        navigator = self._make_navigator()
        async with navigator:
            targets = await navigator.discover(self.settings.portal, max_projects)

        logger.info("discovery_complete", targets=len(targets), strategy=navigator.get_strategy_name())
        return targets

    async def _scrape(self, targets: list[ProjectTarget]) -> list[ProjectRecord]:
        """
        Extraction phase.

        Sequential by default; a bounded pool when concurrency > 1. Partial
        results are checkpointed every CHECKPOINT_EVERY completions.
        """
        portal = self.settings.portal
        parser = ProjectDetailParser(
            http_client=self.http_client,
            cache=self.scrape_cache,
            banner_title=portal.banner_title,
        )

        concurrency = max(1, min(portal.concurrency, MAX_CONCURRENCY))
        semaphore = asyncio.Semaphore(concurrency)
        total = len(targets)
        records: list[ProjectRecord] = []
        completed = 0

        async def scrape_one(index: int, target: ProjectTarget) -> None:
            nonlocal completed
            async with semaphore:
                logger.info("extracting", index=index, total=total, url=target.url)
                try:
                    record = await parser.extract(target)
                except Exception as e:
                    logger.error("extraction_failed", url=target.url, error=str(e))
                    self.stats["errors"] += 1
                    record = None

                if record is not None:
                    records.append(record)
                    self.stats["projects_scraped"] += 1
                else:
                    self.stats["projects_failed"] += 1

                completed += 1
                if completed % CHECKPOINT_EVERY == 0:
                    self._checkpoint(completed, total, records)

        async with parser:
            if concurrency == 1:
                for i, target in enumerate(targets, start=1):
                    await scrape_one(i, target)
            else:
                await asyncio.gather(
                    *(scrape_one(i, target) for i, target in enumerate(targets, start=1))
                )

        self.scrape_cache.flush()

        logger.info("extraction_complete", **parser.stats)
        return records

    def _checkpoint(self, completed: int, total: int, records: list[ProjectRecord]) -> None:
        """Persist partial progress so an interrupted run loses little work."""
        try:
            write_json(
                self.progress_file,
                {
                    "completed": completed,
                    "total": total,
                    "projects": [r.to_dict() for r in records],
                },
            )
        except OutputError as e:
            logger.error("progress_checkpoint_failed", path=str(self.progress_file), error=str(e))
        else:
            logger.info("progress_checkpoint", completed=completed, total=total)

        self.scrape_cache.flush()
        self.geocode_cache.flush()

    async def _geocode(self, records: list[ProjectRecord]) -> dict[str, int]:
        """Geocoding phase, strictly sequential."""
        geocoder = Geocoder(
            config=self.settings.geocoder,
            cache=self.geocode_cache,
            rate_limiter=self.geocode_rate_limiter,
            transport=self.geocode_transport,
        )

        async with geocoder:
            stats = await geocoder.geocode_projects(records)

        self.geocode_cache.flush()
        return stats

    def log_summary(self, records: list[ProjectRecord]) -> dict:
        """Log the end-of-run summary and return it."""
        summary = summarize(records)

        logger.info(
            "scrape_complete",
            total=summary["total"],
            geocoded=summary["geocoded"],
            failed=summary["failed"],
            no_address=summary["no_address"],
            **self.stats,
        )
        logger.info(
            "dataset_summary",
            categories=summary["categories"],
            types=summary["types"],
            districts=summary["districts"],
        )
        logger.info("cost_analysis", **summary["cost"])

        return summary

    def clear_caches(self, which: str = "all") -> None:
        """Empty the scrape cache, the geocode cache, or both."""
        if which in ("scrape", "all"):
            self.scrape_cache.clear()
        if which in ("geocode", "all"):
            self.geocode_cache.clear()

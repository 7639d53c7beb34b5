"""
CLI entry point for budget-scraper.

Usage:
    python -m budget_scraper --mode full
    python -m budget_scraper --dry-run --max-projects 5
    python -m budget_scraper --mode check
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import structlog

from .core.errors import ScraperError

# Log level mapping
LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def setup_logging(level: str = "INFO", json_output: bool = False):
    """Configure structured logging."""
    log_level = LOG_LEVELS.get(level.upper(), logging.INFO)

    if json_output:
        processors = [
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    else:
        processors = [
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Łódź civic budget project scraper",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Crawl the listing, scrape, geocode and write the dataset
  python -m budget_scraper --mode full

  # Dry run (discovery only, no extraction)
  python -m budget_scraper --dry-run

  # Limit projects (for testing)
  python -m budget_scraper --max-projects 5 --skip-geocoding

  # Scrape a prepared list of detail URLs
  python -m budget_scraper --urls-file urls.txt

  # Report geocoding coverage of an existing dataset
  python -m budget_scraper --mode check
        """,
    )

    parser.add_argument(
        "--mode",
        choices=["full", "check"],
        default="full",
        help="full: scrape and write outputs; check: report geocoding of existing output",
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to settings.yml config file",
    )

    parser.add_argument(
        "--output",
        type=str,
        help="Output directory (default: from config, public/data)",
    )

    parser.add_argument(
        "--cache-dir",
        type=str,
        help="Cache directory (default: from config, data/.cache)",
    )

    parser.add_argument(
        "--urls-file",
        type=str,
        help="Text file with detail URLs, one per line (skips listing crawl)",
    )

    parser.add_argument(
        "--max-projects",
        type=int,
        help="Maximum projects to process (for testing)",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Discovery only - don't extract project details",
    )

    parser.add_argument(
        "--skip-geocoding",
        action="store_true",
        help="Don't geocode project locations",
    )

    parser.add_argument(
        "--concurrency",
        type=int,
        help="Parallel detail page fetches, 1-5 (default: from config, 1)",
    )

    parser.add_argument(
        "--rate-limit",
        type=float,
        help="Seconds between portal requests (default: from config, 1.0)",
    )

    parser.add_argument(
        "--clear-cache",
        choices=["scrape", "geocode", "all"],
        help="Empty the given cache before running",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )

    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Output logs as JSON (for production)",
    )

    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version and exit",
    )

    return parser.parse_args(argv)


def build_settings(args):
    """Load settings and apply command line overrides."""
    from .config.loader import load_settings

    settings = load_settings(args.config)

    if args.output:
        settings.paths.output_dir = args.output
    if args.cache_dir:
        settings.paths.cache_dir = args.cache_dir
    if args.concurrency is not None:
        settings.portal.concurrency = args.concurrency
    if args.rate_limit is not None:
        settings.portal.request_interval = args.rate_limit

    return settings


def run_check(settings) -> int:
    """Report geocoding coverage of the written dataset."""
    from .output.assembler import DATASET_FILENAME, check_geocoding, load_dataset

    logger = structlog.get_logger(__name__)

    path = Path(settings.paths.output_dir) / DATASET_FILENAME
    report = check_geocoding(load_dataset(path))

    logger.info("geocoding_status", path=str(path), **report)
    return 0


async def main_async(args) -> int:
    """Async main function."""
    from .orchestrator import BudgetPipeline

    logger = structlog.get_logger(__name__)

    settings = build_settings(args)

    if args.mode == "check":
        return run_check(settings)

    logger.info(
        "starting_budget_scraper",
        mode=args.mode,
        max_projects=args.max_projects,
        dry_run=args.dry_run,
        skip_geocoding=args.skip_geocoding,
    )

    pipeline = BudgetPipeline(
        settings=settings,
        urls_file=args.urls_file,
        skip_geocoding=args.skip_geocoding,
    )

    if args.clear_cache:
        pipeline.clear_caches(args.clear_cache)

    records = await pipeline.run(
        max_projects=args.max_projects,
        dry_run=args.dry_run,
    )

    if args.dry_run:
        logger.info(
            "dry_run_complete",
            discovered_projects=pipeline.stats["projects_discovered"],
        )
    else:
        logger.info(
            "scraping_complete",
            total_projects=len(records),
            output_dir=settings.paths.output_dir,
        )

    return 0


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    # Version check
    if args.version:
        from . import __version__
        print(f"budget-scraper {__version__}")
        sys.exit(0)

    # Setup logging
    setup_logging(args.log_level, args.json_logs)
    logger = structlog.get_logger(__name__)

    # Run async main
    try:
        sys.exit(asyncio.run(main_async(args)))
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        sys.exit(130)
    except ScraperError as e:
        logger.error("scrape_failed", error=str(e), error_code=e.error_code)
        sys.exit(1)
    except Exception as e:
        logger.exception("fatal_error", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()

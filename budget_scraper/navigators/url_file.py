"""
URL file navigator: predefined detail pages.

For runs where the detail URLs are known in advance (one per line in a
text file) instead of being discovered from the listing.
"""

from pathlib import Path
from typing import Optional, Union

from budget_scraper.core.errors import ConfigError
from budget_scraper.core.models import ProjectTarget
from budget_scraper.core.selectors import absolute_url
from budget_scraper.parsers.extractors import project_id_from_url

from .base import NavigatorStrategy, PortalConfig


def read_url_file(path: Union[str, Path]) -> list[str]:
    """
    Read detail URLs from a text file.

    Blank lines and lines starting with "#" are skipped.

    Raises:
        ConfigError: If the file cannot be read
    """
    path = Path(path)
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError as e:
        raise ConfigError(f"Cannot read URL file {path}: {e}") from e

    return [line.strip() for line in lines if line.strip() and not line.strip().startswith("#")]


class UrlFileNavigator(NavigatorStrategy):
    """
    Navigator for a predefined list of detail URLs.

    No requests are made during discovery: relative URLs are resolved
    against the portal base URL and duplicates are dropped.
    """

    def __init__(self, path: Union[str, Path], **kwargs):
        """
        Initialize with a URL file.

        Args:
            path: Text file with one detail URL per line
        """
        super().__init__(**kwargs)
        self.path = Path(path)

    async def __aenter__(self) -> "UrlFileNavigator":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        return None

    async def discover(
        self,
        portal: PortalConfig,
        max_projects: Optional[int] = None,
    ) -> list[ProjectTarget]:
        """
        Return the file's URLs as targets.

        Args:
            portal: Portal configuration
            max_projects: Optional limit

        Returns:
            List of ProjectTarget objects
        """
        targets: list[ProjectTarget] = []
        seen_urls: set[str] = set()

        for line in read_url_file(self.path):
            url = absolute_url(portal.base_url, line)
            if url in seen_urls:
                continue
            seen_urls.add(url)

            targets.append(
                ProjectTarget(
                    url=url,
                    title=None,
                    id=project_id_from_url(url),
                    metadata={"index": len(targets)},
                )
            )

            if max_projects and len(targets) >= max_projects:
                break

        self.logger.info("url_file_discovery", path=str(self.path), count=len(targets))

        return targets

"""
Project deduplication.

A project reached through two listing pages (or listed twice in a URL
file) is kept once: records are deduplicated by normalized source URL,
then by non-empty project id. The first occurrence wins.
"""

from typing import Optional

import structlog

from .models import ProjectRecord

logger = structlog.get_logger(__name__)


def normalize_url(url: str) -> str:
    """Normalize URL for comparison (case, trailing slash)."""
    return (url or "").strip().lower().rstrip("/")


class Deduplicator:
    """
    Tracks seen projects by URL and id.

    Usage:
        dedup = Deduplicator()
        unique = dedup.deduplicate(records)
    """

    def __init__(self):
        """Initialize deduplicator with empty indexes."""
        self._url_index: set[str] = set()
        self._id_index: set[str] = set()
        self._records: list[ProjectRecord] = []
        self.stats = {"kept": 0, "duplicate_url": 0, "duplicate_id": 0}

    def process(self, record: ProjectRecord) -> Optional[ProjectRecord]:
        """
        Process record through deduplication.

        Args:
            record: Record to process

        Returns:
            Record if it should be kept, None if it is a duplicate
        """
        url_key = normalize_url(record.link_zrodlowy)
        if url_key and url_key in self._url_index:
            self.stats["duplicate_url"] += 1
            logger.debug("project_skipped_duplicate", reason="url", url=record.link_zrodlowy)
            return None

        if record.id and record.id in self._id_index:
            self.stats["duplicate_id"] += 1
            logger.debug("project_skipped_duplicate", reason="id", id=record.id)
            return None

        if url_key:
            self._url_index.add(url_key)
        if record.id:
            self._id_index.add(record.id)

        self._records.append(record)
        self.stats["kept"] += 1
        return record

    def deduplicate(self, records: list[ProjectRecord]) -> list[ProjectRecord]:
        """Return unique records in their original order."""
        kept = [r for r in records if self.process(r) is not None]
        removed = self.stats["duplicate_url"] + self.stats["duplicate_id"]
        if removed:
            logger.info("duplicates_removed", removed=removed, kept=len(kept))
        return kept

    def get_all(self) -> list[ProjectRecord]:
        """Get all unique records."""
        return list(self._records)

    def clear(self) -> None:
        """Clear deduplication indexes."""
        self._url_index.clear()
        self._id_index.clear()
        self._records.clear()
        self.stats = {"kept": 0, "duplicate_url": 0, "duplicate_id": 0}

    def __len__(self) -> int:
        """Return number of unique records."""
        return len(self._records)

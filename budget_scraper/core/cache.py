"""
Persistent key-value cache backed by a single JSON file.

Used for both the scrape cache (project URL -> normalized record) and the
geocode cache (normalized address -> geocode result). Entries never expire;
the file lives until cleared by hand or with ``--clear-cache``.

Failure semantics: I/O and parse errors are logged and never raised. A
corrupt file starts an empty cache, an unwritable one keeps working in
memory only.

Not safe for several processes writing the same file at once.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

import structlog

logger = structlog.get_logger(__name__)


class DiskCache:
    """
    JSON-file cache loaded eagerly on construction.

    With ``autoflush`` (default) every ``set`` rewrites the whole file, so a
    crash never loses a completed entry. With ``autoflush=False`` callers
    must ``flush()`` at their own checkpoints.

    Usage:
        cache = DiskCache("data/.cache/scrape.json")
        if not cache.has(url):
            cache.set(url, record.to_dict())
    """

    def __init__(self, path: Union[str, Path], autoflush: bool = True):
        """
        Initialize cache and load existing entries.

        Args:
            path: Backing JSON file
            autoflush: Persist the full map on every write
        """
        self.path = Path(path)
        self.autoflush = autoflush
        self._data: dict[str, Any] = {}
        self._dirty = False
        self.logger = logger.bind(cache=self.path.name)
        self.load()

    def load(self) -> None:
        """Load entries from disk, starting empty on any failure."""
        self._data = {}

        if not self.path.exists():
            return

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            self.logger.error("cache_load_failed", path=str(self.path), error=str(e))
            return

        if not isinstance(data, dict):
            self.logger.error(
                "cache_load_failed",
                path=str(self.path),
                error=f"expected JSON object, got {type(data).__name__}",
            )
            return

        self._data = data
        self.logger.debug("cache_loaded", path=str(self.path), entries=len(data))

    def flush(self) -> bool:
        """
        Write the full map to disk.

        Writes a temp file next to the target and renames it into place.

        Returns:
            True if the file was written
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(self._data, f, ensure_ascii=False, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            self.logger.error("cache_save_failed", path=str(self.path), error=str(e))
            return False

        self._dirty = False
        return True

    def has(self, key: str) -> bool:
        return key in self._data

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Store value and persist (when autoflush is on)."""
        self._data[key] = value
        self._dirty = True
        if self.autoflush:
            self.flush()

    def delete(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._dirty = True
            if self.autoflush:
                self.flush()

    def clear(self) -> None:
        """Drop all entries and persist the empty map."""
        self._data = {}
        self._dirty = True
        self.flush()
        self.logger.info("cache_cleared", path=str(self.path))

    @property
    def dirty(self) -> bool:
        """True when memory holds writes not yet on disk."""
        return self._dirty

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

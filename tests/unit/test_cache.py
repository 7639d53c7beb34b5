"""Tests for the JSON-file disk cache."""

import json

from budget_scraper.core.cache import DiskCache


class TestDiskCache:
    """Tests for DiskCache persistence."""

    def test_round_trip_across_reload(self, tmp_path):
        """Test that entries survive a new cache instance on the same file."""
        path = tmp_path / "geocode.json"
        cache = DiskCache(path)
        cache.set("ulica Piotrkowska 1, Łódź, Poland", {"lat": 51.77, "lng": 19.45})

        reloaded = DiskCache(path)

        assert reloaded.has("ulica Piotrkowska 1, Łódź, Poland")
        assert reloaded.get("ulica Piotrkowska 1, Łódź, Poland") == {"lat": 51.77, "lng": 19.45}

    def test_file_is_utf8_json(self, tmp_path):
        """Test that Polish characters are written unescaped."""
        path = tmp_path / "cache.json"
        DiskCache(path).set("Łódź", "Bałuty")

        text = path.read_text(encoding="utf-8")

        assert "Łódź" in text
        assert json.loads(text) == {"Łódź": "Bałuty"}

    def test_missing_file_starts_empty(self, tmp_path):
        """Test that a cache without a file starts empty."""
        cache = DiskCache(tmp_path / "nope.json")

        assert len(cache) == 0
        assert cache.get("x", "default") == "default"

    def test_corrupt_file_starts_empty(self, tmp_path):
        """Test that an unparseable file is treated as empty."""
        path = tmp_path / "scrape.json"
        path.write_text("{not json", encoding="utf-8")

        cache = DiskCache(path)

        assert len(cache) == 0

    def test_non_object_file_starts_empty(self, tmp_path):
        """Test that a JSON document that is not a mapping is treated as empty."""
        path = tmp_path / "scrape.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")

        assert len(DiskCache(path)) == 0

    def test_unwritable_path_keeps_working_in_memory(self, tmp_path):
        """Test that write failures are logged, not raised."""
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory", encoding="utf-8")
        cache = DiskCache(blocker / "cache.json")

        cache.set("key", "value")

        assert cache.get("key") == "value"
        assert cache.flush() is False

    def test_autoflush_disabled_defers_writes(self, tmp_path):
        """Test that without autoflush nothing is written until flush."""
        path = tmp_path / "scrape.json"
        cache = DiskCache(path, autoflush=False)
        cache.set("a", 1)

        assert not path.exists()
        assert cache.dirty

        assert cache.flush() is True
        assert not cache.dirty
        assert DiskCache(path).get("a") == 1

    def test_delete_and_clear(self, tmp_path):
        """Test removing single entries and clearing everything."""
        path = tmp_path / "cache.json"
        cache = DiskCache(path)
        cache.set("a", None)
        cache.set("b", 2)

        cache.delete("a")
        assert "a" not in cache
        assert "b" in cache

        cache.clear()
        assert len(cache) == 0
        assert len(DiskCache(path)) == 0

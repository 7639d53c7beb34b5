"""Integration tests for the full scraping pipeline."""

import json

import httpx
import pytest

from budget_scraper.__main__ import main, parse_args
from budget_scraper.config.loader import PathsConfig, Settings
from budget_scraper.core.errors import NoProjectsFoundError, NoProjectsScrapedError
from budget_scraper.navigators.base import PortalConfig
from budget_scraper.orchestrator import BudgetPipeline

DETAIL_TEMPLATE = """
<html>
<body>
    <nav><a href="/">Start</a></nav>
    <main>
        <h1>Łódzki Budżet Obywatelski 2025/2026</h1>
        <div class="row">
            <div class="col-md-3">Rodzaj zadania:</div>
            <div class="col-md-9">OSIEDLOWE - Bałuty Centrum</div>
        </div>
        <div class="row">
            <div class="col-md-3">Kategoria:</div>
            <div class="col-md-9">Zieleń miejska</div>
        </div>
        <div class="row">
            <div class="col-md-3">Lokalizacja:</div>
            <div class="col-md-9">ul. Piotrkowska {number}</div>
        </div>
        <table>
            <tr><td>Szacunkowy koszt</td><td><strong>15 000 zł</strong></td></tr>
        </table>
        <div class="project-description">Nasadzenia drzew przy Piotrkowskiej {number}.</div>
    </main>
</body>
</html>
"""


def detail_url(number: int) -> str:
    return f"https://portal.test/szczegoly-projektu-2026-500-{number}-ab{number}"


def listing_html(count: int) -> str:
    links = "".join(
        f'<div class="project-item"><a href="{detail_url(i)}">Projekt numer {i}</a></div>'
        for i in range(1, count + 1)
    )
    return f"<html><body><main>{links}</main></body></html>"


class FakePortal:
    """MockTransport handler serving one listing page and detail pages."""

    def __init__(self, count: int, failing: bool = False):
        self.count = count
        self.failing = failing
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/zlozone-projekty-2026":
            return httpx.Response(200, text=listing_html(self.count))
        if self.failing:
            return httpx.Response(404)
        number = int(path.split("-")[-2])
        return httpx.Response(200, text=DETAIL_TEMPLATE.format(number=number))


class FakeNominatim:
    """MockTransport handler placing every query on Piotrkowska."""

    def __init__(self, clock):
        self.clock = clock
        self.stamps: list[float] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.stamps.append(self.clock.now)
        number = len(self.stamps)
        return httpx.Response(
            200,
            json=[{"lat": str(51.76 + number / 1000), "lon": "19.457", "display_name": "Piotrkowska", "importance": 0.6}],
        )


def make_settings(tmp_path, concurrency: int = 1) -> Settings:
    return Settings(
        portal=PortalConfig(
            base_url="https://portal.test",
            listing_path="/zlozone-projekty-2026",
            request_interval=0.0,
            concurrency=concurrency,
        ),
        paths=PathsConfig(output_dir=str(tmp_path / "out"), cache_dir=str(tmp_path / "cache")),
    )


def read_json(path):
    return json.loads(path.read_text(encoding="utf-8"))


class TestBudgetPipeline:
    """End-to-end pipeline runs against fake portal and geocoding services."""

    @pytest.mark.asyncio
    async def test_three_projects_end_to_end(self, tmp_path, fake_clock, fake_limiter):
        """Test discovery, scraping, geocoding and output files."""
        nominatim = FakeNominatim(fake_clock)
        pipeline = BudgetPipeline(
            settings=make_settings(tmp_path),
            transport=httpx.MockTransport(FakePortal(3)),
            geocode_transport=httpx.MockTransport(nominatim),
            geocode_rate_limiter=fake_limiter,
        )

        records = await pipeline.run()

        assert len(records) == 3

        dataset = read_json(tmp_path / "out" / "projekty.json")
        assert dataset["metadata"]["totalProjects"] == 3
        assert dataset["metadata"]["geocoded"] == 3
        assert dataset["metadata"]["source"] == "web-scraping"

        for project in dataset["projects"]:
            assert project["koszt"] == 15000
            assert project["typ"] == "OSIEDLOWE"
            assert project["osiedle"] == "Bałuty Centrum"
            assert project["kategoria"] == "Zieleń miejska"
            assert project["statusGeokodowania"] == "success"
            assert project["lat"] is not None and project["lng"] is not None
            assert project["nazwa"].startswith("Projekt numer")

        assert [p["id"] for p in dataset["projects"]] == ["P500-1", "P500-2", "P500-3"]

        geojson = read_json(tmp_path / "out" / "projekty.geo.json")
        assert len(geojson["features"]) == 3
        first = geojson["features"][0]
        assert first["geometry"]["coordinates"] == [19.457, dataset["projects"][0]["lat"]]

        assert (tmp_path / "out" / "projekty-raw.json").exists()

        assert len(nominatim.stamps) == 3
        assert all(b - a >= 1.0 for a, b in zip(nominatim.stamps, nominatim.stamps[1:]))

    @pytest.mark.asyncio
    async def test_second_run_uses_caches(self, tmp_path, fake_clock, fake_limiter):
        """Test that a rerun needs no detail fetches and no geocoding calls."""
        portal = FakePortal(3)
        nominatim = FakeNominatim(fake_clock)

        for _ in range(2):
            pipeline = BudgetPipeline(
                settings=make_settings(tmp_path),
                transport=httpx.MockTransport(portal),
                geocode_transport=httpx.MockTransport(nominatim),
                geocode_rate_limiter=fake_limiter,
            )
            await pipeline.run()

        # 1 listing + 3 details, then only the listing again
        assert len(portal.requests) == 5
        assert len(nominatim.stamps) == 3

    @pytest.mark.asyncio
    async def test_progress_checkpoint(self, tmp_path):
        """Test that partial progress is written every ten projects."""
        pipeline = BudgetPipeline(
            settings=make_settings(tmp_path),
            skip_geocoding=True,
            transport=httpx.MockTransport(FakePortal(12)),
        )

        records = await pipeline.run()

        progress = read_json(tmp_path / "cache" / "progress.json")
        assert progress["completed"] == 10
        assert progress["total"] == 12
        assert len(progress["projects"]) == 10

        assert len(records) == 12
        assert read_json(tmp_path / "out" / "projekty.json")["metadata"]["geocoded"] == 0

    @pytest.mark.asyncio
    async def test_unwritable_progress_file(self, tmp_path):
        """Test that a failing checkpoint write does not abort the run."""
        pipeline = BudgetPipeline(
            settings=make_settings(tmp_path),
            skip_geocoding=True,
            transport=httpx.MockTransport(FakePortal(12)),
        )
        # A directory in place of the file makes every write fail
        pipeline.progress_file.mkdir(parents=True)

        records = await pipeline.run()

        assert len(records) == 12
        assert pipeline.progress_file.is_dir()
        assert read_json(tmp_path / "out" / "projekty.json")["metadata"]["totalProjects"] == 12
        assert len(read_json(tmp_path / "cache" / "scrape.json")) == 12

    @pytest.mark.asyncio
    async def test_worker_pool_sorted_output(self, tmp_path):
        """Test concurrent scraping with deterministic ordering."""
        pipeline = BudgetPipeline(
            settings=make_settings(tmp_path, concurrency=3),
            skip_geocoding=True,
            transport=httpx.MockTransport(FakePortal(6)),
        )

        records = await pipeline.run()

        ids = [r.id for r in records]
        assert ids == sorted(ids)
        assert len(ids) == 6

    @pytest.mark.asyncio
    async def test_dry_run(self, tmp_path):
        """Test that a dry run stops after discovery."""
        portal = FakePortal(3)
        pipeline = BudgetPipeline(settings=make_settings(tmp_path), transport=httpx.MockTransport(portal))

        records = await pipeline.run(dry_run=True)

        assert records == []
        assert pipeline.stats["projects_discovered"] == 3
        assert len(portal.requests) == 1
        assert not (tmp_path / "out" / "projekty.json").exists()

    @pytest.mark.asyncio
    async def test_no_projects_found(self, tmp_path):
        """Test that an empty listing is a fatal error."""
        pipeline = BudgetPipeline(settings=make_settings(tmp_path), transport=httpx.MockTransport(FakePortal(0)))

        with pytest.raises(NoProjectsFoundError):
            await pipeline.run()

    @pytest.mark.asyncio
    async def test_no_projects_scraped(self, tmp_path):
        """Test that failing every detail page is a fatal error."""
        pipeline = BudgetPipeline(
            settings=make_settings(tmp_path),
            transport=httpx.MockTransport(FakePortal(2, failing=True)),
        )

        with pytest.raises(NoProjectsScrapedError):
            await pipeline.run()

        assert not (tmp_path / "out" / "projekty.json").exists()

    @pytest.mark.asyncio
    async def test_urls_file(self, tmp_path):
        """Test scraping from a prepared URL file instead of the listing."""
        urls = tmp_path / "urls.txt"
        urls.write_text(f"{detail_url(7)}\n{detail_url(8)}\n", encoding="utf-8")
        portal = FakePortal(0)

        pipeline = BudgetPipeline(
            settings=make_settings(tmp_path),
            urls_file=urls,
            skip_geocoding=True,
            transport=httpx.MockTransport(portal),
        )
        records = await pipeline.run()

        assert [r.id for r in records] == ["P500-7", "P500-8"]
        assert all(r.url.path != "/zlozone-projekty-2026" for r in portal.requests)
        assert len(portal.requests) == 2


class TestCli:
    """Tests for the command line entry point."""

    def test_parse_args(self):
        """Test flag parsing."""
        args = parse_args(["--dry-run", "--max-projects", "5", "--clear-cache", "geocode"])

        assert args.mode == "full"
        assert args.dry_run is True
        assert args.max_projects == 5
        assert args.clear_cache == "geocode"

    def test_check_mode(self, tmp_path, monkeypatch):
        """Test the geocoding coverage report on an existing dataset."""
        monkeypatch.setattr("budget_scraper.__main__.setup_logging", lambda *args: None)
        out = tmp_path / "out"
        out.mkdir()
        (out / "projekty.json").write_text(
            json.dumps({"metadata": {}, "projects": [{"lat": 51.7, "lng": 19.4}, {"lat": None, "lng": None}]}),
            encoding="utf-8",
        )

        with pytest.raises(SystemExit) as exc:
            main(["--mode", "check", "--output", str(out)])

        assert exc.value.code == 0

    def test_check_mode_missing_dataset(self, tmp_path, monkeypatch):
        """Test that a missing dataset exits with status 1."""
        monkeypatch.setattr("budget_scraper.__main__.setup_logging", lambda *args: None)

        with pytest.raises(SystemExit) as exc:
            main(["--mode", "check", "--output", str(tmp_path / "none")])

        assert exc.value.code == 1

    def test_version(self, capsys):
        """Test --version output."""
        with pytest.raises(SystemExit) as exc:
            main(["--version"])

        assert exc.value.code == 0
        assert capsys.readouterr().out.strip() == "budget-scraper 1.0.0"

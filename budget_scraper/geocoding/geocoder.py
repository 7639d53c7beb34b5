"""
Nominatim geocoder for project locations.

Turns a project's free-text location into coordinates within the city,
with a persistent cache, one shared 1 request/second limiter for the
whole run, and a fallback chain for texts the API cannot place:

1. Full address
2. District name ("osiedle X" / "dzielnica X")
3. Street name ("ulica X")
4. City center, low confidence, never cached
"""

from dataclasses import dataclass, field
from typing import Any, Optional

import httpx
import structlog

from budget_scraper.core.cache import DiskCache
from budget_scraper.core.errors import FetchError
from budget_scraper.core.http_client import HttpClient
from budget_scraper.core.models import GeocodeResult, GeocodeStatus, ProjectRecord
from budget_scraper.core.rate_limiter import RateLimiter

from .address import build_query, extract_district, extract_street, normalize_address

logger = structlog.get_logger(__name__)


CITY_CENTER_LABEL = "Łódź, Poland (City Center - Fallback)"
CITY_CENTER_CONFIDENCE = 0.1
DEFAULT_IMPORTANCE = 0.5


@dataclass
class GeocoderConfig:
    """Geocoding service and city settings."""

    endpoint: str = "https://nominatim.openstreetmap.org/search"
    city: str = "Łódź"
    country: str = "Poland"
    country_code: str = "pl"
    viewbox: str = "19.2,51.6,19.7,51.9"  # lng_min,lat_min,lng_max,lat_max

    # Results outside this box are rejected
    bounds: dict = field(
        default_factory=lambda: {"lat_min": 51.6, "lat_max": 51.9, "lng_min": 19.2, "lng_max": 19.7}
    )
    center: tuple[float, float] = (51.7592, 19.4560)

    email: str = "admin@budzetobywatelski.pl"
    request_interval: float = 1.0  # Nominatim usage policy: max 1 req/s
    timeout: float = 10.0

    @property
    def user_agent(self) -> str:
        return f"BudzetObywatelskiScraper/1.0 ({self.email})"

    def in_bounds(self, lat: float, lng: float) -> bool:
        b = self.bounds
        return b["lat_min"] <= lat <= b["lat_max"] and b["lng_min"] <= lng <= b["lng_max"]

    @classmethod
    def from_dict(cls, data: dict) -> "GeocoderConfig":
        """Create from dictionary (e.g., from YAML)."""
        defaults = cls()
        center = data.get("center")
        return cls(
            endpoint=data.get("endpoint", defaults.endpoint),
            city=data.get("city", defaults.city),
            country=data.get("country", defaults.country),
            country_code=data.get("country_code", defaults.country_code),
            viewbox=data.get("viewbox", defaults.viewbox),
            bounds={**defaults.bounds, **(data.get("bounds") or {})},
            center=(float(center[0]), float(center[1])) if center else defaults.center,
            email=data.get("email") or defaults.email,
            request_interval=float(data.get("request_interval", defaults.request_interval)),
            timeout=float(data.get("timeout", defaults.timeout)),
        )


class Geocoder:
    """
    Cached, rate-limited Nominatim geocoder.

    Usage:
        async with Geocoder(config, cache=DiskCache(".cache/geocode.json")) as geocoder:
            stats = await geocoder.geocode_projects(records)
    """

    def __init__(
        self,
        config: Optional[GeocoderConfig] = None,
        http_client: Optional[HttpClient] = None,
        cache: Optional[DiskCache] = None,
        rate_limiter: Optional[RateLimiter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize geocoder.

        Args:
            config: Service settings (defaults to public Nominatim, Łódź)
            http_client: HTTP client (creates own if not provided)
            cache: Geocode cache keyed by normalized address
            rate_limiter: Limiter owning the request cadence
            transport: Custom httpx transport for the own client
        """
        self.config = config or GeocoderConfig()
        self.http_client = http_client
        self._owns_client = http_client is None
        self.cache = cache
        self.rate_limiter = rate_limiter or RateLimiter(min_interval=self.config.request_interval)
        self.transport = transport

    async def __aenter__(self) -> "Geocoder":
        """Enter async context."""
        if self._owns_client:
            # Cadence is owned by self.rate_limiter, not the client
            self.http_client = HttpClient(
                min_interval=0.0,
                timeout=self.config.timeout,
                rotate_user_agent=False,
                headers={"Accept": "application/json", "Accept-Language": "pl"},
                transport=self.transport,
            )
            await self.http_client.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context."""
        if self._owns_client and self.http_client:
            await self.http_client.__aexit__(exc_type, exc_val, exc_tb)

    def cache_key(self, normalized: str) -> str:
        return f"{normalized}, {self.config.city}, {self.config.country}"

    def city_center(self) -> GeocodeResult:
        lat, lng = self.config.center
        return GeocodeResult(
            lat=lat,
            lng=lng,
            display_name=CITY_CENTER_LABEL,
            confidence=CITY_CENTER_CONFIDENCE,
        )

    async def geocode_address(self, address: str) -> Optional[GeocodeResult]:
        """
        Geocode a free-text location.

        Args:
            address: Location text, e.g. "ul. Piotrkowska 1"

        Returns:
            GeocodeResult (possibly the city-center fallback), or None for
            empty input and on transport errors
        """
        if not address or not address.strip():
            return None

        return await self._geocode(address, chain=())

    async def _geocode(self, address: str, chain: tuple[str, ...]) -> Optional[GeocodeResult]:
        normalized = normalize_address(address)
        if not normalized:
            # Punctuation-only text, nothing the API could place
            logger.warning("geocode_city_center_fallback", address=address)
            return self.city_center()

        key = self.cache_key(normalized)
        if self.cache is not None and self.cache.has(key):
            logger.debug("geocode_cache_hit", key=key)
            return GeocodeResult.from_dict(self.cache.get(key))

        if not self.http_client:
            raise RuntimeError("Geocoder not initialized. Use 'async with' context.")

        await self.rate_limiter.wait()

        query = build_query(normalized, self.config.city, self.config.country)
        logger.debug("geocode_query", query=query)

        try:
            payload = await self.http_client.get_json(
                self.config.endpoint,
                params={
                    "q": query,
                    "format": "json",
                    "limit": 1,
                    "countrycodes": self.config.country_code,
                    "viewbox": self.config.viewbox,
                    "bounded": 0,
                },
                headers={"User-Agent": self.config.user_agent},
            )
        except FetchError as e:
            logger.error("geocode_request_failed", address=address, error=str(e))
            return None

        result = self._parse_result(payload)

        if result is not None and self.config.in_bounds(result.lat, result.lng):
            if self.cache is not None:
                self.cache.set(key, result.to_dict())
            logger.info("geocoded", address=normalized, lat=result.lat, lng=result.lng)
            return result

        if result is not None:
            logger.warning("geocode_out_of_bounds", address=normalized, lat=result.lat, lng=result.lng)
        else:
            logger.warning("geocode_no_result", address=normalized)

        return await self._fallback(normalized, chain + (normalized,))

    async def _fallback(self, normalized: str, chain: tuple[str, ...]) -> Optional[GeocodeResult]:
        """District, then street, then the city center."""
        district = extract_district(normalized)
        if district:
            fallback = district
        else:
            street = extract_street(normalized)
            fallback = f"ulica {street}" if street else None

        if fallback and normalize_address(fallback) not in chain:
            logger.debug("geocode_fallback", address=normalized, fallback=fallback)
            return await self._geocode(fallback, chain)

        logger.warning("geocode_city_center_fallback", address=normalized)
        return self.city_center()

    def _parse_result(self, payload: Any) -> Optional[GeocodeResult]:
        """First Nominatim hit, or None for an empty or malformed answer."""
        if not isinstance(payload, list) or not payload:
            return None

        hit = payload[0]
        try:
            lat = float(hit["lat"])
            lng = float(hit["lon"])
        except (KeyError, TypeError, ValueError):
            logger.warning("geocode_malformed_result", result=hit)
            return None

        try:
            importance = float(hit.get("importance") or DEFAULT_IMPORTANCE)
        except (TypeError, ValueError):
            importance = DEFAULT_IMPORTANCE

        return GeocodeResult(
            lat=lat,
            lng=lng,
            display_name=hit.get("display_name", ""),
            confidence=max(0.0, min(1.0, importance)),
        )

    async def geocode_projects(self, records: list[ProjectRecord]) -> dict[str, int]:
        """
        Geocode records in place, one at a time.

        Records whose page carried map coordinates keep them, unless the
        coordinates fall outside the city bounds.

        Args:
            records: Normalized project records

        Returns:
            Stats: geocoded, failed, no_address, preset
        """
        stats = {"geocoded": 0, "failed": 0, "no_address": 0, "preset": 0}
        total = len(records)

        logger.info("geocoding_started", total=total)

        for i, record in enumerate(records, start=1):
            logger.debug("geocoding_progress", current=i, total=total, id=record.id)

            if record.has_coordinates and record.status == GeocodeStatus.SUCCESS:
                if self.config.in_bounds(record.lat, record.lng):
                    stats["preset"] += 1
                    continue
                logger.warning("preset_out_of_bounds", id=record.id, lat=record.lat, lng=record.lng)

            if not record.lokalizacja_tekst:
                record.clear_coordinates(GeocodeStatus.NO_ADDRESS)
                stats["no_address"] += 1
                continue

            result = await self.geocode_address(record.lokalizacja_tekst)
            if result is None:
                record.clear_coordinates(GeocodeStatus.FAILED)
                stats["failed"] += 1
                continue

            record.mark_geocoded(result.lat, result.lng, result.confidence)
            stats["geocoded"] += 1

        logger.info("geocoding_complete", **stats)

        return stats

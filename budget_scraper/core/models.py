"""
Data models for the budget scraper.

Serialized keys follow the canonical dataset schema consumed by the
static site (Polish field names, camelCase).
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class ProjectType(str, Enum):
    """Canonical civic budget project scopes."""
    OSIEDLOWE = "OSIEDLOWE"  # Single district
    PONADOSIEDLOWE = "PONADOSIEDLOWE"  # Several districts
    OGOLNOMIEJSKIE = "OGÓLNOMIEJSKIE"  # Whole city


class GeocodeStatus(str, Enum):
    """Geocoding outcome for a project."""
    SUCCESS = "success"
    FAILED = "failed"
    NO_ADDRESS = "no_address"


DEFAULT_STREET_VIEW = {"heading": 0, "pitch": 0, "fov": 90}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class ProjectTarget:
    """
    Target for scraping - a discovered project detail URL.

    Used by navigators to pass discovery results to parsers.
    """
    url: str
    title: Optional[str] = None
    id: str = ""

    # Listing-page hints (type, district)
    metadata: dict = field(default_factory=dict)


@dataclass
class GeocodeResult:
    """Single geocoding answer, persisted in the geocode cache."""
    lat: float
    lng: float
    display_name: str = ""
    confidence: float = 0.5
    timestamp: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "GeocodeResult":
        return cls(
            lat=float(data["lat"]),
            lng=float(data["lng"]),
            display_name=data.get("display_name", ""),
            confidence=float(data.get("confidence", 0.5)),
            timestamp=data.get("timestamp") or utc_now_iso(),
        )


@dataclass
class ProjectRecord:
    """
    One civic budget proposal.

    This is the primary output of the scraping pipeline. Invariant:
    ``lat``/``lng`` are set exactly when ``status`` is SUCCESS.
    """

    id: str = ""
    nazwa: str = ""
    typ: str = ""
    kategoria: str = ""
    osiedle: str = ""
    lokalizacja_tekst: str = ""
    koszt: int = 0
    opis: str = ""

    # Geocoding
    lat: Optional[float] = None
    lng: Optional[float] = None
    status: GeocodeStatus = GeocodeStatus.NO_ADDRESS
    geocode_confidence: Optional[float] = None
    link_google_maps: Optional[str] = None
    street_view: Optional[dict] = None

    # Provenance
    link_zrodlowy: str = ""
    data_pobrania: str = field(default_factory=utc_now_iso)

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None

    def mark_geocoded(self, lat: float, lng: float, confidence: float) -> None:
        """Attach coordinates and the derived map fields."""
        self.lat = lat
        self.lng = lng
        self.status = GeocodeStatus.SUCCESS
        self.geocode_confidence = max(0.0, min(1.0, confidence))
        self.link_google_maps = f"https://www.google.com/maps?q={lat},{lng}"
        self.street_view = dict(DEFAULT_STREET_VIEW)

    def clear_coordinates(self, status: GeocodeStatus) -> None:
        """Drop coordinates and record a non-success status."""
        self.lat = None
        self.lng = None
        self.status = status
        self.geocode_confidence = None
        self.link_google_maps = None
        self.street_view = None

    def to_dict(self) -> dict:
        """Convert to canonical dataset schema for JSON serialization."""
        data: dict[str, Any] = {
            "id": self.id,
            "nazwa": self.nazwa,
            "typ": self.typ,
            "kategoria": self.kategoria,
            "osiedle": self.osiedle,
            "lokalizacjaTekst": self.lokalizacja_tekst,
            "koszt": self.koszt,
            "opis": self.opis,
            "lat": self.lat,
            "lng": self.lng,
            "statusGeokodowania": self.status.value,
        }
        if self.status == GeocodeStatus.SUCCESS:
            data["geocodeConfidence"] = self.geocode_confidence
            data["linkGoogleMaps"] = self.link_google_maps
            data["streetView"] = self.street_view
        data["linkZrodlowy"] = self.link_zrodlowy
        data["dataPobrania"] = self.data_pobrania
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ProjectRecord":
        """Rebuild a record from its canonical dict (scrape cache, dataset)."""
        try:
            status = GeocodeStatus(data.get("statusGeokodowania", GeocodeStatus.NO_ADDRESS.value))
        except ValueError:
            status = GeocodeStatus.NO_ADDRESS

        record = cls(
            id=data.get("id") or "",
            nazwa=data.get("nazwa") or "",
            typ=data.get("typ") or "",
            kategoria=data.get("kategoria") or "",
            osiedle=data.get("osiedle") or "",
            lokalizacja_tekst=data.get("lokalizacjaTekst") or "",
            koszt=max(0, int(data.get("koszt") or 0)),
            opis=data.get("opis") or "",
            link_zrodlowy=data.get("linkZrodlowy") or "",
            data_pobrania=data.get("dataPobrania") or utc_now_iso(),
        )

        lat, lng = data.get("lat"), data.get("lng")
        if status == GeocodeStatus.SUCCESS and lat is not None and lng is not None:
            record.mark_geocoded(
                float(lat), float(lng), float(data.get("geocodeConfidence") or 0.0)
            )
        elif status == GeocodeStatus.SUCCESS:
            record.clear_coordinates(GeocodeStatus.FAILED)
        else:
            record.clear_coordinates(status)

        return record

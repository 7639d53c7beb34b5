"""
Normalization utilities for scraped civic budget data.

Handles:
- Whitespace cleanup of scraped text
- Project type mapping (OSIEDLOWE / PONADOSIEDLOWE / OGÓLNOMIEJSKIE)
- Polish cost strings ("15 000 zł", "12 345,67 zł")
"""

import math
import re
from typing import Any, Optional, Union

import structlog

from .models import ProjectRecord, ProjectType, utc_now_iso

logger = structlog.get_logger(__name__)


# Confidence assigned to coordinates read from the page's own map widget
MAP_WIDGET_CONFIDENCE = 1.0

# Checked in order, first substring hit wins. PONADOSIEDLOW must precede
# OSIEDLOW, which it contains.
TYPE_PATTERNS = [
    ("PONADOSIEDLOW", ProjectType.PONADOSIEDLOWE),
    ("OSIEDLOW", ProjectType.OSIEDLOWE),
    ("OGÓLNOMIEJSK", ProjectType.OGOLNOMIEJSKIE),
    ("OGOLNOMIEJSK", ProjectType.OGOLNOMIEJSKIE),
    ("MIEJSK", ProjectType.OGOLNOMIEJSKIE),
]


def clean_text(text: Optional[str]) -> str:
    """
    Collapse whitespace runs (newlines, tabs, NBSP) to one space and trim.

    Args:
        text: Raw text from HTML

    Returns:
        Cleaned text ("" for None)
    """
    if not text:
        return ""

    return re.sub(r"\s+", " ", text).strip()


def normalize_type(text: Optional[str]) -> str:
    """
    Map free-text project type to its canonical value.

    - "Osiedlowe - Bałuty" -> "OSIEDLOWE"
    - "ponadosiedlowe" -> "PONADOSIEDLOWE"
    - "ogólnomiejski" -> "OGÓLNOMIEJSKIE"
    - anything else -> uppercased input, "" when empty
    """
    if not text:
        return ""

    normalized = clean_text(text).upper()

    for marker, canonical in TYPE_PATTERNS:
        if marker in normalized:
            return canonical.value

    return normalized


def parse_cost(value: Union[str, int, float, None]) -> int:
    """
    Parse a localized cost string into whole currency units.

    Every non-digit character is dropped, so thousands separators,
    currency suffixes and the decimal comma all disappear:

    - "15 000 zł" -> 15000
    - "12 345,67 zł" -> 1234567
    - "" / None / "brak" -> 0

    Args:
        value: Cost as scraped (or already numeric)

    Returns:
        Non-negative integer
    """
    if value is None or value == "":
        return 0

    if isinstance(value, bool):
        return 0

    if isinstance(value, (int, float)):
        return max(0, int(value))

    digits = re.sub(r"\D", "", str(value))
    if not digits:
        return 0

    try:
        return int(digits)
    except ValueError:
        logger.warning("unparseable_cost", value=value)
        return 0


def parse_coordinates(lat: Any, lng: Any) -> Optional[tuple[float, float]]:
    """
    Parse a latitude/longitude pair from scraped attribute values.

    Unset map widgets carry "0", "NaN" or nothing at all, so zero and
    non-finite values are rejected.

    Returns:
        (lat, lng) or None
    """
    try:
        parsed = (float(lat), float(lng))
    except (TypeError, ValueError):
        return None

    if not all(math.isfinite(v) and v != 0.0 for v in parsed):
        return None

    return parsed


def normalize_project(raw: dict, source_url: str = "") -> ProjectRecord:
    """
    Build a canonical ProjectRecord from raw extracted fields.

    Args:
        raw: Field map from the extractor chain (id, nazwa, typ, kategoria,
             osiedle, lokalizacja, koszt, opis, optional lat/lng)
        source_url: Detail page URL

    Returns:
        ProjectRecord (not yet geocoded unless the page carried coordinates)
    """
    record = ProjectRecord(
        id=clean_text(raw.get("id")),
        nazwa=clean_text(raw.get("nazwa")),
        typ=normalize_type(raw.get("typ")),
        kategoria=clean_text(raw.get("kategoria")),
        osiedle=clean_text(raw.get("osiedle")),
        lokalizacja_tekst=clean_text(raw.get("lokalizacja")),
        koszt=parse_cost(raw.get("koszt")),
        opis=clean_text(raw.get("opis")),
        link_zrodlowy=source_url,
        data_pobrania=utc_now_iso(),
    )

    coordinates = parse_coordinates(raw.get("lat"), raw.get("lng"))
    if coordinates is not None:
        record.mark_geocoded(*coordinates, MAP_WIDGET_CONFIDENCE)

    return record

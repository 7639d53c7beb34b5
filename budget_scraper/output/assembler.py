"""
Output assembly for the static site.

Builds the canonical dataset (``projekty.json``), the GeoJSON layer for
the map (``projekty.geo.json``) and the end-of-run summary, and writes
JSON files.
"""

import json
from collections import Counter
from pathlib import Path
from typing import Any, Optional, Union

import structlog

from budget_scraper.core.errors import OutputError
from budget_scraper.core.models import GeocodeStatus, ProjectRecord, utc_now_iso

logger = structlog.get_logger(__name__)


DATASET_VERSION = "1.0.0"
DATASET_SOURCE = "web-scraping"
GEOJSON_DESCRIPTION_LENGTH = 200

DATASET_FILENAME = "projekty.json"
GEOJSON_FILENAME = "projekty.geo.json"
RAW_FILENAME = "projekty-raw.json"


def _count_status(records: list[ProjectRecord], status: GeocodeStatus) -> int:
    return sum(1 for r in records if r.status == status)


def build_dataset(records: list[ProjectRecord], generated_at: Optional[str] = None) -> dict:
    """
    Build the canonical dataset document.

    Args:
        records: Final project records
        generated_at: ISO timestamp (defaults to now, UTC)

    Returns:
        {"metadata": {...}, "projects": [...]}
    """
    return {
        "metadata": {
            "version": DATASET_VERSION,
            "generatedAt": generated_at or utc_now_iso(),
            "totalProjects": len(records),
            "source": DATASET_SOURCE,
            "geocoded": _count_status(records, GeocodeStatus.SUCCESS),
            "failed": _count_status(records, GeocodeStatus.FAILED),
        },
        "projects": [r.to_dict() for r in records],
    }


def build_geojson(records: list[ProjectRecord]) -> dict:
    """
    Build a FeatureCollection of the records that have coordinates.

    Coordinates follow GeoJSON order: [lng, lat].
    """
    features = []

    for record in records:
        if not record.has_coordinates:
            continue

        features.append(
            {
                "type": "Feature",
                "properties": {
                    "id": record.id,
                    "nazwa": record.nazwa,
                    "typ": record.typ,
                    "kategoria": record.kategoria,
                    "osiedle": record.osiedle,
                    "koszt": record.koszt,
                    "opis": record.opis[:GEOJSON_DESCRIPTION_LENGTH],
                    "linkZrodlowy": record.link_zrodlowy,
                },
                "geometry": {
                    "type": "Point",
                    "coordinates": [record.lng, record.lat],
                },
            }
        )

    return {"type": "FeatureCollection", "features": features}


def summarize(records: list[ProjectRecord]) -> dict[str, Any]:
    """
    Summary statistics for the end-of-run report.

    Returns:
        Status counts, distinct categories/types/districts and cost analysis
    """
    with_cost = [r.koszt for r in records if r.koszt > 0]
    cost: dict[str, int] = {"with_cost": len(with_cost)}
    if with_cost:
        total = sum(with_cost)
        cost.update(
            total=total,
            average=round(total / len(with_cost)),
            min=min(with_cost),
            max=max(with_cost),
        )

    return {
        "total": len(records),
        "geocoded": _count_status(records, GeocodeStatus.SUCCESS),
        "failed": _count_status(records, GeocodeStatus.FAILED),
        "no_address": _count_status(records, GeocodeStatus.NO_ADDRESS),
        "categories": sorted({r.kategoria for r in records if r.kategoria}),
        "types": dict(Counter(r.typ for r in records if r.typ).most_common()),
        "districts": sorted({r.osiedle for r in records if r.osiedle}),
        "cost": cost,
    }


def write_json(path: Union[str, Path], data: Any) -> Path:
    """
    Write JSON as UTF-8 (non-ASCII kept), indented, creating parent dirs.

    Raises:
        OutputError: If the file cannot be written
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
    except (OSError, TypeError) as e:
        raise OutputError(f"Cannot write {path}: {e}") from e

    logger.info("saved_json", path=str(path))
    return path


def load_dataset(path: Union[str, Path]) -> dict:
    """
    Load a previously written dataset.

    Raises:
        OutputError: If the file is missing or not a dataset document
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise OutputError(f"Cannot read dataset {path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("projects"), list):
        raise OutputError(f"Not a project dataset: {path}")

    return data


def check_geocoding(dataset: dict) -> dict[str, int]:
    """Coverage report: how many projects in a dataset carry coordinates."""
    projects = dataset.get("projects", [])
    with_coords = sum(
        1 for p in projects if p.get("lat") is not None and p.get("lng") is not None
    )
    return {
        "total": len(projects),
        "with_coordinates": with_coords,
        "without_coordinates": len(projects) - with_coords,
    }

"""
Output layer - dataset, GeoJSON and run summary.
"""

from .assembler import (
    DATASET_FILENAME,
    GEOJSON_FILENAME,
    RAW_FILENAME,
    build_dataset,
    build_geojson,
    check_geocoding,
    load_dataset,
    summarize,
    write_json,
)

__all__ = [
    "DATASET_FILENAME",
    "GEOJSON_FILENAME",
    "RAW_FILENAME",
    "build_dataset",
    "build_geojson",
    "check_geocoding",
    "load_dataset",
    "summarize",
    "write_json",
]

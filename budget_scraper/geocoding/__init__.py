"""
Geocoding layer - project locations to coordinates.

Components:
- address: Polish address normalization and query building
- geocoder: Cached, rate-limited Nominatim client with fallbacks
"""

from .address import build_query, normalize_address
from .geocoder import Geocoder, GeocoderConfig

__all__ = [
    "Geocoder",
    "GeocoderConfig",
    "build_query",
    "normalize_address",
]

"""
Budget Scraper - Łódź civic budget project scraping pipeline.

Architecture:
- core/: Stable foundation (models, HTTP client, rate limiter, disk cache, normalizers)
- navigators/: Discovery strategies (paginated listing, URL file)
- parsers/: Detail page extraction (ordered extractor chain)
- geocoding/: Nominatim geocoder with fallback chain
- output/: Canonical dataset and GeoJSON assembly
- config/: YAML-driven settings
"""

__version__ = "1.0.0"
__all__ = ["__version__"]

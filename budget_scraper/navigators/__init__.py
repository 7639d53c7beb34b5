"""
Navigator strategies for project discovery.

Navigators handle the discovery phase - finding all project detail URLs
on the portal.

Strategies:
- PaginatedListingNavigator: listing pages → detail pages
- UrlFileNavigator: detail URLs read from a text file
"""

from .base import NavigatorStrategy, PortalConfig
from .listing import PaginatedListingNavigator
from .url_file import UrlFileNavigator

__all__ = [
    "NavigatorStrategy",
    "PortalConfig",
    "PaginatedListingNavigator",
    "UrlFileNavigator",
]

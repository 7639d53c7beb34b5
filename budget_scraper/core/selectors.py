"""
Shared HTML helpers for the portal's listing and detail pages.

Provides the label vocabulary used to recognise labelled fields
("Typ:", "Szacunkowy koszt", ...) plus small BeautifulSoup utilities.
"""

import re
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag


# Common selectors for finding main content
MAIN_SELECTORS = [
    "main",
    "article",
    "#content",
    ".content",
    ".container",
    "body",
]

# Elements that carry a field label on detail pages
LABEL_SELECTORS = (
    "strong, b, dt, th, .label, .field-label, .detail-label, "
    ".font-weight-bold, .row .col-md-3"
)

# Field vocabulary, checked in order: (field, keyword patterns, excluded patterns).
# Label text is lowercased before matching.
LABEL_VOCABULARY = [
    ("typ", [r"rodzaj zadania", r"typ"], [r"tytu"]),
    ("id", [r"\bnumer\b", r"\bid\b"], []),
    ("nazwa", [r"nazwa", r"tytuł", r"tytul"], [r"osiedl"]),
    ("kategoria", [r"kategori"], []),
    ("osiedle", [r"osiedl", r"dzielnic"], []),
    ("lokalizacja", [r"lokalizac", r"miejsce"], []),
    ("koszt", [r"koszt", r"budżet", r"budzet", r"szacunkow"], []),
    ("opis", [r"opis"], []),
]

# Labels are short; long bold runs are prose, not labels
MAX_LABEL_LENGTH = 60

# Selectors for project description blocks
DESCRIPTION_SELECTORS = [
    ".project-description",
    ".opis-projektu",
    ".description",
]

# Selectors for title fallbacks
TITLE_SELECTORS = ["h1", "h2", ".project-title", ".page-title"]


def element_text(element: Optional[Tag]) -> str:
    """Visible text of element with whitespace collapsed."""
    if element is None:
        return ""
    return re.sub(r"\s+", " ", element.get_text(" ", strip=True)).strip()


def match_label(text: str) -> Optional[str]:
    """
    Match label text against the field vocabulary.

    Args:
        text: Label text, e.g. "Szacunkowy koszt:"

    Returns:
        Field name ("typ", "koszt", ...) or None
    """
    if not text:
        return None

    label = text.lower().strip().rstrip(":").strip()
    if not label or len(label) > MAX_LABEL_LENGTH:
        return None

    for field_name, patterns, excludes in LABEL_VOCABULARY:
        if any(re.search(p, label) for p in excludes):
            continue
        if any(re.search(p, label) for p in patterns):
            return field_name

    return None


def looks_like_label_line(text: str) -> bool:
    """True for lines such as "Opis projektu:" or "Koszt: 15 000 zł"."""
    stripped = text.strip()
    if stripped.endswith(":"):
        return True

    prefix = re.match(r"^([^:]{1,40}):", stripped)
    return bool(prefix and match_label(prefix.group(1)))


def get_main_container(soup: BeautifulSoup) -> Tag:
    """
    Find the main content container in the page.

    Tries selectors from MAIN_SELECTORS in order.

    Args:
        soup: Parsed HTML

    Returns:
        Main container element or soup fallback
    """
    for selector in MAIN_SELECTORS:
        container = soup.select_one(selector)
        if container:
            return container
    return soup


def cleanup_navigation(soup: BeautifulSoup) -> None:
    """
    Remove navigation, footer, scripts from soup.

    Modifies soup in place.
    """
    for elem in soup.select("nav, footer, script, style, noscript, aside, .sidebar, .menu, .navigation, .cookie"):
        elem.decompose()


def absolute_url(base_url: str, href: str) -> str:
    """Resolve href against the portal base URL."""
    return urljoin(base_url.rstrip("/") + "/", href.strip())

"""
Ordered chain of detail-page extractors.

Each extractor is a pure function ``(soup, context) -> dict`` returning only
the fields it found. ``run_extractors`` merges the partial maps left to
right: the first non-empty value for a field wins, later extractors only
fill gaps.

Order:
1. URL identifier
2. Labelled pairs (bold text, <dt>, <th> followed by a value)
3. Table rows (first cell label, last cell value, bold "zł" cost signal)
4. Free text (first heading, first long paragraph)
5. Cost regex over the whole page
6. Map widget coordinates
"""

import re
from dataclasses import dataclass
from typing import Callable, Optional

from bs4 import BeautifulSoup, Tag

from budget_scraper.core.normalizer import parse_coordinates
from budget_scraper.core.selectors import (
    DESCRIPTION_SELECTORS,
    LABEL_SELECTORS,
    TITLE_SELECTORS,
    element_text,
    get_main_container,
    looks_like_label_line,
    match_label,
)

# Detail URL: szczegoly-projektu-<edition>-<a>-<b>-<hash>
PROJECT_ID_PATTERN = re.compile(r"szczegoly-projektu-\d+-(\d+)-(\d+)-([a-f0-9]+)")

COST_PATTERN = re.compile(r"\d[\d\s]*(?:,\d{2})?\s*(?:zł|PLN|złotych)", re.IGNORECASE)

DISTRICT_IN_TEXT_PATTERN = re.compile(r"Osiedle:\s*([^;]+)", re.IGNORECASE)

MIN_DESCRIPTION_LENGTH = 100

MAP_WIDGET_SELECTORS = [
    ".we-mapcreator[data-default-lon][data-default-lat]",
    "[data-default-lon][data-default-lat]",
]


@dataclass
class ExtractionContext:
    """Per-page inputs extractors may use besides the HTML."""
    url: str
    listing_title: Optional[str] = None
    banner_title: str = ""


Extractor = Callable[[BeautifulSoup, ExtractionContext], dict]


def project_id_from_url(url: str) -> str:
    """
    Build the project identifier from a detail URL.

    ".../szczegoly-projektu-2026-1401956735-1401958701-4a5b..." -> "P1401956735-1401958701"
    """
    match = PROJECT_ID_PATTERN.search(url or "")
    if not match:
        return ""
    return f"P{match.group(1)}-{match.group(2)}"


def _set_if_empty(fields: dict, name: str, value: Optional[str]) -> None:
    if value and not fields.get(name):
        fields[name] = value


def _accept_value(field_name: str, value: str) -> bool:
    """Field-specific sanity checks on a labelled value."""
    if not value:
        return False
    if field_name == "koszt":
        return bool(re.search(r"\d", value))
    if field_name == "opis":
        return not looks_like_label_line(value)
    return True


def _is_label_text(text: str) -> bool:
    return text.endswith(":") and match_label(text) is not None


def _label_value(label: Tag) -> str:
    """Value text for a label element: next sibling, inline tail, or the parent's sibling."""
    sibling = label.find_next_sibling()
    if sibling is not None and not _is_label_text(element_text(sibling)):
        text = element_text(sibling)
        if text:
            return text

    parent = label.parent
    if parent is not None and parent.name not in ("body", "[document]"):
        full = element_text(parent)
        own = element_text(label)
        if full.startswith(own):
            tail = full[len(own):].strip().lstrip(":").strip()
            if tail:
                return tail

        parent_sibling = parent.find_next_sibling()
        if parent_sibling is not None and not _is_label_text(element_text(parent_sibling)):
            return element_text(parent_sibling)

    return ""


def _split_type_and_district(value: str) -> tuple[str, str]:
    """'OSIEDLOWE - Bałuty Centrum' -> ('OSIEDLOWE', 'Bałuty Centrum')."""
    parts = [p.strip() for p in value.split(" - ")]
    if len(parts) > 1:
        return parts[0], " - ".join(p for p in parts[1:] if p)
    return value, ""


def _assign(fields: dict, field_name: str, value: str) -> None:
    """Store a labelled value, deriving the district where the value embeds one."""
    if field_name == "typ":
        typ, district = _split_type_and_district(value)
        _set_if_empty(fields, "typ", typ)
        _set_if_empty(fields, "osiedle", district)
        return

    if field_name == "lokalizacja":
        district = DISTRICT_IN_TEXT_PATTERN.search(value)
        if district:
            _set_if_empty(fields, "osiedle", district.group(1).strip())

    _set_if_empty(fields, field_name, value)


def extract_url_identifier(soup: BeautifulSoup, context: ExtractionContext) -> dict:
    """Project id encoded in the detail URL."""
    project_id = project_id_from_url(context.url)
    return {"id": project_id} if project_id else {}


def extract_labelled_pairs(soup: BeautifulSoup, context: ExtractionContext) -> dict:
    """
    Labelled-pair strategy.

    Walks label-like elements and takes the adjacent element's text as the
    value of the matched field.
    """
    fields: dict = {}

    for label in soup.select(LABEL_SELECTORS):
        field_name = match_label(element_text(label))
        if not field_name or fields.get(field_name):
            continue

        value = _label_value(label)
        if _accept_value(field_name, value):
            _assign(fields, field_name, value)

    return fields


def extract_table_rows(soup: BeautifulSoup, context: ExtractionContext) -> dict:
    """
    Table-row strategy.

    First cell is the label, last cell the value. A last cell with bold
    text and a "zł" amount is taken as the cost whatever its label says.
    """
    fields: dict = {}
    strong_cost = ""

    for row in soup.select("table tr"):
        cells = row.find_all(["td", "th"], recursive=False)
        if len(cells) < 2:
            continue

        label_text = element_text(cells[0])
        last_cell = cells[-1]
        value = element_text(last_cell)

        if not strong_cost and last_cell.find(["strong", "b"]) and "zł" in value:
            strong_cost = value

        field_name = match_label(label_text)
        if field_name and not fields.get(field_name) and _accept_value(field_name, value):
            _assign(fields, field_name, value)

    if strong_cost:
        fields["koszt"] = strong_cost

    return fields


def extract_free_text(soup: BeautifulSoup, context: ExtractionContext) -> dict:
    """
    Free-text fallback.

    Title from the first heading, description from the first long
    paragraph-like block that is not itself a label line.
    """
    fields: dict = {}

    for selector in TITLE_SELECTORS:
        title = element_text(soup.select_one(selector))
        if title:
            fields["nazwa"] = title
            break

    for selector in DESCRIPTION_SELECTORS:
        description = element_text(soup.select_one(selector))
        if description:
            fields["opis"] = description
            return fields

    container = get_main_container(soup)
    candidates = list(container.find_all("p")) + [
        div for div in container.find_all("div")
        if div.find(["div", "p", "table", "ul", "ol", "dl"]) is None
    ]
    for block in candidates:
        text = element_text(block)
        if len(text) > MIN_DESCRIPTION_LENGTH and not looks_like_label_line(text):
            fields["opis"] = text
            break

    return fields


def extract_cost_from_text(soup: BeautifulSoup, context: ExtractionContext) -> dict:
    """First currency amount anywhere in the page text."""
    match = COST_PATTERN.search(soup.get_text(" ", strip=True))
    return {"koszt": match.group(0).strip()} if match else {}


def extract_map_widget(soup: BeautifulSoup, context: ExtractionContext) -> dict:
    """Coordinates embedded in the page's map widget data attributes."""
    for selector in MAP_WIDGET_SELECTORS:
        widget = soup.select_one(selector)
        if widget is None:
            continue

        coordinates = parse_coordinates(widget.get("data-default-lat"), widget.get("data-default-lon"))
        if coordinates is None:
            continue

        lat, lng = coordinates
        return {"lat": lat, "lng": lng}

    return {}


DEFAULT_EXTRACTORS: list[Extractor] = [
    extract_url_identifier,
    extract_labelled_pairs,
    extract_table_rows,
    extract_free_text,
    extract_cost_from_text,
    extract_map_widget,
]


def merge_fields(partials: list[dict]) -> dict:
    """Merge partial field maps, first non-empty value per field wins."""
    merged: dict = {}
    for partial in partials:
        for key, value in partial.items():
            if value in (None, "") or merged.get(key) not in (None, ""):
                continue
            merged[key] = value
    return merged


def run_extractors(
    soup: BeautifulSoup,
    context: ExtractionContext,
    extractors: Optional[list[Extractor]] = None,
) -> dict:
    """
    Run the extractor chain over a parsed detail page.

    Args:
        soup: Parsed detail page
        context: URL, listing title and banner text
        extractors: Custom chain (defaults to DEFAULT_EXTRACTORS)

    Returns:
        Raw field map for the normalizer
    """
    chain = extractors if extractors is not None else DEFAULT_EXTRACTORS
    return merge_fields([extractor(soup, context) for extractor in chain])


def resolve_title(fields: dict, soup: BeautifulSoup, context: ExtractionContext) -> str:
    """
    Pick the project title, skipping the generic site banner.

    Falls back to the listing link text, then the second <h2>, then the first <h3>.
    """
    title = (fields.get("nazwa") or "").strip()
    if title and title != context.banner_title:
        return title

    if context.listing_title and context.listing_title != context.banner_title:
        return context.listing_title

    headings = soup.find_all("h2")
    if len(headings) > 1:
        secondary = element_text(headings[1])
        if secondary:
            return secondary

    return element_text(soup.find("h3"))

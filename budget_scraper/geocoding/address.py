"""
Address normalization for geocoding queries.

Scraped location texts use Polish street abbreviations ("ul.", "al.",
"pl.", "os.") and stray punctuation; both are cleaned up before a text is
used as a query or as a geocode cache key.
"""

import re
from typing import Optional

ABBREVIATIONS = [
    (re.compile(r"\bul\.", re.IGNORECASE), "ulica"),
    (re.compile(r"\bal\.", re.IGNORECASE), "aleja"),
    (re.compile(r"\bpl\.", re.IGNORECASE), "plac"),
    (re.compile(r"\bos\.", re.IGNORECASE), "osiedle"),
]

# Word characters, Polish letters, whitespace, hyphen and comma survive
DISALLOWED_CHARS = re.compile(r"[^\wąćęłńóśźżĄĆĘŁŃÓŚŹŻ\s\-,]")

DISTRICT_PATTERN = re.compile(r"(?:osiedle|dzielnica)\s+([^,;]+)", re.IGNORECASE)
STREET_PATTERN = re.compile(r"(?:ul\.|ulica)\s+([^,;]+)", re.IGNORECASE)


def normalize_address(address: Optional[str]) -> str:
    """
    Normalize a free-text location for querying and caching.

    - "ul. Piotrkowska 1" -> "ulica Piotrkowska 1"
    - "os. Teofilów (park)" -> "osiedle Teofilów park"
    """
    if not address:
        return ""

    normalized = address.strip()
    for pattern, replacement in ABBREVIATIONS:
        normalized = pattern.sub(replacement, normalized)

    normalized = re.sub(r"\s+", " ", normalized)
    normalized = DISALLOWED_CHARS.sub("", normalized)

    return normalized.strip()


def build_query(address: str, city: str = "Łódź", country: str = "Poland") -> str:
    """Append city and country unless the address already names the city."""
    if city.lower() in address.lower():
        return f"{address}, {country}"
    return f"{address}, {city}, {country}"


def extract_district(address: str) -> Optional[str]:
    """District named after an "osiedle"/"dzielnica" marker, if any."""
    match = DISTRICT_PATTERN.search(address)
    return match.group(1).strip() if match else None


def extract_street(address: str) -> Optional[str]:
    """Street named after an "ul."/"ulica" marker, if any."""
    match = STREET_PATTERN.search(address)
    return match.group(1).strip() if match else None

import re
from typing import Optional, Tuple

COUNTRY = "Deutschland"
UNKNOWN_LOCATION = "Unbekannter Ort"

# "(07747 Jena)" or "(98744 Oberweißbach, Sporthalle)"
POSTAL_CITY_RE = re.compile(r"\((\d{5})\s+([^,)]+)[^)]*\)")
LOCATION_RE = re.compile(r"^\d{5}\s+(.+?),\s*" + COUNTRY + r"$")

# Checked in order, so a city that contains another city's name comes first
KNOWN_CITIES: Tuple[Tuple[str, str], ...] = (
    ("Oberweißbach", "98744"),
    ("Großbreitenbach", "98701"),
    ("Bad Blankenburg", "07422"),
    ("Rudolstadt", "07407"),
    ("Saalfeld", "07318"),
    ("Pößneck", "07381"),
    ("Jena", "07743"),
    ("Weimar", "99423"),
    ("Erfurt", "99084"),
    ("Arnstadt", "99310"),
    ("Ilmenau", "98693"),
    ("Gotha", "99867"),
    ("Gera", "07545"),
    ("Suhl", "98527"),
    ("Sonneberg", "96515"),
)


def format_location(postal_code: str, city: str) -> str:
    return f"{postal_code} {city.strip()}, {COUNTRY}"


def normalize_location(venue_text: str) -> str:
    """Reduces free venue text to ``"<postal code> <city>, Deutschland"``.

    A parenthesized postal code and city win over known city names found
    anywhere in the text. Returns ``UNKNOWN_LOCATION`` when neither is found.
    """
    if not venue_text:
        return UNKNOWN_LOCATION

    match = POSTAL_CITY_RE.search(venue_text)
    if match:
        return format_location(match.group(1), match.group(2))

    for city, postal_code in KNOWN_CITIES:
        if city in venue_text:
            return format_location(postal_code, city)

    return UNKNOWN_LOCATION


def city_from_location(location: str) -> Optional[str]:
    match = LOCATION_RE.match(location)
    if not match:
        return None
    return match.group(1)

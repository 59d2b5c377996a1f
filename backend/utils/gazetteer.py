"""
Location gazetteer: US states and territories plus major countries.

Used by the context extractor (jurisdiction, location capture) and the
validation service (location format check).
"""

import re
from dataclasses import dataclass
from typing import Optional

US_STATES = {
    "AL": "Alabama",
    "AK": "Alaska",
    "AZ": "Arizona",
    "AR": "Arkansas",
    "CA": "California",
    "CO": "Colorado",
    "CT": "Connecticut",
    "DE": "Delaware",
    "FL": "Florida",
    "GA": "Georgia",
    "HI": "Hawaii",
    "ID": "Idaho",
    "IL": "Illinois",
    "IN": "Indiana",
    "IA": "Iowa",
    "KS": "Kansas",
    "KY": "Kentucky",
    "LA": "Louisiana",
    "ME": "Maine",
    "MD": "Maryland",
    "MA": "Massachusetts",
    "MI": "Michigan",
    "MN": "Minnesota",
    "MS": "Mississippi",
    "MO": "Missouri",
    "MT": "Montana",
    "NE": "Nebraska",
    "NV": "Nevada",
    "NH": "New Hampshire",
    "NJ": "New Jersey",
    "NM": "New Mexico",
    "NY": "New York",
    "NC": "North Carolina",
    "ND": "North Dakota",
    "OH": "Ohio",
    "OK": "Oklahoma",
    "OR": "Oregon",
    "PA": "Pennsylvania",
    "RI": "Rhode Island",
    "SC": "South Carolina",
    "SD": "South Dakota",
    "TN": "Tennessee",
    "TX": "Texas",
    "UT": "Utah",
    "VT": "Vermont",
    "VA": "Virginia",
    "WA": "Washington",
    "WV": "West Virginia",
    "WI": "Wisconsin",
    "WY": "Wyoming",
}

US_TERRITORIES = {
    "DC": "District of Columbia",
    "AS": "American Samoa",
    "GU": "Guam",
    "MP": "Northern Mariana Islands",
    "PR": "Puerto Rico",
    "VI": "U.S. Virgin Islands",
}

COUNTRIES = {
    "US": "United States",
    "CA": "Canada",
    "MX": "Mexico",
    "GB": "United Kingdom",
    "IE": "Ireland",
    "DE": "Germany",
    "FR": "France",
    "IT": "Italy",
    "ES": "Spain",
    "PT": "Portugal",
    "NL": "Netherlands",
    "BE": "Belgium",
    "CH": "Switzerland",
    "AT": "Austria",
    "SE": "Sweden",
    "NO": "Norway",
    "DK": "Denmark",
    "FI": "Finland",
    "PL": "Poland",
    "GR": "Greece",
    "AU": "Australia",
    "NZ": "New Zealand",
    "JP": "Japan",
    "KR": "South Korea",
    "CN": "China",
    "IN": "India",
    "PH": "Philippines",
    "SG": "Singapore",
    "BR": "Brazil",
    "AR": "Argentina",
    "CL": "Chile",
    "CO": "Colombia",
    "PE": "Peru",
    "ZA": "South Africa",
    "NG": "Nigeria",
    "KE": "Kenya",
    "EG": "Egypt",
    "IL": "Israel",
    "AE": "United Arab Emirates",
    "SA": "Saudi Arabia",
}

# The fifty states by name; jurisdiction is the earliest one mentioned
STATE_NAMES = sorted(US_STATES.values())

_STATE_NAME_TO_CODE = {name.lower(): code for code, name in {**US_STATES, **US_TERRITORIES}.items()}
_COUNTRY_NAME_TO_CODE = {name.lower(): code for code, name in COUNTRIES.items()}
_COUNTRY_ALIASES = {"usa": "US", "u.s.": "US", "u.s.a.": "US", "uk": "GB", "england": "GB"}

# Longest names first so "West Virginia" wins over "Virginia" at the same position
_STATE_RE = re.compile(
    r"\b(" + "|".join(re.escape(name) for name in sorted(STATE_NAMES, key=len, reverse=True)) + r")\b",
    re.IGNORECASE,
)
_CANONICAL_STATE = {name.lower(): name for name in STATE_NAMES}


@dataclass
class LocationInfo:
    is_valid: bool
    state: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    error: Optional[str] = None


def find_first_state(text: str) -> Optional[str]:
    """Earliest state mentioned as a whole word in text, canonically capitalised."""
    if not text:
        return None
    match = _STATE_RE.search(text)
    if not match:
        return None
    return _CANONICAL_STATE[match.group(1).lower()]


def resolve_location(location: str) -> LocationInfo:
    """Resolve a free-form location ("Austin, TX", "Ontario, Canada") against the gazetteer.

    Two-letter codes only count when written in upper case, so ordinary words
    like "in", "or" and "me" are never read as state codes.
    """
    if not location or not isinstance(location, str):
        return LocationInfo(is_valid=False, error="Location is required")

    trimmed = location.strip().rstrip(".")
    if len(trimmed) < 2:
        return LocationInfo(is_valid=False, error="Location must be at least 2 characters")

    lowered = trimmed.lower()
    if lowered in _STATE_NAME_TO_CODE:
        return LocationInfo(is_valid=True, state=_STATE_NAME_TO_CODE[lowered], country="US")
    if lowered in _COUNTRY_NAME_TO_CODE:
        return LocationInfo(is_valid=True, country=_COUNTRY_NAME_TO_CODE[lowered])
    if lowered in _COUNTRY_ALIASES:
        return LocationInfo(is_valid=True, country=_COUNTRY_ALIASES[lowered])

    state = None
    country = None
    city = None

    # Multi-word names anywhere in the string ("New York", "South Africa")
    for name in sorted(_STATE_NAME_TO_CODE, key=len, reverse=True):
        code = _STATE_NAME_TO_CODE[name]
        if re.search(rf"\b{re.escape(name)}\b", lowered):
            state = code
            break
    for name, code in {**_COUNTRY_NAME_TO_CODE, **_COUNTRY_ALIASES}.items():
        if re.search(rf"(?<![\w.]){re.escape(name)}(?![\w])", lowered):
            country = code
            break

    parts = [p for p in re.split(r"[,\s]+", trimmed) if p]
    for part in parts:
        if len(part) == 2 and part.isupper():
            if state is None and (part in US_STATES or part in US_TERRITORIES):
                state = part
                continue
            if country is None and part in COUNTRIES:
                country = part
                continue

    if state and not country:
        country = "US"

    if state or country:
        head = trimmed.split(",")[0].strip()
        head_lower = head.lower()
        if head_lower not in _STATE_NAME_TO_CODE and head_lower not in _COUNTRY_NAME_TO_CODE and len(head) >= 2:
            if not (len(head) == 2 and head.isupper()):
                city = head
        return LocationInfo(is_valid=True, state=state, country=country, city=city)

    return LocationInfo(is_valid=False, error="Invalid location format")

"""
catalog/filters.py -- Query-string parsing and match predicates for catalog search.

Query parameters arrive as raw strings. The rules are lenient on purpose so
the front end can pass whatever the user typed:
  - text filters drop every character other than word characters, whitespace
    and '-', then trim; an empty result means "no filter".
  - numeric filters that do not parse as a finite number are ignored.
  - amenities is a comma-separated list; every entry must be present.
All text comparisons are case-insensitive.
"""

from __future__ import annotations

import math
import re
from typing import Optional

from catalog.models import Flight, FlightQuery, Hotel, HotelQuery

_UNSAFE_CHARS = re.compile(r"[^\w\s-]")


def sanitize_text(value: Optional[str]) -> Optional[str]:
    """Strip characters outside [word, whitespace, '-'] and trim. Returns None when nothing is left.

    Word characters are Unicode-aware, so accented place names survive.
    """
    if not isinstance(value, str):
        return None
    cleaned = _UNSAFE_CHARS.sub("", value).strip()
    return cleaned or None


def parse_number(value: Optional[str]) -> Optional[float]:
    """Parse a numeric query value.

    Returns None for missing, non-numeric or non-finite input, so
    minPrice=Infinity drops the filter instead of excluding every item.
    """
    if value is None or not str(value).strip():
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_amenities(value: Optional[str]) -> list[str]:
    """Split a comma-separated amenities string into lower-cased, non-empty names."""
    if not value:
        return []
    return [a.strip().lower() for a in value.split(",") if a.strip()]


def _has_amenities(available: tuple[str, ...], wanted: list[str]) -> bool:
    have = {a.lower() for a in available}
    return all(a in have for a in wanted)


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def flight_matches(flight: Flight, query: FlightQuery) -> bool:
    airline = sanitize_text(query.airline)
    if airline and airline.lower() not in flight.flight_name.lower():
        return False

    location = sanitize_text(query.location)
    if location:
        needle = location.lower()
        if needle not in flight.origin.lower() and needle not in flight.destination.lower():
            return False

    if query.min_price is not None and flight.price < query.min_price:
        return False
    if query.max_price is not None and flight.price > query.max_price:
        return False
    if query.min_rating is not None and flight.rating < query.min_rating:
        return False
    if query.max_stops is not None and flight.stops > query.max_stops:
        return False
    return _has_amenities(flight.amenities, query.amenities)


def hotel_matches(hotel: Hotel, query: HotelQuery) -> bool:
    location = sanitize_text(query.location)
    if location and location.lower() not in hotel.location.lower():
        return False

    if query.min_price is not None and hotel.price_per_night < query.min_price:
        return False
    if query.max_price is not None and hotel.price_per_night > query.max_price:
        return False
    if query.min_rating is not None and hotel.rating < query.min_rating:
        return False
    return _has_amenities(hotel.amenities, query.amenities)

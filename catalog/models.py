"""
catalog/models.py -- Domain dataclasses for bookable inventory.

Field names are snake_case here. The API layer maps them to the camelCase
wire names the front end expects (flightName, pricePerNight, from, to, ...).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Flight:
    id: str
    flight_name: str
    origin: str
    destination: str
    departure_time: str  # ISO 8601, UTC
    arrival_time: str
    price: float
    available_seats: int
    rating: float
    stops: int
    amenities: tuple[str, ...] = ()


@dataclass(frozen=True)
class Hotel:
    id: str
    hotel_name: str
    location: str
    price_per_night: float
    available_rooms: int
    rating: float
    amenities: tuple[str, ...] = ()


@dataclass
class FlightQuery:
    """Optional search filters for flights. None means "no constraint"."""

    airline: Optional[str] = None
    location: Optional[str] = None  # matches origin or destination
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_rating: Optional[float] = None
    max_stops: Optional[float] = None
    amenities: list[str] = field(default_factory=list)


@dataclass
class HotelQuery:
    location: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_rating: Optional[float] = None
    amenities: list[str] = field(default_factory=list)

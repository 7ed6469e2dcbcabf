"""
catalog/store.py -- Read-only, in-memory flight and hotel inventory.

The catalog is seeded once at startup and never mutated, so it is safe to
share across request handlers without locking. Search preserves seed order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from catalog.filters import flight_matches, hotel_matches
from catalog.models import Flight, FlightQuery, Hotel, HotelQuery

logger = logging.getLogger("makemytrip.catalog")

SEED_FLIGHTS: tuple[Flight, ...] = (
    Flight(
        id="1",
        flight_name="Airline A",
        origin="New York",
        destination="Los Angeles",
        departure_time="2024-07-01T08:00:00Z",
        arrival_time="2024-07-01T11:00:00Z",
        price=300,
        available_seats=50,
        rating=4.5,
        stops=0,
        amenities=("WiFi", "In-flight Entertainment"),
    ),
    Flight(
        id="2",
        flight_name="Airline B",
        origin="Chicago",
        destination="Miami",
        departure_time="2024-07-02T09:00:00Z",
        arrival_time="2024-07-02T13:00:00Z",
        price=200,
        available_seats=30,
        rating=4.0,
        stops=1,
        amenities=("WiFi",),
    ),
    Flight(
        id="3",
        flight_name="Airline C",
        origin="San Francisco",
        destination="Seattle",
        departure_time="2024-07-03T07:00:00Z",
        arrival_time="2024-07-03T09:00:00Z",
        price=150,
        available_seats=20,
        rating=3.5,
        stops=0,
        amenities=("In-flight Entertainment",),
    ),
)

SEED_HOTELS: tuple[Hotel, ...] = (
    Hotel(
        id="1",
        hotel_name="Hotel Sunshine",
        location="New York",
        price_per_night=150,
        available_rooms=10,
        rating=4.5,
        amenities=("Pool", "WiFi", "Gym"),
    ),
    Hotel(
        id="2",
        hotel_name="Ocean View Resort",
        location="Miami",
        price_per_night=200,
        available_rooms=5,
        rating=4.0,
        amenities=("Pool", "Spa", "WiFi"),
    ),
    Hotel(
        id="3",
        hotel_name="Mountain Lodge",
        location="Denver",
        price_per_night=120,
        available_rooms=8,
        rating=3.5,
        amenities=("WiFi", "Gym"),
    ),
)


class CatalogStore:
    """Repository over the seeded flights and hotels.

    Usage:
        catalog = CatalogStore()
        cheap = catalog.search_flights(FlightQuery(max_price=200))
    """

    def __init__(self, flights: Iterable[Flight] = SEED_FLIGHTS, hotels: Iterable[Hotel] = SEED_HOTELS) -> None:
        self._flights: tuple[Flight, ...] = tuple(flights)
        self._hotels: tuple[Hotel, ...] = tuple(hotels)
        ids = [f.id for f in self._flights]
        if len(ids) != len(set(ids)):
            raise ValueError("Duplicate flight ids in catalog seed")
        ids = [h.id for h in self._hotels]
        if len(ids) != len(set(ids)):
            raise ValueError("Duplicate hotel ids in catalog seed")
        logger.debug("Catalog loaded: %d flights, %d hotels", len(self._flights), len(self._hotels))

    def search_flights(self, query: FlightQuery) -> list[Flight]:
        return [f for f in self._flights if flight_matches(f, query)]

    def search_hotels(self, query: HotelQuery) -> list[Hotel]:
        return [h for h in self._hotels if hotel_matches(h, query)]

    def get_flight(self, flight_id: str) -> Flight | None:
        return next((f for f in self._flights if f.id == flight_id), None)

    def get_hotel(self, hotel_id: str) -> Hotel | None:
        return next((h for h in self._hotels if h.id == hotel_id), None)

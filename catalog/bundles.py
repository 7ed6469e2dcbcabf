"""
catalog/bundles.py -- Flight + hotel + tour guide packages and their discounts.

Pre-built bundles carry a fixed bundle discount (10-15%). A custom bundle
(one flight, one hotel, one guide) gets 10%. Groups of three or more
travellers get another 5%. The base price is the sum of the flight fare,
one night of the hotel and one day of the guide. It is a package price and
does not scale with the number of travellers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from catalog.models import Flight, Hotel
from catalog.store import CatalogStore

logger = logging.getLogger("makemytrip.catalog.bundles")

CUSTOM_BUNDLE_DISCOUNT = 10
GROUP_DISCOUNT = 5
GROUP_MIN_TRAVELERS = 3


@dataclass(frozen=True)
class TourGuide:
    id: str
    name: str
    languages: tuple[str, ...]
    price_per_day: float
    rating: float
    available_dates: tuple[str, ...]  # ISO dates
    description: str


@dataclass(frozen=True)
class DiscountDetails:
    bundle_discount_percent: float
    group_discount_percent: float
    total_discount_amount: float
    final_price: float


@dataclass(frozen=True)
class Bundle:
    id: str
    name: str
    description: str
    flights: tuple[Flight, ...]
    hotels: tuple[Hotel, ...]
    tour_guides: tuple[TourGuide, ...]
    base_price: float
    discount_percent: float


@dataclass(frozen=True)
class BundleQuote:
    flight: Flight
    hotel: Hotel
    tour_guide: TourGuide
    travelers: int
    discount_details: DiscountDetails


@dataclass(frozen=True)
class BundleSpec:
    id: str
    name: str
    description: str
    flight_ids: tuple[str, ...]
    hotel_ids: tuple[str, ...]
    guide_ids: tuple[str, ...]
    discount_percent: float


SEED_GUIDES: tuple[TourGuide, ...] = (
    TourGuide(
        id="1",
        name="John Doe",
        languages=("English", "Spanish"),
        price_per_day=100,
        rating=4.7,
        available_dates=("2024-07-01", "2024-07-02", "2024-07-03"),
        description="Experienced tour guide for city tours.",
    ),
    TourGuide(
        id="2",
        name="Jane Smith",
        languages=("English", "French"),
        price_per_day=120,
        rating=4.9,
        available_dates=("2024-07-01", "2024-07-04", "2024-07-05"),
        description="Specializes in historical tours.",
    ),
)

SEED_BUNDLES: tuple[BundleSpec, ...] = (
    BundleSpec("bundle1", "NYC Explorer", "Flight + Hotel + Tour Guide in New York", ("1",), ("1",), ("1",), 15),
    BundleSpec("bundle2", "Miami Getaway", "Flight + Hotel + Tour Guide in Miami", ("2",), ("2",), ("2",), 10),
)


def calculate_discounts(base_price: float, travelers: int, bundle_discount_percent: float) -> DiscountDetails:
    group = GROUP_DISCOUNT if travelers >= GROUP_MIN_TRAVELERS else 0
    total_percent = bundle_discount_percent + group
    discount = base_price * total_percent / 100
    return DiscountDetails(
        bundle_discount_percent=bundle_discount_percent,
        group_discount_percent=group,
        total_discount_amount=discount,
        final_price=base_price - discount,
    )


class BundleCatalog:
    """Bundles assembled from the flight/hotel catalog plus the tour guides."""

    def __init__(
        self,
        catalog: CatalogStore,
        guides: tuple[TourGuide, ...] = SEED_GUIDES,
        specs: tuple[BundleSpec, ...] = SEED_BUNDLES,
    ) -> None:
        self._catalog = catalog
        self._guides = {g.id: g for g in guides}
        self._bundles = tuple(self._resolve(spec) for spec in specs)

    def _resolve(self, spec: BundleSpec) -> Bundle:
        flights = tuple(self._require(self._catalog.get_flight(i), "flight", i, spec.id) for i in spec.flight_ids)
        hotels = tuple(self._require(self._catalog.get_hotel(i), "hotel", i, spec.id) for i in spec.hotel_ids)
        guides = tuple(self._require(self._guides.get(i), "tour guide", i, spec.id) for i in spec.guide_ids)
        base = (
            sum(f.price for f in flights) + sum(h.price_per_night for h in hotels) + sum(g.price_per_day for g in guides)
        )
        return Bundle(
            id=spec.id,
            name=spec.name,
            description=spec.description,
            flights=flights,
            hotels=hotels,
            tour_guides=guides,
            base_price=base,
            discount_percent=spec.discount_percent,
        )

    @staticmethod
    def _require(item, kind: str, item_id: str, bundle_id: str):
        if item is None:
            raise ValueError(f"Bundle {bundle_id!r} refers to unknown {kind} {item_id!r}")
        return item

    def list_guides(self) -> list[TourGuide]:
        return list(self._guides.values())

    def list_bundles(self) -> list[tuple[Bundle, DiscountDetails]]:
        """Every pre-built bundle with its discount for a single traveller."""
        return [(b, calculate_discounts(b.base_price, 1, b.discount_percent)) for b in self._bundles]

    def quote(self, flight_id: str, hotel_id: str, guide_id: str, travelers: int) -> BundleQuote | None:
        """Price a custom bundle. Returns None when any of the three ids is unknown."""
        if travelers < 1:
            raise ValueError("travelers must be at least 1")
        flight = self._catalog.get_flight(flight_id)
        hotel = self._catalog.get_hotel(hotel_id)
        guide = self._guides.get(guide_id)
        if flight is None or hotel is None or guide is None:
            return None
        base = flight.price + hotel.price_per_night + guide.price_per_day
        logger.debug("Custom bundle %s/%s/%s for %d traveller(s)", flight_id, hotel_id, guide_id, travelers)
        return BundleQuote(
            flight=flight,
            hotel=hotel,
            tour_guide=guide,
            travelers=travelers,
            discount_details=calculate_discounts(base, travelers, CUSTOM_BUNDLE_DISCOUNT),
        )

"""
catalog/inventory.py -- Bookable seats and hotel rooms.

SeatMap holds a 10-row x 6-seat cabin (rows 1-2 premium); RoomInventory holds
the hotel's rooms. Both book a batch of ids all-or-nothing: every id is
checked before any is marked booked, so a 404 or 409 leaves the inventory
untouched.

Route handlers that book run in FastAPI's threadpool, so every read and
write goes through the instance lock.
"""

from __future__ import annotations

import logging
import random
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import Optional

logger = logging.getLogger("makemytrip.catalog.inventory")

AVAILABLE = "available"
BOOKED = "booked"

SEAT_ROWS = 10
SEAT_LETTERS = ("A", "B", "C", "D", "E", "F")
PREMIUM_ROWS = 2
PREMIUM_SEAT_PRICE = 150
STANDARD_SEAT_PRICE = 100
# Share of seats shown as already taken on a freshly generated map.
DEFAULT_BOOKED_RATIO = 0.2


class UnknownItemError(KeyError):
    """A requested seat or room id does not exist."""

    def __init__(self, kind: str, item_id: str) -> None:
        super().__init__(item_id)
        self.kind = kind
        self.item_id = item_id

    def __str__(self) -> str:
        return f"{self.kind} {self.item_id} not found"


class AlreadyBookedError(ValueError):
    """A requested seat or room is already booked."""

    def __init__(self, kind: str, item_id: str) -> None:
        super().__init__(f"{kind} {item_id} already booked")
        self.kind = kind
        self.item_id = item_id


@dataclass(frozen=True)
class Seat:
    id: str  # row number + letter, e.g. "7C"
    row: int
    number: int  # 1-based position within the row
    status: str
    price: float
    type: str  # "premium" or "standard"


@dataclass(frozen=True)
class Room:
    id: str
    type: str
    price_per_night: float
    status: str
    description: str
    photos: tuple[str, ...] = ()
    preview_3d: Optional[str] = None


def generate_seats(rng: Optional[random.Random] = None, booked_ratio: float = DEFAULT_BOOKED_RATIO) -> list[Seat]:
    """Build a fresh cabin. Each seat is independently pre-booked with probability booked_ratio."""
    rng = rng or random.Random()
    seats = []
    for row in range(1, SEAT_ROWS + 1):
        premium = row <= PREMIUM_ROWS
        for i, letter in enumerate(SEAT_LETTERS):
            seats.append(
                Seat(
                    id=f"{row}{letter}",
                    row=row,
                    number=i + 1,
                    status=BOOKED if rng.random() < booked_ratio else AVAILABLE,
                    price=PREMIUM_SEAT_PRICE if premium else STANDARD_SEAT_PRICE,
                    type="premium" if premium else "standard",
                )
            )
    return seats


SEED_ROOMS: tuple[Room, ...] = (
    Room(
        id="101",
        type="Standard Room",
        price_per_night=100,
        status=AVAILABLE,
        description="A comfortable standard room with all basic amenities.",
        photos=(
            "https://images.unsplash.com/photo-1501117716987-c8e6a7a7a7a7?auto=format&fit=crop&w=800",
            "https://images.unsplash.com/photo-1505691938895-1758d7feb511?auto=format&fit=crop&w=800",
        ),
    ),
    Room(
        id="102",
        type="Deluxe Room",
        price_per_night=150,
        status=BOOKED,
        description="Spacious deluxe room with premium facilities.",
        photos=(
            "https://images.unsplash.com/photo-1494526585095-c41746248156?auto=format&fit=crop&w=800",
            "https://images.unsplash.com/photo-1504384308090-c894fdcc538d?auto=format&fit=crop&w=800",
        ),
        preview_3d="https://example.com/3d-preview-deluxe.mp4",
    ),
    Room(
        id="103",
        type="Suite",
        price_per_night=250,
        status=AVAILABLE,
        description="Luxurious suite with separate living area and premium amenities.",
        photos=(
            "https://images.unsplash.com/photo-1522708323590-d24dbb6b0267?auto=format&fit=crop&w=800",
            "https://images.unsplash.com/photo-1501183638714-1c7a1bfb0f4d?auto=format&fit=crop&w=800",
        ),
        preview_3d="https://example.com/3d-preview-suite.mp4",
    ),
)


@dataclass
class _Inventory:
    """Ordered, lock-guarded map of id -> frozen item with a status field."""

    kind: str
    items: dict = field(default_factory=dict)
    lock: threading.Lock = field(default_factory=threading.Lock)

    def snapshot(self) -> list:
        with self.lock:
            return list(self.items.values())

    def book(self, ids: Iterable[str]) -> list:
        wanted = list(dict.fromkeys(ids))
        with self.lock:
            for item_id in wanted:
                item = self.items.get(item_id)
                if item is None:
                    raise UnknownItemError(self.kind, item_id)
                if item.status == BOOKED:
                    raise AlreadyBookedError(self.kind, item_id)
            booked = []
            for item_id in wanted:
                self.items[item_id] = replace(self.items[item_id], status=BOOKED)
                booked.append(self.items[item_id])
        logger.info("Booked %d %s(s): %s", len(booked), self.kind.lower(), ", ".join(wanted))
        return booked


def _index(kind: str, items: Iterable) -> _Inventory:
    inventory = _Inventory(kind=kind)
    for item in items:
        if item.id in inventory.items:
            raise ValueError(f"Duplicate {kind.lower()} id {item.id!r}")
        inventory.items[item.id] = item
    return inventory


class SeatMap:
    """The cabin seat map of the demo flight.

    Usage:
        seats = SeatMap()
        booked = seats.book(["3A", "3B"])   # raises UnknownItemError / AlreadyBookedError
    """

    def __init__(self, seats: Optional[Iterable[Seat]] = None, rng: Optional[random.Random] = None) -> None:
        self._inventory = _index("Seat", seats if seats is not None else generate_seats(rng))

    def list_seats(self) -> list[Seat]:
        return self._inventory.snapshot()

    def book(self, seat_ids: Iterable[str]) -> list[Seat]:
        return self._inventory.book(seat_ids)


class RoomInventory:
    """Rooms of the demo hotel, seeded from SEED_ROOMS."""

    def __init__(self, rooms: Iterable[Room] = SEED_ROOMS) -> None:
        self._inventory = _index("Room", rooms)

    def list_rooms(self) -> list[Room]:
        return self._inventory.snapshot()

    def book(self, room_ids: Iterable[str]) -> list[Room]:
        return self._inventory.book(room_ids)

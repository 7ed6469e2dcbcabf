"""
tests/test_bookings.py -- Seat map and hotel room booking.

Coverage:
  - Generated cabin: 60 seats, premium rows 1-2 at 150, standard at 100
  - Batch booking is all-or-nothing: unknown id -> 404, taken seat -> 409,
    and neither leaves any seat of the batch booked
  - Rooms: seeded inventory, 409 on the pre-booked deluxe room
  - A booking with userId credits loyalty points
"""

from __future__ import annotations

import random

import pytest
from fastapi.testclient import TestClient

from auth.store import UserStore
from catalog.inventory import (
    AVAILABLE,
    BOOKED,
    AlreadyBookedError,
    RoomInventory,
    Seat,
    SeatMap,
    UnknownItemError,
    generate_seats,
)

# ---------------------------------------------------------------------------
# Inventory (no HTTP)
# ---------------------------------------------------------------------------


class TestGenerateSeats:
    def test_cabin_layout(self) -> None:
        seats = generate_seats(random.Random(1))
        assert len(seats) == 60
        assert seats[0].id == "1A"
        assert seats[-1].id == "10F"
        assert {s.number for s in seats if s.row == 4} == {1, 2, 3, 4, 5, 6}

    def test_premium_rows(self) -> None:
        seats = {s.id: s for s in generate_seats(random.Random(1))}
        assert seats["2F"].type == "premium"
        assert seats["2F"].price == 150
        assert seats["3A"].type == "standard"
        assert seats["3A"].price == 100

    def test_booked_ratio_bounds(self) -> None:
        assert all(s.status == AVAILABLE for s in generate_seats(random.Random(1), booked_ratio=0))
        assert all(s.status == BOOKED for s in generate_seats(random.Random(1), booked_ratio=1))

    def test_same_seed_same_cabin(self) -> None:
        assert generate_seats(random.Random(7)) == generate_seats(random.Random(7))


class TestSeatMap:
    @pytest.fixture
    def seat_map(self) -> SeatMap:
        return SeatMap(seats=generate_seats(booked_ratio=0))

    def test_book(self, seat_map: SeatMap) -> None:
        booked = seat_map.book(["3A", "3B"])
        assert [s.id for s in booked] == ["3A", "3B"]
        assert all(s.status == BOOKED for s in booked)
        statuses = {s.id: s.status for s in seat_map.list_seats()}
        assert statuses["3A"] == statuses["3B"] == BOOKED
        assert statuses["3C"] == AVAILABLE

    def test_double_booking_rejected(self, seat_map: SeatMap) -> None:
        seat_map.book(["5C"])
        with pytest.raises(AlreadyBookedError):
            seat_map.book(["5C"])

    def test_unknown_seat_books_nothing(self, seat_map: SeatMap) -> None:
        with pytest.raises(UnknownItemError):
            seat_map.book(["4A", "99Z"])
        assert {s.id: s.status for s in seat_map.list_seats()}["4A"] == AVAILABLE

    def test_taken_seat_books_nothing(self, seat_map: SeatMap) -> None:
        seat_map.book(["6B"])
        with pytest.raises(AlreadyBookedError):
            seat_map.book(["6A", "6B"])
        assert {s.id: s.status for s in seat_map.list_seats()}["6A"] == AVAILABLE

    def test_repeated_id_in_one_batch(self, seat_map: SeatMap) -> None:
        assert len(seat_map.book(["7A", "7A"])) == 1

    def test_duplicate_ids_rejected(self) -> None:
        seat = Seat(id="1A", row=1, number=1, status=AVAILABLE, price=150, type="premium")
        with pytest.raises(ValueError):
            SeatMap(seats=[seat, seat])


class TestRoomInventory:
    def test_seeded_rooms(self) -> None:
        rooms = RoomInventory().list_rooms()
        assert [r.id for r in rooms] == ["101", "102", "103"]
        assert rooms[1].status == BOOKED

    def test_book_available_and_taken(self) -> None:
        inventory = RoomInventory()
        assert inventory.book(["103"])[0].status == BOOKED
        with pytest.raises(AlreadyBookedError):
            inventory.book(["101", "102"])
        assert inventory.list_rooms()[0].status == AVAILABLE


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


def _available_seat_ids(client: TestClient) -> list[str]:
    return [s["id"] for s in client.get("/api/v1/seats").json() if s["status"] == AVAILABLE]


class TestSeatRoutes:
    def test_list_seats_wire_format(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, _ = api_client
        resp = client.get("/api/v1/seats")
        assert resp.status_code == 200
        seats = resp.json()
        assert len(seats) == 60
        assert set(seats[0]) == {"id", "row", "number", "status", "price", "type"}

    def test_book_then_conflict(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, _ = api_client
        seat_id = _available_seat_ids(client)[0]

        first = client.post("/api/v1/seats", json={"seatIds": [seat_id]})
        assert first.status_code == 200, first.text
        assert first.json()["message"] == "Seats booked successfully"
        assert first.json()["seats"][0]["status"] == BOOKED
        assert first.json()["pointsEarned"] == 0

        second = client.post("/api/v1/seats", json={"seatIds": [seat_id]})
        assert second.status_code == 409
        assert second.json()["error"]["code"] == "already_booked"

    def test_unknown_seat_404_leaves_batch_unbooked(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, _ = api_client
        seat_id = _available_seat_ids(client)[0]
        resp = client.post("/api/v1/seats", json={"seatIds": [seat_id, "42Q"]})
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "not_found"
        assert seat_id in _available_seat_ids(client)

    @pytest.mark.parametrize("body", [{}, {"seatIds": "3A"}, {"seatIds": []}])
    def test_bad_body_422(self, api_client: tuple[TestClient, UserStore], body: dict) -> None:
        client, _ = api_client
        assert client.post("/api/v1/seats", json=body).status_code == 422

    def test_booking_with_user_earns_points(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, _ = api_client
        seat_ids = _available_seat_ids(client)[:10]
        before = client.get("/api/v1/loyalty", params={"userId": "seat-buyer"}).json()["pointsBalance"]

        resp = client.post("/api/v1/seats", json={"seatIds": seat_ids, "userId": "seat-buyer"})

        assert resp.status_code == 200, resp.text
        total = sum(s["price"] for s in resp.json()["seats"])
        expected = int(total // 1000) * 100
        assert expected >= 100
        assert resp.json()["pointsEarned"] == expected
        after = client.get("/api/v1/loyalty", params={"userId": "seat-buyer"}).json()["pointsBalance"]
        assert after == before + expected


class TestRoomRoutes:
    def test_list_rooms_wire_format(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, _ = api_client
        rooms = client.get("/api/v1/rooms").json()
        assert [r["id"] for r in rooms] == ["101", "102", "103"]
        assert rooms[1]["pricePerNight"] == 150
        assert rooms[1]["preview3D"] == "https://example.com/3d-preview-deluxe.mp4"
        assert rooms[0]["preview3D"] is None

    def test_prebooked_room_conflict(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, _ = api_client
        resp = client.post("/api/v1/rooms", json={"roomIds": ["102"]})
        assert resp.status_code == 409

    def test_book_room(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, _ = api_client
        resp = client.post("/api/v1/rooms", json={"roomIds": ["101"], "userId": "guest-1"})
        assert resp.status_code == 200
        assert resp.json()["rooms"][0]["status"] == BOOKED
        # 100 a night is below the 1000 needed for any points.
        assert resp.json()["pointsEarned"] == 0

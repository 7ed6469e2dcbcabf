"""
api/routes/v1/bookings.py -- Seat map and hotel room booking.

Routes:
  GET  /api/v1/seats   -- every seat with status, price and type
  POST /api/v1/seats   -- book {seatIds, userId?}; 404 unknown seat, 409 taken
  GET  /api/v1/rooms   -- every room with status and nightly price
  POST /api/v1/rooms   -- book {roomIds, userId?}; 404 unknown room, 409 taken

A batch books all-or-nothing. When userId is given, the total paid is
credited to that user's loyalty account.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, HTTPException, Request

from api.models import (
    RoomBookingRequest,
    RoomBookingResponse,
    RoomResponse,
    SeatBookingRequest,
    SeatBookingResponse,
    SeatResponse,
)
from catalog.inventory import AlreadyBookedError, UnknownItemError
from catalog.loyalty import LoyaltyLedger

logger = logging.getLogger("makemytrip.api.bookings")

router = APIRouter()


def _book_or_raise(book, ids: list[str]) -> list:
    try:
        return book(ids)
    except UnknownItemError as exc:
        raise HTTPException(status_code=404, detail={"code": "not_found", "message": f"{exc}."}) from exc
    except AlreadyBookedError as exc:
        raise HTTPException(status_code=409, detail={"code": "already_booked", "message": f"{exc}."}) from exc


def _credit_points(request: Request, user_id: Optional[str], prefix: str, amount: float) -> int:
    if not user_id:
        return 0
    ledger: LoyaltyLedger = request.app.state.loyalty
    return ledger.record_booking(user_id, f"{prefix}-{uuid.uuid4().hex[:12]}", amount)


@router.get("/seats", response_model=list[SeatResponse])
async def list_seats(request: Request) -> list[SeatResponse]:
    return [SeatResponse.from_seat(s) for s in request.app.state.seats.list_seats()]


@router.post("/seats", response_model=SeatBookingResponse)
def book_seats(request: Request, body: SeatBookingRequest) -> SeatBookingResponse:
    booked = _book_or_raise(request.app.state.seats.book, body.seat_ids)
    points = _credit_points(request, body.user_id, "seats", sum(s.price for s in booked))
    return SeatBookingResponse(
        message="Seats booked successfully",
        seats=[SeatResponse.from_seat(s) for s in booked],
        points_earned=points,
    )


@router.get("/rooms", response_model=list[RoomResponse])
async def list_rooms(request: Request) -> list[RoomResponse]:
    return [RoomResponse.from_room(r) for r in request.app.state.rooms.list_rooms()]


@router.post("/rooms", response_model=RoomBookingResponse)
def book_rooms(request: Request, body: RoomBookingRequest) -> RoomBookingResponse:
    booked = _book_or_raise(request.app.state.rooms.book, body.room_ids)
    points = _credit_points(request, body.user_id, "rooms", sum(r.price_per_night for r in booked))
    return RoomBookingResponse(
        message="Rooms booked successfully",
        rooms=[RoomResponse.from_room(r) for r in booked],
        points_earned=points,
    )

"""
api/routes/v1/catalog.py -- Flight and hotel search endpoints.

Routes:
  GET /api/v1/flights            -- filter by airline, location, minPrice,
                                    maxPrice, minRating, maxStops, amenities
  GET /api/v1/flights/{id}
  GET /api/v1/hotels             -- filter by location, minPrice, maxPrice,
                                    minRating, amenities
  GET /api/v1/hotels/{id}

Query parameters keep the camelCase names the front end already sends.
They are accepted as plain strings and parsed leniently by catalog.filters:
a non-numeric minPrice is ignored rather than rejected with 422.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request

from api.models import FlightResponse, HotelResponse
from catalog.filters import parse_amenities, parse_number
from catalog.models import FlightQuery, HotelQuery
from catalog.store import CatalogStore

router = APIRouter()


@router.get("/flights", response_model=list[FlightResponse])
async def search_flights(
    request: Request,
    airline: Optional[str] = Query(default=None),
    location: Optional[str] = Query(default=None),
    min_price: Optional[str] = Query(default=None, alias="minPrice"),
    max_price: Optional[str] = Query(default=None, alias="maxPrice"),
    min_rating: Optional[str] = Query(default=None, alias="minRating"),
    max_stops: Optional[str] = Query(default=None, alias="maxStops"),
    amenities: Optional[str] = Query(default=None),
) -> list[FlightResponse]:
    catalog: CatalogStore = request.app.state.catalog
    query = FlightQuery(
        airline=airline,
        location=location,
        min_price=parse_number(min_price),
        max_price=parse_number(max_price),
        min_rating=parse_number(min_rating),
        max_stops=parse_number(max_stops),
        amenities=parse_amenities(amenities),
    )
    return [FlightResponse.from_flight(f) for f in catalog.search_flights(query)]


@router.get("/flights/{flight_id}", response_model=FlightResponse)
async def get_flight(request: Request, flight_id: str) -> FlightResponse:
    flight = request.app.state.catalog.get_flight(flight_id)
    if flight is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": f"Flight {flight_id} not found."},
        )
    return FlightResponse.from_flight(flight)


@router.get("/hotels", response_model=list[HotelResponse])
async def search_hotels(
    request: Request,
    location: Optional[str] = Query(default=None),
    min_price: Optional[str] = Query(default=None, alias="minPrice"),
    max_price: Optional[str] = Query(default=None, alias="maxPrice"),
    min_rating: Optional[str] = Query(default=None, alias="minRating"),
    amenities: Optional[str] = Query(default=None),
) -> list[HotelResponse]:
    catalog: CatalogStore = request.app.state.catalog
    query = HotelQuery(
        location=location,
        min_price=parse_number(min_price),
        max_price=parse_number(max_price),
        min_rating=parse_number(min_rating),
        amenities=parse_amenities(amenities),
    )
    return [HotelResponse.from_hotel(h) for h in catalog.search_hotels(query)]


@router.get("/hotels/{hotel_id}", response_model=HotelResponse)
async def get_hotel(request: Request, hotel_id: str) -> HotelResponse:
    hotel = request.app.state.catalog.get_hotel(hotel_id)
    if hotel is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": f"Hotel {hotel_id} not found."},
        )
    return HotelResponse.from_hotel(hotel)

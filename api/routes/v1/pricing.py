"""
api/routes/v1/pricing.py -- Live prices with history, and 24-hour price freezes.

Routes:
  GET  /api/v1/pricing/flights/{id}          -- current fare + history
  POST /api/v1/pricing/flights/{id}/freeze   -- pin the fare for 24 hours
  GET  /api/v1/pricing/hotels/{id}
  POST /api/v1/pricing/hotels/{id}/freeze

Freezing is a POST: it changes server state, and a GET would be replayed by
prefetchers and caches.
"""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, HTTPException, Request

from api.models import PriceFreezeResponse, PriceQuoteResponse
from catalog.pricing import PriceBoard

router = APIRouter()

PricedKind = Literal["flights", "hotels"]


def _board(request: Request, kind: str) -> PriceBoard:
    return request.app.state.flight_prices if kind == "flights" else request.app.state.hotel_prices


def _not_found(board: PriceBoard, item_id: str) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"code": "not_found", "message": f"{board.kind} {item_id} not found."},
    )


@router.get("/pricing/{kind}/{item_id}", response_model=PriceQuoteResponse)
def get_price(request: Request, kind: PricedKind, item_id: str) -> PriceQuoteResponse:
    board = _board(request, kind)
    quote = board.quote(item_id)
    if quote is None:
        raise _not_found(board, item_id)
    return PriceQuoteResponse.from_quote(quote)


@router.post("/pricing/{kind}/{item_id}/freeze", response_model=PriceFreezeResponse)
def freeze_price(request: Request, kind: PricedKind, item_id: str) -> PriceFreezeResponse:
    board = _board(request, kind)
    until = board.freeze(item_id)
    if until is None:
        raise _not_found(board, item_id)
    return PriceFreezeResponse(price_freeze_until=until)

"""
api/routes/v1/bundles.py -- Travel packages.

Routes:
  GET  /api/v1/bundles   -- pre-built bundles priced for one traveller
  POST /api/v1/bundles   -- price a custom {flightId, hotelId, tourGuideId, travelers}
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from api.models import BundleQuoteRequest, BundleQuoteResponse, BundleResponse
from catalog.bundles import BundleCatalog

router = APIRouter()


@router.get("/bundles", response_model=list[BundleResponse])
async def list_bundles(request: Request) -> list[BundleResponse]:
    bundles: BundleCatalog = request.app.state.bundles
    return [BundleResponse.from_bundle(b, d) for b, d in bundles.list_bundles()]


@router.post("/bundles", response_model=BundleQuoteResponse)
async def quote_bundle(request: Request, body: BundleQuoteRequest) -> BundleQuoteResponse:
    bundles: BundleCatalog = request.app.state.bundles
    quote = bundles.quote(body.flight_id, body.hotel_id, body.tour_guide_id, body.travelers)
    if quote is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "Selected flight, hotel or tour guide not found."},
        )
    return BundleQuoteResponse.from_quote(quote)

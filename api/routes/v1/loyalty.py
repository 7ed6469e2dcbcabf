"""
api/routes/v1/loyalty.py -- Loyalty balance, tier and redemption.

Routes:
  GET  /api/v1/loyalty?userId=...   -- balance, unexpired entries, tier, progress
  POST /api/v1/loyalty?userId=...   -- redeem {pointsToRedeem}; 400 when short
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, Request

from api.models import LoyaltyResponse, RedeemRequest
from catalog.loyalty import InsufficientPointsError, LoyaltyLedger

router = APIRouter()


@router.get("/loyalty", response_model=LoyaltyResponse)
def get_loyalty(request: Request, user_id: str = Query(alias="userId", min_length=1)) -> LoyaltyResponse:
    ledger: LoyaltyLedger = request.app.state.loyalty
    return LoyaltyResponse.from_account(ledger.account(user_id))


@router.post("/loyalty", response_model=LoyaltyResponse)
def redeem_points(
    request: Request,
    body: RedeemRequest,
    user_id: str = Query(alias="userId", min_length=1),
) -> LoyaltyResponse:
    ledger: LoyaltyLedger = request.app.state.loyalty
    try:
        account = ledger.redeem(user_id, body.points_to_redeem)
    except InsufficientPointsError as exc:
        raise HTTPException(
            status_code=400,
            detail={"code": "insufficient_points", "message": str(exc)},
        ) from exc
    return LoyaltyResponse.from_account(account)

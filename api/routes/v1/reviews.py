"""
api/routes/v1/reviews.py -- Reviews of flights and hotels.

Routes:
  GET    /api/v1/reviews?entityType=&entityId=&sortBy=   -- sortBy: mostHelpful | newest
  POST   /api/v1/reviews                          -- create; 201
  PUT    /api/v1/reviews/{id}                     -- author edits rating/text
  DELETE /api/v1/reviews/{id}?userId=             -- author deletes; 204
  POST   /api/v1/reviews/{id}/flag                -- flag for moderation
  POST   /api/v1/reviews/{id}/helpful             -- +1 helpful vote
  POST   /api/v1/reviews/{id}/replies             -- admin reply, optionally nested; 201

Editing or deleting someone else's review answers 404, the same as a
missing review. Text with a blocked word is rejected with 400.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, Response

from api.models import (
    AdminReplyResponse,
    EntityType,
    ReplyRequest,
    ReviewCreateRequest,
    ReviewResponse,
    ReviewUpdateRequest,
)
from catalog.reviews import ProfanityError, ReviewBoard

router = APIRouter()


def _not_found(review_id: str) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"code": "not_found", "message": f"Review {review_id} not found."},
    )


def _profanity(exc: ProfanityError) -> HTTPException:
    return HTTPException(status_code=400, detail={"code": "profanity_detected", "message": f"{exc}."})


@router.get("/reviews", response_model=list[ReviewResponse])
def list_reviews(
    request: Request,
    entity_type: EntityType = Query(alias="entityType"),
    entity_id: str = Query(alias="entityId", min_length=1),
    sort_by: Optional[str] = Query(default=None, alias="sortBy"),
) -> list[ReviewResponse]:
    board: ReviewBoard = request.app.state.reviews
    return [ReviewResponse.from_review(r) for r in board.list_reviews(entity_type, entity_id, sort_by)]


@router.post("/reviews", response_model=ReviewResponse, status_code=201)
def create_review(request: Request, body: ReviewCreateRequest) -> ReviewResponse:
    board: ReviewBoard = request.app.state.reviews
    try:
        review = board.create(body.user_id, body.user_name, body.entity_type, body.entity_id, body.rating, body.text)
    except ProfanityError as exc:
        raise _profanity(exc) from exc
    return ReviewResponse.from_review(review)


@router.put("/reviews/{review_id}", response_model=ReviewResponse)
def update_review(request: Request, review_id: str, body: ReviewUpdateRequest) -> ReviewResponse:
    board: ReviewBoard = request.app.state.reviews
    try:
        review = board.update(review_id, body.user_id, body.rating, body.text)
    except ProfanityError as exc:
        raise _profanity(exc) from exc
    if review is None:
        raise _not_found(review_id)
    return ReviewResponse.from_review(review)


@router.delete("/reviews/{review_id}", status_code=204)
def delete_review(request: Request, review_id: str, user_id: str = Query(alias="userId", min_length=1)) -> Response:
    board: ReviewBoard = request.app.state.reviews
    if not board.delete(review_id, user_id):
        raise _not_found(review_id)
    return Response(status_code=204)


@router.post("/reviews/{review_id}/flag", response_model=ReviewResponse)
def flag_review(request: Request, review_id: str) -> ReviewResponse:
    review = request.app.state.reviews.flag(review_id)
    if review is None:
        raise _not_found(review_id)
    return ReviewResponse.from_review(review)


@router.post("/reviews/{review_id}/helpful", response_model=ReviewResponse)
def mark_helpful(request: Request, review_id: str) -> ReviewResponse:
    review = request.app.state.reviews.mark_helpful(review_id)
    if review is None:
        raise _not_found(review_id)
    return ReviewResponse.from_review(review)


@router.post("/reviews/{review_id}/replies", response_model=AdminReplyResponse, status_code=201)
def add_reply(request: Request, review_id: str, body: ReplyRequest) -> AdminReplyResponse:
    reply = request.app.state.reviews.add_reply(review_id, body.text, body.parent_reply_id)
    if reply is None:
        target = f"Reply {body.parent_reply_id}" if body.parent_reply_id else f"Review {review_id}"
        raise HTTPException(status_code=404, detail={"code": "not_found", "message": f"{target} not found."})
    return AdminReplyResponse.from_reply(reply)

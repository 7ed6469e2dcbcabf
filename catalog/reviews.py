"""
catalog/reviews.py -- Traveller reviews of flights and hotels, with admin replies.

Review text and reply text pass through sanitize_review_text(): <script> and
<style> blocks are dropped with their content, every other tag is dropped
and the remaining text is HTML-escaped. Text containing a blocked word is
rejected with ProfanityError before it is stored.

Only the author (matching user_id) may edit or delete a review. Flags,
helpful votes and admin replies are open to everyone.
"""

from __future__ import annotations

import html
import logging
import re
import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger("makemytrip.catalog.reviews")

ENTITY_TYPES = frozenset({"flight", "hotel"})
SORT_MOST_HELPFUL = "mostHelpful"
SORT_NEWEST = "newest"

PROFANITY = ("badword1", "badword2", "badword3")

_SCRIPT_BLOCKS = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_TAGS = re.compile(r"<[^>]*>")


class ProfanityError(ValueError):
    pass


@dataclass
class AdminReply:
    id: str
    review_id: str
    text: str
    created_at: str
    parent_reply_id: Optional[str] = None
    replies: list[AdminReply] = field(default_factory=list)


@dataclass
class Review:
    id: str
    user_id: str
    user_name: str
    entity_id: str
    entity_type: str
    rating: int
    text: str
    created_at: str
    updated_at: Optional[str] = None
    flagged: bool = False
    helpful_count: int = 0
    admin_replies: list[AdminReply] = field(default_factory=list)


def contains_profanity(text: str) -> bool:
    lowered = text.lower()
    return any(word in lowered for word in PROFANITY)


def sanitize_review_text(text: str) -> str:
    without_blocks = _SCRIPT_BLOCKS.sub("", text)
    return html.escape(_TAGS.sub("", without_blocks), quote=False).strip()


def _clean(text: str) -> str:
    if contains_profanity(text):
        raise ProfanityError("Profanity detected in review text")
    return sanitize_review_text(text)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _find_reply(replies: list[AdminReply], reply_id: str) -> Optional[AdminReply]:
    for reply in replies:
        if reply.id == reply_id:
            return reply
        nested = _find_reply(reply.replies, reply_id)
        if nested is not None:
            return nested
    return None


class ReviewBoard:
    """In-memory review store.

    Lookups return None (and deletes False) for unknown ids, the way the
    user store does; routes turn that into 404.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._reviews: list[Review] = []

    def _now(self) -> str:
        return self._clock().isoformat()

    def _get(self, review_id: str) -> Optional[Review]:
        return next((r for r in self._reviews if r.id == review_id), None)

    def list_reviews(self, entity_type: str, entity_id: str, sort_by: Optional[str] = None) -> list[Review]:
        with self._lock:
            found = [r for r in self._reviews if r.entity_type == entity_type and r.entity_id == entity_id]
        if sort_by == SORT_MOST_HELPFUL:
            found.sort(key=lambda r: r.helpful_count, reverse=True)
        elif sort_by == SORT_NEWEST:
            found.sort(key=lambda r: r.created_at, reverse=True)
        return found

    def create(self, user_id: str, user_name: str, entity_type: str, entity_id: str, rating: int, text: str) -> Review:
        if entity_type not in ENTITY_TYPES:
            raise ValueError(f"Unknown entity type {entity_type!r}")
        review = Review(
            id=str(uuid.uuid4()),
            user_id=user_id,
            user_name=user_name,
            entity_id=entity_id,
            entity_type=entity_type,
            rating=rating,
            text=_clean(text),
            created_at=self._now(),
        )
        with self._lock:
            self._reviews.append(review)
        logger.info("Review %s created for %s %s", review.id, entity_type, entity_id)
        return review

    def update(self, review_id: str, user_id: str, rating: int, text: str) -> Optional[Review]:
        """Edit a review. Returns None when it does not exist or belongs to another user."""
        cleaned = _clean(text)
        with self._lock:
            review = self._get(review_id)
            if review is None or review.user_id != user_id:
                return None
            review.rating = rating
            review.text = cleaned
            review.updated_at = self._now()
            return review

    def delete(self, review_id: str, user_id: str) -> bool:
        with self._lock:
            review = self._get(review_id)
            if review is None or review.user_id != user_id:
                return False
            self._reviews.remove(review)
        logger.info("Review %s deleted", review_id)
        return True

    def flag(self, review_id: str) -> Optional[Review]:
        with self._lock:
            review = self._get(review_id)
            if review is not None:
                review.flagged = True
                logger.warning("Review %s flagged for moderation", review_id)
            return review

    def mark_helpful(self, review_id: str) -> Optional[Review]:
        with self._lock:
            review = self._get(review_id)
            if review is not None:
                review.helpful_count += 1
            return review

    def add_reply(self, review_id: str, text: str, parent_reply_id: Optional[str] = None) -> Optional[AdminReply]:
        """Attach an admin reply, nested under parent_reply_id when given.

        Returns None when the review or the parent reply does not exist.
        """
        reply = AdminReply(
            id=str(uuid.uuid4()),
            review_id=review_id,
            text=sanitize_review_text(text),
            created_at=self._now(),
            parent_reply_id=parent_reply_id,
        )
        with self._lock:
            review = self._get(review_id)
            if review is None:
                return None
            if parent_reply_id is None:
                review.admin_replies.append(reply)
                return reply
            parent = _find_reply(review.admin_replies, parent_reply_id)
            if parent is None:
                return None
            parent.replies.append(reply)
            return reply

"""
catalog/loyalty.py -- Loyalty points earned on bookings, tiers and redemption.

Rules:
  - 100 points per full 1000 (INR) spent on a booking.
  - Points expire 6 calendar months after the booking date.
  - Tier by current balance: Silver from 0, Gold from 500, Platinum from 1000.
  - Redemption consumes the oldest unexpired entries first; an entry can be
    partly consumed.
  - A reminder is produced when any entry expires within 30 days.

Entries are kept per user in memory; expired and fully redeemed entries are
dropped whenever a user's account is read.
"""

from __future__ import annotations

import calendar
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

logger = logging.getLogger("makemytrip.catalog.loyalty")

POINTS_PER_1000 = 100
POINTS_EXPIRY_MONTHS = 6
REMINDER_WINDOW = timedelta(days=30)


@dataclass(frozen=True)
class Tier:
    level: str
    threshold: int
    benefits: tuple[str, ...]


TIERS: tuple[Tier, ...] = (
    Tier("Silver", 0, ("Basic support", "5% discount on bookings")),
    Tier("Gold", 500, ("Priority support", "10% discount on bookings")),
    Tier("Platinum", 1000, ("24/7 support", "15% discount on bookings", "Free upgrades")),
)


@dataclass
class LoyaltyPoint:
    points: int
    earned_date: datetime
    expiry_date: datetime
    booking_id: str
    redeemed: bool = False


@dataclass
class LoyaltyAccount:
    user_id: str
    points_balance: int
    points_history: list[LoyaltyPoint]
    current_tier: str
    tier_progress: float  # percent towards the next tier; 100 at the top tier
    points_expiry_reminder: str = ""
    benefits: tuple[str, ...] = ()


class InsufficientPointsError(ValueError):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def add_months(moment: datetime, months: int) -> datetime:
    """Shift by calendar months, clamping the day to the target month's length (Aug 31 + 6 -> Feb 28/29)."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def calculate_points(amount: float) -> int:
    if amount <= 0:
        return 0
    return int(amount // 1000) * POINTS_PER_1000


def tier_for(points: int) -> Tier:
    current = TIERS[0]
    for tier in TIERS:
        if points >= tier.threshold:
            current = tier
    return current


def tier_progress(points: int, tier: Tier) -> float:
    index = TIERS.index(tier)
    if index == len(TIERS) - 1:
        return 100.0
    span = TIERS[index + 1].threshold - tier.threshold
    progress = (points - tier.threshold) * 100 / span
    return min(max(progress, 0.0), 100.0)


def expiry_reminder(entries: list[LoyaltyPoint], now: datetime) -> str:
    soon = [e for e in entries if not e.redeemed and now < e.expiry_date <= now + REMINDER_WINDOW]
    if not soon:
        return ""
    return f"You have {len(soon)} point entries expiring within 30 days. Redeem soon!"


class LoyaltyLedger:
    """Per-user loyalty entries.

    Usage:
        ledger = LoyaltyLedger()
        ledger.record_booking("42", "seat-3A", amount=4500)
        account = ledger.account("42")
        ledger.redeem("42", 200)
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, list[LoyaltyPoint]] = {}

    def record_booking(
        self, user_id: str, booking_id: str, amount: float, booked_at: Optional[datetime] = None
    ) -> int:
        """Credit points for a booking. Returns the points earned (0 for amounts under 1000)."""
        points = calculate_points(amount)
        if points == 0:
            return 0
        earned = booked_at or self._clock()
        entry = LoyaltyPoint(
            points=points,
            earned_date=earned,
            expiry_date=add_months(earned, POINTS_EXPIRY_MONTHS),
            booking_id=booking_id,
        )
        with self._lock:
            entries = self._entries.setdefault(user_id, [])
            entries.append(entry)
            entries.sort(key=lambda e: e.earned_date)
        logger.info("User %s earned %d points for booking %s", user_id, points, booking_id)
        return points

    def _live_entries(self, user_id: str, now: datetime) -> list[LoyaltyPoint]:
        entries = [e for e in self._entries.get(user_id, []) if e.expiry_date > now and not e.redeemed]
        self._entries[user_id] = entries
        return entries

    def _account(self, user_id: str, now: datetime) -> LoyaltyAccount:
        entries = self._live_entries(user_id, now)
        balance = sum(e.points for e in entries)
        tier = tier_for(balance)
        return LoyaltyAccount(
            user_id=user_id,
            points_balance=balance,
            points_history=[LoyaltyPoint(**vars(e)) for e in entries],
            current_tier=tier.level,
            tier_progress=tier_progress(balance, tier),
            points_expiry_reminder=expiry_reminder(entries, now),
            benefits=tier.benefits,
        )

    def account(self, user_id: str) -> LoyaltyAccount:
        with self._lock:
            return self._account(user_id, self._clock())

    def redeem(self, user_id: str, points: int) -> LoyaltyAccount:
        """Spend points, oldest entries first. Raises InsufficientPointsError when the balance is short."""
        if points <= 0:
            raise ValueError("points to redeem must be positive")
        with self._lock:
            now = self._clock()
            entries = self._live_entries(user_id, now)
            balance = sum(e.points for e in entries)
            if points > balance:
                raise InsufficientPointsError(f"Insufficient points balance: {balance} available, {points} requested")
            remaining = points
            for entry in entries:
                if remaining <= 0:
                    break
                if entry.points <= remaining:
                    remaining -= entry.points
                    entry.redeemed = True
                else:
                    entry.points -= remaining
                    remaining = 0
            logger.info("User %s redeemed %d points", user_id, points)
            return self._account(user_id, now)


def seed_demo_ledger(ledger: LoyaltyLedger, user_id: str = "user1", now: Optional[datetime] = None) -> None:
    """Load the demo account: one booking last month, one 7 months ago (expired), one today."""
    now = now or _utcnow()
    ledger.record_booking(user_id, "b1", 4500, booked_at=add_months(now, -1))
    ledger.record_booking(user_id, "b2", 12000, booked_at=add_months(now, -7))
    ledger.record_booking(user_id, "b3", 3000, booked_at=now)

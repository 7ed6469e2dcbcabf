"""Tests for loyalty points in catalog/loyalty.py and the /api/v1/loyalty routes.

Covers:
- Points per full 1000 spent; tiers and progress towards the next tier
- Calendar-month expiry and the 30-day reminder
- Redemption oldest-first, partial entries, insufficient balance
- The seeded demo account over HTTP
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from auth.store import UserStore
from catalog.loyalty import (
    TIERS,
    InsufficientPointsError,
    LoyaltyLedger,
    add_months,
    calculate_points,
    seed_demo_ledger,
    tier_for,
    tier_progress,
)

NOW = datetime(2024, 7, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def ledger() -> LoyaltyLedger:
    return LoyaltyLedger(clock=lambda: NOW)


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("amount,points", [(0, 0), (999, 0), (1000, 100), (4500, 400), (12000, 1200), (-50, 0)])
def test_calculate_points(amount, points):
    assert calculate_points(amount) == points


@pytest.mark.parametrize("points,level", [(0, "Silver"), (499, "Silver"), (500, "Gold"), (999, "Gold"), (1000, "Platinum")])
def test_tier_for(points, level):
    assert tier_for(points).level == level


def test_tier_progress():
    assert tier_progress(250, TIERS[0]) == 50.0
    assert tier_progress(700, TIERS[1]) == 40.0
    assert tier_progress(5000, TIERS[2]) == 100.0


@pytest.mark.parametrize(
    "start,months,expected",
    [
        (datetime(2024, 1, 15), 6, datetime(2024, 7, 15)),
        (datetime(2024, 8, 31), 6, datetime(2025, 2, 28)),
        (datetime(2023, 8, 31), 6, datetime(2024, 2, 29)),
        (datetime(2024, 3, 31), -1, datetime(2024, 2, 29)),
        (datetime(2024, 1, 10), -7, datetime(2023, 6, 10)),
    ],
)
def test_add_months(start, months, expected):
    assert add_months(start, months) == expected


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------


class TestLedger:
    def test_unknown_user_is_empty_silver(self, ledger: LoyaltyLedger) -> None:
        account = ledger.account("nobody")
        assert account.points_balance == 0
        assert account.points_history == []
        assert account.current_tier == "Silver"
        assert account.tier_progress == 0.0

    def test_small_booking_earns_nothing(self, ledger: LoyaltyLedger) -> None:
        assert ledger.record_booking("u", "b", 999) == 0
        assert ledger.account("u").points_history == []

    def test_expired_points_dropped(self, ledger: LoyaltyLedger) -> None:
        ledger.record_booking("u", "old", 5000, booked_at=add_months(NOW, -6))
        ledger.record_booking("u", "new", 2000, booked_at=NOW)
        account = ledger.account("u")
        assert account.points_balance == 200
        assert [e.booking_id for e in account.points_history] == ["new"]

    def test_expiry_reminder(self, ledger: LoyaltyLedger) -> None:
        ledger.record_booking("u", "soon", 3000, booked_at=add_months(NOW, -6) + timedelta(days=10))
        assert "1 point entries expiring within 30 days" in ledger.account("u").points_expiry_reminder
        ledger.record_booking("v", "fresh", 3000, booked_at=NOW)
        assert ledger.account("v").points_expiry_reminder == ""

    def test_redeem_oldest_first_with_partial_entry(self, ledger: LoyaltyLedger) -> None:
        ledger.record_booking("u", "first", 3000, booked_at=NOW - timedelta(days=20))
        ledger.record_booking("u", "second", 5000, booked_at=NOW - timedelta(days=10))

        account = ledger.redeem("u", 400)

        assert account.points_balance == 400
        assert [(e.booking_id, e.points) for e in account.points_history] == [("second", 400)]

    def test_redeem_updates_tier(self, ledger: LoyaltyLedger) -> None:
        ledger.record_booking("u", "big", 10000, booked_at=NOW)
        assert ledger.account("u").current_tier == "Platinum"
        assert ledger.redeem("u", 600).current_tier == "Silver"

    def test_insufficient_balance(self, ledger: LoyaltyLedger) -> None:
        ledger.record_booking("u", "b", 2000, booked_at=NOW)
        with pytest.raises(InsufficientPointsError):
            ledger.redeem("u", 201)
        assert ledger.account("u").points_balance == 200

    def test_non_positive_redeem_rejected(self, ledger: LoyaltyLedger) -> None:
        with pytest.raises(ValueError):
            ledger.redeem("u", 0)

    def test_demo_seed(self, ledger: LoyaltyLedger) -> None:
        seed_demo_ledger(ledger, now=NOW)
        account = ledger.account("user1")
        # b2 (7 months old) has expired: 400 + 300 remain.
        assert account.points_balance == 700
        assert account.current_tier == "Gold"
        assert account.tier_progress == 40.0
        assert {e.booking_id for e in account.points_history} == {"b1", "b3"}


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


class TestLoyaltyRoutes:
    def test_demo_account(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, _ = api_client
        resp = client.get("/api/v1/loyalty", params={"userId": "user1"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["userId"] == "user1"
        assert data["pointsBalance"] == 700
        assert data["currentTier"] == "Gold"
        assert data["tierProgress"] == 40.0
        assert data["benefits"] == ["Priority support", "10% discount on bookings"]
        assert set(data["pointsHistory"][0]) == {"points", "earnedDate", "expiryDate", "bookingId", "redeemed"}

    def test_missing_user_id_422(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, _ = api_client
        assert client.get("/api/v1/loyalty").status_code == 422

    def test_redeem(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, _ = api_client
        balance = client.get("/api/v1/loyalty", params={"userId": "user1"}).json()["pointsBalance"]

        resp = client.post("/api/v1/loyalty", params={"userId": "user1"}, json={"pointsToRedeem": 100})

        assert resp.status_code == 200
        assert resp.json()["pointsBalance"] == balance - 100

    def test_redeem_more_than_balance(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, _ = api_client
        resp = client.post("/api/v1/loyalty", params={"userId": "user1"}, json={"pointsToRedeem": 100000})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "insufficient_points"

    @pytest.mark.parametrize("points", [0, -5, "lots"])
    def test_invalid_amount_422(self, api_client: tuple[TestClient, UserStore], points) -> None:
        client, _ = api_client
        resp = client.post("/api/v1/loyalty", params={"userId": "user1"}, json={"pointsToRedeem": points})
        assert resp.status_code == 422

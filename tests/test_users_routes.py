"""
tests/test_users_routes.py -- Integration tests for /api/v1/users routes.

These tests exercise the full stack: FastAPI routing -> request validation
-> password encoder -> UserStore -> response model serialization.

Coverage:
  - Signup: 201, hash stored (never the plaintext, never echoed), 409 on
    duplicate email regardless of case, 422 on bad input
  - Login: 200 on valid credentials, identical 401 for wrong password and
    unknown email, Cache-Control: no-store
  - Profile: GET/PUT/DELETE happy paths and 404s, password change re-hashes
  - Passwords keep leading and trailing spaces end to end; profile text is trimmed
  - Login transparently rehashes a password stored at a lower cost
  - Unexpected errors: 500 envelope without a detail key, CORS headers kept
  - Rate limit: login returns 429 with Retry-After once the budget is spent

Fixtures used (from conftest.py):
  - api_client: (client, user_store) with traveller@example.com / travelpass1 seeded.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

import auth.passwords as passwords
from api.limiter import limiter
from auth.models import User
from auth.passwords import BCryptPasswordEncoder
from auth.store import UserStore

SEED_EMAIL = "traveller@example.com"
SEED_PASSWORD = "travelpass1"


def _signup(client: TestClient, email: str, password: str = "journey123", **extra) -> dict:
    body = {"name": "Meera", "email": email, "password": password, **extra}
    resp = client.post("/api/v1/users/signup", json=body)
    assert resp.status_code == 201, f"Expected 201, got {resp.status_code}: {resp.text}"
    return resp.json()


class TestSignup:
    def test_signup_creates_user(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, _ = api_client
        data = _signup(client, "meera@example.com", phone="+91-9876543210")
        assert data["email"] == "meera@example.com"
        assert data["phone"] == "+91-9876543210"
        assert data["role"] == "user"
        assert isinstance(data["id"], int)
        assert "password" not in data
        assert "hashed_password" not in data

    def test_password_stored_as_bcrypt(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, user_store = api_client
        _signup(client, "hashcheck@example.com", password="plain-text-pw")
        stored = user_store.get_by_email("hashcheck@example.com").hashed_password
        assert stored.startswith("$2a$")
        assert "plain-text-pw" not in stored

    def test_duplicate_email_conflict(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, _ = api_client
        _signup(client, "dup@example.com")
        resp = client.post(
            "/api/v1/users/signup",
            json={"name": "Other", "email": "DUP@Example.com", "password": "another1"},
        )
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "email_taken"

    def test_short_password_rejected(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, _ = api_client
        resp = client.post("/api/v1/users/signup", json={"name": "X", "email": "short@example.com", "password": "abc"})
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "validation_error"

    def test_invalid_email_rejected(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, _ = api_client
        resp = client.post("/api/v1/users/signup", json={"name": "X", "email": "not-an-email", "password": "abcdef"})
        assert resp.status_code == 422

    def test_multibyte_password_over_72_bytes(self, api_client: tuple[TestClient, UserStore]) -> None:
        """40 characters pass the length check but encode to 80 bytes."""
        client, user_store = api_client
        resp = client.post(
            "/api/v1/users/signup",
            json={"name": "X", "email": "long@example.com", "password": "é" * 40},
        )
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "password_too_long"
        assert user_store.get_by_email("long@example.com") is None


class TestLogin:
    def test_valid_credentials(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, _ = api_client
        resp = client.post("/api/v1/users/login", json={"email": SEED_EMAIL, "password": SEED_PASSWORD})
        assert resp.status_code == 200, resp.text
        assert resp.json()["email"] == SEED_EMAIL
        assert "hashed_password" not in resp.json()
        assert resp.headers["cache-control"] == "no-store"

    def test_wrong_password_and_unknown_email_look_the_same(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, _ = api_client
        wrong = client.post("/api/v1/users/login", json={"email": SEED_EMAIL, "password": "wrongpass"})
        unknown = client.post("/api/v1/users/login", json={"email": "ghost@example.com", "password": "wrongpass"})
        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json()
        assert wrong.json()["error"]["code"] == "bad_credentials"


class TestProfile:
    def test_get_user(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, _ = api_client
        created = _signup(client, "profile@example.com")
        resp = client.get(f"/api/v1/users/{created['id']}")
        assert resp.status_code == 200
        assert resp.json()["email"] == "profile@example.com"

    def test_get_user_not_found(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, _ = api_client
        resp = client.get("/api/v1/users/99999")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "not_found"

    def test_update_name_and_phone(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, _ = api_client
        created = _signup(client, "update@example.com")
        resp = client.put(f"/api/v1/users/{created['id']}", json={"name": "Meera K", "phone": "12345"})
        assert resp.status_code == 200
        assert resp.json()["name"] == "Meera K"
        assert resp.json()["phone"] == "12345"
        assert resp.json()["email"] == "update@example.com"

    def test_update_password_rehashes(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, user_store = api_client
        created = _signup(client, "repass@example.com", password="first-pass")
        before = user_store.get_by_id(created["id"]).hashed_password

        resp = client.put(f"/api/v1/users/{created['id']}", json={"password": "second-pass"})
        assert resp.status_code == 200

        after = user_store.get_by_id(created["id"]).hashed_password
        assert after != before
        login = client.post("/api/v1/users/login", json={"email": "repass@example.com", "password": "second-pass"})
        assert login.status_code == 200

    def test_update_not_found(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, _ = api_client
        resp = client.put("/api/v1/users/99999", json={"name": "Nobody"})
        assert resp.status_code == 404

    def test_delete_user(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, _ = api_client
        created = _signup(client, "delete@example.com")
        resp = client.delete(f"/api/v1/users/{created['id']}")
        assert resp.status_code == 204
        assert client.get(f"/api/v1/users/{created['id']}").status_code == 404
        assert client.delete(f"/api/v1/users/{created['id']}").status_code == 404


class TestPasswordWhitespace:
    def test_spaces_around_password_survive_signup_and_login(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, _ = api_client
        _signup(client, "spaced@example.com", password="  spaced pass  ")

        exact = client.post("/api/v1/users/login", json={"email": "spaced@example.com", "password": "  spaced pass  "})
        trimmed = client.post("/api/v1/users/login", json={"email": "spaced@example.com", "password": "spaced pass"})

        assert exact.status_code == 200, exact.text
        assert trimmed.status_code == 401

    def test_profile_text_and_email_are_trimmed(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, _ = api_client
        data = _signup(client, "  trimmed@example.com ", name="  Meera  ", phone=" 555-0101 ")
        assert data["name"] == "Meera"
        assert data["phone"] == "555-0101"
        assert data["email"] == "trimmed@example.com"

    def test_updated_password_keeps_spaces(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, _ = api_client
        created = _signup(client, "respace@example.com")
        resp = client.put(f"/api/v1/users/{created['id']}", json={"password": " new pass "})
        assert resp.status_code == 200
        login = client.post("/api/v1/users/login", json={"email": "respace@example.com", "password": " new pass "})
        assert login.status_code == 200


class TestRehashOnLogin:
    def test_low_cost_hash_upgraded_on_login(self, api_client: tuple[TestClient, UserStore], monkeypatch) -> None:
        client, user_store = api_client
        weak_hash = BCryptPasswordEncoder(strength=4).encode("upgrade-me")
        user_id = user_store.create_user(User(name="Old Hash", email="oldhash@example.com", hashed_password=weak_hash))

        stronger = BCryptPasswordEncoder(strength=5)
        monkeypatch.setattr(passwords, "get_password_encoder", lambda: stronger)

        resp = client.post("/api/v1/users/login", json={"email": "oldhash@example.com", "password": "upgrade-me"})

        assert resp.status_code == 200, resp.text
        stored = user_store.get_by_id(user_id).hashed_password
        assert stored != weak_hash
        assert stored.startswith("$2a$05$")
        assert stronger.matches("upgrade-me", stored)


class TestUnexpectedErrors:
    def test_500_envelope_keeps_cors_headers(self, api_client: tuple[TestClient, UserStore], monkeypatch) -> None:
        client, user_store = api_client

        def broken_lookup(user_id: int):
            raise RuntimeError("database exploded")

        monkeypatch.setattr(user_store, "get_by_id", broken_lookup)
        resp = client.get("/api/v1/users/1", headers={"Origin": "http://localhost:3000"})

        assert resp.status_code == 500
        assert resp.json() == {"error": {"code": "internal_error", "message": "An unexpected error occurred."}}
        assert "database exploded" not in resp.text
        assert resp.headers["access-control-allow-origin"] == "http://localhost:3000"
        assert resp.headers["access-control-allow-credentials"] == "true"

    def test_envelope_omits_empty_detail(self, api_client: tuple[TestClient, UserStore]) -> None:
        client, _ = api_client
        resp = client.get("/api/v1/no-such-route")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "http_404"
        assert "detail" not in resp.json()["error"]


class TestLoginRateLimit:
    def test_login_rate_limited(self, api_client: tuple[TestClient, UserStore]) -> None:
        """The 11th login within a minute from one client gets 429 with Retry-After."""
        client, _ = api_client
        limiter.reset()
        responses = [
            client.post("/api/v1/users/login", json={"email": SEED_EMAIL, "password": "wrongpass"}) for _ in range(11)
        ]
        limiter.reset()
        assert [r.status_code for r in responses[:10]] == [401] * 10
        assert responses[10].status_code == 429
        assert responses[10].json()["error"]["code"] == "rate_limited"
        assert "retry-after" in responses[10].headers

    @pytest.mark.parametrize("path", ["/api/v1/flights", "/api/v1/health"])
    def test_other_routes_not_limited(self, api_client: tuple[TestClient, UserStore], path: str) -> None:
        client, _ = api_client
        limiter.reset()
        statuses = {client.get(path).status_code for _ in range(12)}
        limiter.reset()
        assert statuses == {200}

"""
api/routes/v1/users.py -- Traveller account endpoints.

Routes:
  POST   /api/v1/users/signup      -- create an account; 201
  POST   /api/v1/users/login       -- check email + password; 200 or 401
  GET    /api/v1/users/{user_id}   -- fetch profile
  PUT    /api/v1/users/{user_id}   -- update name, phone or password
  DELETE /api/v1/users/{user_id}   -- remove account; 204

Auth policy: none. The authorization chain permits every request, so these
routes carry no Depends() guard.

Security:
  POST /login is rate-limited per client IP (Settings.login_rate_limit).
  authenticate_user() provides timing equalization -- use it, never inline.
  Unknown email and wrong password return the same 401 body.
  Handlers that run bcrypt are plain `def` so FastAPI runs them in the
  threadpool instead of blocking the event loop.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from api.limiter import limiter
from api.models import LoginRequest, SignupRequest, UserResponse, UserUpdate
from auth.models import User
from auth.passwords import authenticate_user, get_password_encoder
from auth.store import UserStore
from core.config import get_settings

logger = logging.getLogger("makemytrip.api.users")

router = APIRouter()

_settings = get_settings()


def _encode_or_422(raw_password: str) -> str:
    try:
        return get_password_encoder().encode(raw_password)
    except ValueError as exc:
        raise HTTPException(
            status_code=422,
            detail={"code": "password_too_long", "message": "Password cannot be more than 72 bytes."},
        ) from exc


def _get_or_404(user_store: UserStore, user_id: int) -> User:
    user = user_store.get_by_id(user_id)
    if user is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": f"User {user_id} not found."},
        )
    return user


@router.post("/users/signup", response_model=UserResponse, status_code=201)
def signup(request: Request, body: SignupRequest) -> UserResponse:
    """Register a new account. The password is stored only as a bcrypt hash."""
    user_store: UserStore = request.app.state.user_store

    new_user = User(
        name=body.name,
        email=str(body.email),
        phone=body.phone,
        hashed_password=_encode_or_422(body.password),
    )
    try:
        user_id = user_store.create_user(new_user)
    except IntegrityError as exc:
        raise HTTPException(
            status_code=409,
            detail={"code": "email_taken", "message": "An account with that email already exists."},
        ) from exc

    logger.info("User %d signed up", user_id)
    return UserResponse.from_user(user_store.get_by_id(user_id))


@router.post("/users/login", response_model=UserResponse)
# Below @router so FastAPI registers the rate-limited wrapper, not the bare function.
@limiter.limit(_settings.login_rate_limit)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Check credentials and return the account on success."""
    user_store: UserStore = request.app.state.user_store
    user = authenticate_user(user_store, str(body.email), body.password)
    if user is None:
        resp = JSONResponse(
            status_code=401,
            content={"error": {"code": "bad_credentials", "message": "Invalid email or password."}},
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    resp = JSONResponse(status_code=200, content=UserResponse.from_user(user).model_dump())
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(request: Request, user_id: int) -> UserResponse:
    return UserResponse.from_user(_get_or_404(request.app.state.user_store, user_id))


@router.put("/users/{user_id}", response_model=UserResponse)
def update_user(request: Request, user_id: int, body: UserUpdate) -> UserResponse:
    """Update profile fields. A new password is re-hashed before storage."""
    user_store: UserStore = request.app.state.user_store
    _get_or_404(user_store, user_id)

    fields: dict = {}
    if body.name is not None:
        fields["name"] = body.name
    if body.phone is not None:
        fields["phone"] = body.phone
    if body.password is not None:
        fields["hashed_password"] = _encode_or_422(body.password)

    user_store.update_user(user_id, **fields)
    return UserResponse.from_user(_get_or_404(user_store, user_id))


@router.delete("/users/{user_id}", status_code=204)
async def delete_user(request: Request, user_id: int) -> Response:
    user_store: UserStore = request.app.state.user_store
    if not user_store.delete_user(user_id):
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": f"User {user_id} not found."},
        )
    logger.info("User %d deleted", user_id)
    return Response(status_code=204)

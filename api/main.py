"""
api/main.py -- FastAPI application entry point for the MakeMyTrip API.

Run with:  uvicorn asgi:app --reload
           python main.py serve

Middleware stack (outermost to innermost):
  1. log_requests                  -- one access-log line per request
  2. SlowAPIMiddleware             -- enforces per-route rate limits from api.limiter
  3. CORSMiddleware                -- allow-listed origins, credentials allowed
  4. SecurityFilterChainMiddleware -- CSRF off, every request permitted
  5. catch_unhandled_errors        -- unexpected exceptions become the 500
                                      envelope inside CORS, so the browser
                                      can read them

Lifespan handles startup (user store, travel services) and shutdown (dispose DB
engine) symmetrically.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.bookings import router as bookings_router
from api.routes.v1.bundles import router as bundles_router
from api.routes.v1.catalog import router as catalog_router
from api.routes.v1.loyalty import router as loyalty_router
from api.routes.v1.pricing import router as pricing_router
from api.routes.v1.reviews import router as reviews_router
from api.routes.v1.users import router as users_router
from api.security import configure_security
from auth.store import UserStore
from catalog.bundles import BundleCatalog
from catalog.inventory import RoomInventory, SeatMap
from catalog.loyalty import LoyaltyLedger, seed_demo_ledger
from catalog.pricing import FLIGHT_PRICING, HOTEL_PRICING, PriceBoard
from catalog.reviews import ReviewBoard
from catalog.store import CatalogStore
from core.config import get_settings

API_VERSION = "1.0.0"

settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("makemytrip.api")

# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


def init_travel_services(state, rng: Optional[random.Random] = None) -> None:
    """Attach the in-memory travel services to app.state.

    rng drives which seats start out booked; pass a seeded Random for a
    reproducible cabin.
    """
    state.catalog = CatalogStore()
    state.seats = SeatMap(rng=rng)
    state.rooms = RoomInventory()
    state.flight_prices = PriceBoard("Flight", FLIGHT_PRICING)
    state.hotel_prices = PriceBoard("Hotel", HOTEL_PRICING)
    state.loyalty = LoyaltyLedger()
    seed_demo_ledger(state.loyalty)
    state.bundles = BundleCatalog(state.catalog)
    state.reviews = ReviewBoard()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open application-level resources on startup, release them on shutdown.

    Everything before yield runs on startup; everything after yield runs on
    shutdown.
    """
    logger.info("MakeMyTrip API starting up")
    app.state.user_store = UserStore(settings.database_url) if settings.database_url else UserStore()
    logger.info("User store initialized")
    init_travel_services(app.state)
    logger.info("Catalog, bookings, pricing, loyalty, bundles and reviews initialized")

    yield

    app.state.user_store.close()
    logger.info("MakeMyTrip API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="MakeMyTrip API",
    description="Accounts, search, bookings, dynamic pricing, loyalty, bundles and reviews for the MakeMyTrip clone.",
    version=API_VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Starlette makes the most recently added middleware the outermost layer, so
# registration below runs innermost first: the 500 fallback, security (chain,
# then CORS), then rate limiting, then request logging.
# ---------------------------------------------------------------------------


def _internal_error_response() -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(exclude_none=True),
    )


@app.middleware("http")
async def catch_unhandled_errors(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return _internal_error_response()


configure_security(app, settings)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(users_router, prefix="/api/v1", tags=["Users"])
app.include_router(catalog_router, prefix="/api/v1", tags=["Catalog"])
app.include_router(bookings_router, prefix="/api/v1", tags=["Bookings"])
app.include_router(pricing_router, prefix="/api/v1", tags=["Pricing"])
app.include_router(loyalty_router, prefix="/api/v1", tags=["Loyalty"])
app.include_router(bundles_router, prefix="/api/v1", tags=["Bundles"])
app.include_router(reviews_router, prefix="/api/v1", tags=["Reviews"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error and a Retry-After hint."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = JSONResponse(
        status_code=429,
        content=ErrorResponse(
            error=ErrorDetail(
                code="rate_limited",
                message="Too many requests.",
                detail=str(exc),
            )
        ).model_dump(exclude_none=True),
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or query params fail validation."""
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Request validation failed.",
                detail=str(exc.errors()),
            )
        ).model_dump(exclude_none=True),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    Route handlers raise HTTPException with a {"code", "message"} dict as
    detail; use it directly as the error field. Anything else (e.g. Starlette's
    own 404/405 strings) is wrapped in a generic http_<status> code.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler for errors raised outside catch_unhandled_errors (outer middleware).

    The traceback goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _internal_error_response()


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py so it is reachable regardless of router
# registration. No rate limit: load balancer health checks must not be throttled.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
async def health(request: Request) -> HealthResponse:
    """Return liveness, version, and per-component status."""
    components = {"app": "ok"}
    try:
        components["database"] = "ok" if request.app.state.user_store.ping() else "error"
    except SQLAlchemyError:
        logger.exception("Health check: database unreachable")
        components["database"] = "error"
    status = "healthy" if all(v == "ok" for v in components.values()) else "degraded"
    return HealthResponse(status=status, version=API_VERSION, components=components)

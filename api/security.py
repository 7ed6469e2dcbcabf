"""
api/security.py -- Process-wide security configuration for the MakeMyTrip API.

Everything here is assembled once, at import of api/main.py, from Settings:

  CorsPolicy            -- frozen allow-list of origins, methods and headers.
                           Materialized as Starlette's CORSMiddleware for
                           every path.
  AuthorizationChain    -- ordered (pattern, access) rules, first match wins.
                           The default chain is a single "any request ->
                           permit_all" rule: every endpoint is reachable
                           without authentication.
  SecurityFilterChainMiddleware
                        -- applies the chain to each request, plus the
                           optional double-submit CSRF check. CSRF is off by
                           default (Settings.csrf_enabled).

The permissive default is a placeholder, not a security boundary. Tighten it
by passing a different AuthorizationChain to configure_security().

Middleware order: Starlette makes the LAST added middleware the outermost.
configure_security() adds the filter chain first and CORS second, so CORS
sees the request first. Preflight OPTIONS requests are answered by CORS and
never reach the chain, and 403s from the chain still carry CORS headers so
the browser can read them.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from api.models import ErrorDetail, ErrorResponse
from core.config import Settings, get_settings

logger = logging.getLogger("makemytrip.security")

# ---------------------------------------------------------------------------
# CORS policy
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CorsPolicy:
    """Static cross-origin policy, identical for every path."""

    allowed_origins: tuple[str, ...]
    allowed_methods: tuple[str, ...]
    allowed_headers: tuple[str, ...]
    allow_credentials: bool
    max_age: int = 1800

    @classmethod
    def from_settings(cls, settings: Settings) -> "CorsPolicy":
        return cls(
            allowed_origins=tuple(settings.cors_allowed_origins),
            allowed_methods=tuple(settings.cors_allowed_methods),
            allowed_headers=tuple(settings.cors_allowed_headers),
            allow_credentials=settings.cors_allow_credentials,
            max_age=settings.cors_max_age,
        )

    def is_origin_allowed(self, origin: Optional[str]) -> bool:
        # Exact comparison: browsers send the origin verbatim, no trailing slash.
        return bool(origin) and (origin in self.allowed_origins or "*" in self.allowed_origins)

    def middleware_options(self) -> dict:
        """Keyword arguments for CORSMiddleware."""
        return {
            "allow_origins": list(self.allowed_origins),
            "allow_methods": list(self.allowed_methods),
            "allow_headers": list(self.allowed_headers),
            "allow_credentials": self.allow_credentials,
            "max_age": self.max_age,
        }


# ---------------------------------------------------------------------------
# Authorization chain
# ---------------------------------------------------------------------------

PERMIT_ALL = "permit_all"
DENY_ALL = "deny_all"
ANY_REQUEST = "/**"

_ACCESS_LEVELS = frozenset({PERMIT_ALL, DENY_ALL})

# Methods that never change server state and so skip the CSRF check.
SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "TRACE"})

CSRF_COOKIE = "csrf_token"
CSRF_HEADER = "X-CSRF-Token"


@dataclass(frozen=True)
class AuthorizationRule:
    """Grant or refuse access to every path matching pattern.

    Patterns ending in "/**" match that path and everything below it
    ("/**" alone matches any request). Other patterns are shell-style globs
    matched against the whole path, e.g. "/api/v1/users/*".
    """

    pattern: str
    access: str = PERMIT_ALL

    def __post_init__(self) -> None:
        if self.access not in _ACCESS_LEVELS:
            raise ValueError(f"Unknown access level {self.access!r}; expected one of {sorted(_ACCESS_LEVELS)}")
        if not self.pattern.startswith("/"):
            raise ValueError(f"Rule pattern must start with '/': {self.pattern!r}")

    def matches(self, path: str) -> bool:
        if self.pattern.endswith("/**"):
            prefix = self.pattern[:-3]
            return not prefix or path == prefix or path.startswith(prefix + "/")
        return fnmatchcase(path, self.pattern)


@dataclass(frozen=True)
class AuthorizationChain:
    rules: tuple[AuthorizationRule, ...] = (AuthorizationRule(ANY_REQUEST, PERMIT_ALL),)
    csrf_enabled: bool = False

    @classmethod
    def permissive(cls, csrf_enabled: bool = False) -> "AuthorizationChain":
        """CSRF off (unless asked), any request permitted."""
        return cls(csrf_enabled=csrf_enabled)

    def access_for(self, path: str) -> str:
        """Return the access level of the first rule matching path (permit_all if none match)."""
        for rule in self.rules:
            if rule.matches(path):
                return rule.access
        return PERMIT_ALL

    def is_permitted(self, path: str) -> bool:
        return self.access_for(path) == PERMIT_ALL


def _forbidden(code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=403,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message)).model_dump(exclude_none=True),
    )


class SecurityFilterChainMiddleware(BaseHTTPMiddleware):
    """Apply an AuthorizationChain (and its optional CSRF check) to every request.

    With a CorsPolicy, cross-origin requests from unlisted origins are logged.
    They are still served: CORSMiddleware withholds the allow-origin header and
    the browser refuses to hand the response to the page.
    """

    def __init__(self, app, chain: AuthorizationChain, cors_policy: Optional[CorsPolicy] = None) -> None:
        super().__init__(app)
        self.chain = chain
        self.cors_policy = cors_policy

    async def dispatch(self, request: Request, call_next):
        path = request.url.path

        origin = request.headers.get("origin")
        if origin and self.cors_policy is not None and not self.cors_policy.is_origin_allowed(origin):
            logger.info("Cross-origin request from unlisted origin %s: %s %s", origin, request.method, path)

        if self.chain.csrf_enabled and request.method not in SAFE_METHODS:
            cookie_token = request.cookies.get(CSRF_COOKIE)
            header_token = request.headers.get(CSRF_HEADER)
            if not cookie_token or not header_token:
                logger.warning("CSRF token missing on %s %s", request.method, path)
                return _forbidden("csrf_missing", "CSRF token missing.")
            if not secrets.compare_digest(cookie_token, header_token):
                logger.warning("CSRF token mismatch on %s %s", request.method, path)
                return _forbidden("csrf_invalid", "CSRF token invalid.")

        if not self.chain.is_permitted(path):
            logger.warning("Access denied by authorization chain: %s %s", request.method, path)
            return _forbidden("forbidden", "Access denied.")

        response = await call_next(request)

        if self.chain.csrf_enabled and CSRF_COOKIE not in request.cookies:
            # Readable by JS on purpose: the SPA copies it into X-CSRF-Token.
            response.set_cookie(CSRF_COOKIE, secrets.token_urlsafe(32), httponly=False, samesite="lax")
        return response


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------


def configure_security(
    app: FastAPI,
    settings: Optional[Settings] = None,
    chain: Optional[AuthorizationChain] = None,
) -> tuple[CorsPolicy, AuthorizationChain]:
    """Install the authorization chain and the CORS filter on app.

    Returns the (policy, chain) pair that was installed; both are also kept
    on app.state for introspection.
    """
    settings = settings or get_settings()
    policy = CorsPolicy.from_settings(settings)
    chain = chain or AuthorizationChain.permissive(csrf_enabled=settings.csrf_enabled)

    app.add_middleware(SecurityFilterChainMiddleware, chain=chain, cors_policy=policy)
    app.add_middleware(CORSMiddleware, **policy.middleware_options())

    app.state.cors_policy = policy
    app.state.authorization_chain = chain
    logger.info(
        "Security configured: %d CORS origins, %d authorization rules, csrf_enabled=%s",
        len(policy.allowed_origins),
        len(chain.rules),
        chain.csrf_enabled,
    )
    return policy, chain

"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for MakeMyTrip happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. bcrypt_strength -> BCRYPT_STRENGTH). List fields are read as JSON,
      e.g. CORS_ALLOWED_ORIGINS='["http://localhost:3000"]'.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved. A wildcard origin cannot be combined with credentialed
      CORS -- browsers refuse such responses, so it is rejected at startup.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or catalog/.
"""

import logging
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("makemytrip.config")

DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "https://make-my-trip-clone-springboot.onrender.com",
    "https://makemytour-1.onrender.com",
]

DEFAULT_ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]

# bcrypt accepts cost factors 4..31. 10 matches the hashes already stored by
# the previous deployment.
MIN_BCRYPT_STRENGTH = 4
MAX_BCRYPT_STRENGTH = 31
DEFAULT_BCRYPT_STRENGTH = 10


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    log_level: str = "INFO"
    # Empty string means "use the default SQLite file next to auth/store.py".
    database_url: str = ""

    # ------------------------------------------------------------------
    # Password hashing
    # ------------------------------------------------------------------

    bcrypt_strength: int = DEFAULT_BCRYPT_STRENGTH

    # ------------------------------------------------------------------
    # CORS
    # ------------------------------------------------------------------

    cors_allowed_origins: list[str] = list(DEFAULT_ALLOWED_ORIGINS)
    cors_allowed_methods: list[str] = list(DEFAULT_ALLOWED_METHODS)
    cors_allowed_headers: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_max_age: int = 1800

    # ------------------------------------------------------------------
    # Request authorization
    # ------------------------------------------------------------------

    # Off: the API is consumed by a separate SPA that sends no CSRF token.
    csrf_enabled: bool = False

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_security(self) -> "Settings":
        """Reject configurations the security layer cannot honour.

        - bcrypt_strength outside 4..31 is not a valid bcrypt cost.
        - An empty origin list would silently disable the web front end.
        - "*" with credentials is refused by every browser; fail loudly here
          instead of shipping CORS headers that never work.
        """
        if not MIN_BCRYPT_STRENGTH <= self.bcrypt_strength <= MAX_BCRYPT_STRENGTH:
            raise ValueError(
                f"BCRYPT_STRENGTH must be between {MIN_BCRYPT_STRENGTH} and {MAX_BCRYPT_STRENGTH}, "
                f"got {self.bcrypt_strength}."
            )
        if not self.cors_allowed_origins:
            raise ValueError("CORS_ALLOWED_ORIGINS must list at least one origin.")
        if self.cors_allow_credentials and "*" in self.cors_allowed_origins:
            raise ValueError(
                "CORS_ALLOWED_ORIGINS cannot contain '*' when CORS_ALLOW_CREDENTIALS is true. "
                "List the origins explicitly."
            )
        self.cors_allowed_methods = [m.upper() for m in self.cors_allowed_methods]
        if self.csrf_enabled:
            logger.info("CSRF protection enabled for unsafe methods")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    All modules should call get_settings() rather than constructing Settings() directly.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()

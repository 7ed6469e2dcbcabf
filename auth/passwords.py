"""
auth/passwords.py -- bcrypt password encoder.

Security design decisions:
  Passwords: bcrypt used directly (no passlib wrapper). Every encode() call
       draws a fresh salt, so hashing the same plaintext twice yields two
       different strings that both verify.

  Version prefix: hashes are written as $2a$ so they stay interchangeable
       with the hashes the previous deployment stored. checkpw() accepts
       $2a$, $2b$ and $2y$ alike.

  Cost factor: configurable via Settings.bcrypt_strength (default 10).
       upgrade_encoding() reports stored hashes with a lower cost so the
       login route can rehash them after a successful check.

  72-byte limit: bcrypt only looks at the first 72 bytes. encode() refuses
       longer input instead of silently truncating it; matches() returns
       False for it.

Layer rule: no imports from api/ or catalog/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import TYPE_CHECKING

import bcrypt

from core.config import DEFAULT_BCRYPT_STRENGTH, MAX_BCRYPT_STRENGTH, MIN_BCRYPT_STRENGTH, get_settings

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("makemytrip.auth")

_MAX_PASSWORD_BYTES = 72

# $2a$10$ + 53 chars of salt and checksum in bcrypt's base64 alphabet.
_BCRYPT_PATTERN = re.compile(r"^\$2[aby]?\$(\d\d)\$[./0-9A-Za-z]{53}$")


class BCryptPasswordEncoder:
    """Salted one-way password hashing with an adaptive cost factor.

    Usage:
        encoder = BCryptPasswordEncoder(strength=12)
        stored = encoder.encode("s3cret")
        encoder.matches("s3cret", stored)  # True
    """

    def __init__(self, strength: int = DEFAULT_BCRYPT_STRENGTH, prefix: str = "2a") -> None:
        if not MIN_BCRYPT_STRENGTH <= strength <= MAX_BCRYPT_STRENGTH:
            raise ValueError(f"Bad strength: {strength}. Expected {MIN_BCRYPT_STRENGTH}..{MAX_BCRYPT_STRENGTH}.")
        if prefix not in ("2a", "2b"):
            raise ValueError(f"Unsupported bcrypt version prefix: {prefix!r}")
        self.strength = strength
        self._prefix = prefix.encode("ascii")

    def encode(self, raw_password: str) -> str:
        """Return a freshly salted bcrypt hash of raw_password.

        Raises ValueError if the password is longer than 72 bytes once
        UTF-8 encoded.
        """
        raw = raw_password.encode("utf-8")
        if len(raw) > _MAX_PASSWORD_BYTES:
            raise ValueError("Password cannot be more than 72 bytes.")
        salt = bcrypt.gensalt(rounds=self.strength, prefix=self._prefix)
        return bcrypt.hashpw(raw, salt).decode("utf-8")

    def matches(self, raw_password: str, encoded_password: str | None) -> bool:
        """Return True if raw_password hashes to encoded_password.

        Never raises for bad input: an empty or malformed stored hash is
        logged and treated as a mismatch.
        """
        if not encoded_password:
            logger.warning("Empty encoded password")
            return False
        if not _BCRYPT_PATTERN.match(encoded_password):
            logger.warning("Encoded password does not look like bcrypt")
            return False
        raw = raw_password.encode("utf-8")
        if len(raw) > _MAX_PASSWORD_BYTES:
            return False
        try:
            return bcrypt.checkpw(raw, encoded_password.encode("utf-8"))
        except ValueError:
            logger.warning("bcrypt rejected stored hash")
            return False

    def upgrade_encoding(self, encoded_password: str | None) -> bool:
        """Return True if encoded_password was produced with a lower cost than ours."""
        if not encoded_password:
            return False
        match = _BCRYPT_PATTERN.match(encoded_password)
        if match is None:
            raise ValueError("Encoded password does not look like bcrypt")
        return int(match.group(1)) < self.strength


@lru_cache
def get_password_encoder() -> BCryptPasswordEncoder:
    """Return the process-wide encoder, built once from Settings.bcrypt_strength."""
    return BCryptPasswordEncoder(strength=get_settings().bcrypt_strength)


# ---------------------------------------------------------------------------
# User authentication (constant-time)
# ---------------------------------------------------------------------------


@lru_cache
def _dummy_hash() -> str:
    """Hash compared against when the email is unknown.

    Built once, at the configured strength, so a miss costs the same bcrypt
    work as a wrong password and response time does not reveal which
    emails are registered.
    """
    return get_password_encoder().encode("makemytrip_timing_dummy")


def authenticate_user(store: UserStore, email: str, password: str) -> User | None:
    """Check an email/password pair. Returns the User on success, None otherwise.

    Always runs bcrypt, whether or not the email exists. When the stored hash
    was made with a lower cost than the current strength, it is replaced
    with a fresh hash before returning.
    """
    encoder = get_password_encoder()
    user = store.get_by_email(email)
    if user is None:
        encoder.matches(password, _dummy_hash())
        return None
    if not encoder.matches(password, user.hashed_password):
        return None
    if encoder.upgrade_encoding(user.hashed_password):
        logger.info("Rehashing password for user %s at strength %d", user.id, encoder.strength)
        user.hashed_password = encoder.encode(password)
        store.update_user(user.id, hashed_password=user.hashed_password)
    return user

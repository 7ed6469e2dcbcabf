"""
auth/models.py -- Domain dataclass for user accounts.

Pattern: Data class (pure data container, zero logic). The store and routes
do the work; this module only owns the shape.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A traveller account.

    email is the login identifier. It is stored lower-cased so lookups are
    case-insensitive. hashed_password is a bcrypt string produced by
    BCryptPasswordEncoder.encode(); the plaintext is never kept.
    """

    name: str
    email: str
    hashed_password: str
    id: int | None = None
    phone: str | None = None
    role: str = "user"
    created_at: str | None = None

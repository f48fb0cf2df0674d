"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in catalog/models.py -- dataclasses own domain shape; stores and routes do
the work.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class User:
    """A Credential Record: identity, password hash and profile fields.

    hashed_password is a bcrypt hash with its own salt. The plaintext password
    never reaches this object. API responses are built from this dataclass by
    api/models.UserResponse, which omits the hash.

    favorite_movies holds movie ids with set semantics (no duplicates, insert
    order preserved).
    """

    username: str
    hashed_password: str
    email: str
    birthday: str | None = None  # YYYY-MM-DD
    favorite_movies: list[int] = field(default_factory=list)
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class TokenClaims:
    """Decoded, verified claims of an access token."""

    subject: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class AuthContext:
    """What the Token Gate attaches to request.state.auth after a successful check."""

    user: User
    claims: TokenClaims

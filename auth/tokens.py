"""
auth/tokens.py -- Password hashing, credential verification and JWT utilities.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       sub (username), iat and exp. exp is always iat + 7 days. Tokens are
       never stored server-side and cannot be revoked; they simply expire.

       decode_access_token() checks the signature first and expiry second.
       A token signed with another key is InvalidTokenError even when it is
       also expired, so the caller never learns anything about the claims of
       a token we did not sign.

  Passwords: bcrypt directly (no passlib wrapper). Each hash carries its own
       salt from bcrypt.gensalt(). The _DUMMY_HASH constant enables timing
       equalization in authenticate_user() so response time does not reveal
       whether a username exists.

  SECRET_KEY: sourced from core.config.get_settings() once at module load.
       The Settings class validates the key at startup (see core/config.py).
       Functions accept a secret_key override so tests can sign with a
       foreign key; production callers never pass it.

Layer rule: no imports from api/ or catalog/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

from auth.errors import AuthenticationError, ExpiredTokenError, InvalidTokenError
from auth.models import TokenClaims
from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("myflix.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

ALGORITHM = "HS256"
TOKEN_LIFETIME = timedelta(days=7)

BAD_CREDENTIALS_MESSAGE = "Invalid username or password."

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    bcrypt rejects input over 72 bytes; auth/validation.py refuses such
    passwords before they get here.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


# Timing equalization dummy hash.
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("myflix_timing_dummy")


# ---------------------------------------------------------------------------
# Credential Verifier
# ---------------------------------------------------------------------------


def authenticate_user(store: UserStore, username: str, password: str) -> User:
    """Verify a username/password pair and return the matching User.

    Always runs bcrypt whether or not the user exists:
    - Unknown username: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash

    Both failures raise AuthenticationError with the same message, so the
    caller cannot tell them apart.
    """
    user = store.get_by_username(username)
    if user is None:
        # Equalize timing -- do NOT raise before running bcrypt
        verify_password(password, _DUMMY_HASH)
        raise AuthenticationError(BAD_CREDENTIALS_MESSAGE)
    if not verify_password(password, user.hashed_password):
        raise AuthenticationError(BAD_CREDENTIALS_MESSAGE)
    return user


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(username: str, *, now: datetime | None = None, secret_key: str | None = None) -> str:
    """Encode a signed JWT whose subject is the username.

    Args:
        username:   Stored as the sub claim.
        now:        Issue time (timezone-aware). Defaults to the current UTC
                    time. Truncated to whole seconds because JWT NumericDate
                    claims carry no fractions.
        secret_key: Signing key override. Defaults to Settings.secret_key.
    """
    issued_at = (now or datetime.now(timezone.utc)).replace(microsecond=0)
    payload = {
        "sub": username,
        "iat": issued_at,
        "exp": issued_at + TOKEN_LIFETIME,
    }
    return jwt.encode(payload, secret_key or _settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str, *, now: datetime | None = None, secret_key: str | None = None) -> TokenClaims:
    """Verify a JWT and return its claims.

    Raises:
        InvalidTokenError: signature mismatch, unparseable token, wrong
            algorithm, or a missing/ill-typed sub, iat or exp claim.
        ExpiredTokenError: the signature is valid but now is past exp.

    python-jose's own expiry check is disabled so expiry is evaluated against
    the caller-supplied clock, and only after the signature has been accepted.
    """
    try:
        payload = jwt.decode(
            token,
            secret_key or _settings.secret_key,
            algorithms=[ALGORITHM],
            options={"verify_exp": False},
        )
    except JWTError as exc:
        raise InvalidTokenError(f"Token verification failed: {exc}") from exc

    subject = payload.get("sub")
    issued_at = payload.get("iat")
    expires_at = payload.get("exp")
    if not isinstance(subject, str) or not subject:
        raise InvalidTokenError("Token has no subject.")
    if not isinstance(issued_at, int) or not isinstance(expires_at, int):
        raise InvalidTokenError("Token is missing iat or exp.")

    claims = TokenClaims(
        subject=subject,
        issued_at=datetime.fromtimestamp(issued_at, tz=timezone.utc),
        expires_at=datetime.fromtimestamp(expires_at, tz=timezone.utc),
    )
    if (now or datetime.now(timezone.utc)) > claims.expires_at:
        raise ExpiredTokenError(f"Token expired at {claims.expires_at.isoformat()}.")
    return claims

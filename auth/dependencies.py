"""
auth/dependencies.py -- The Token Gate: FastAPI Depends() helpers for authentication.

One auth method: Authorization: Bearer <token>. There are no cookies, API keys
or sessions. Each protected request runs one synchronous pass:

  1. extract_bearer_token()  -> UnauthenticatedError if absent or malformed
  2. decode_access_token()   -> InvalidTokenError / ExpiredTokenError
  3. user_store lookup       -> InvalidTokenError if the subject no longer exists
  4. AuthContext attached to request.state.auth

Nothing is cached between requests and tokens are never refreshed here.
The raised exceptions are domain errors from auth/errors.py; api/main.py maps
all of them to one generic 401.

require_self() additionally checks that the token subject owns the
{username} path parameter, for routes that modify a user's own record.

Layer rule: no imports from api/ or catalog/.
  auth/dependencies.py may import from fastapi (for Request/HTTPException)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Request

from auth.errors import InvalidTokenError, UnauthenticatedError
from auth.models import AuthContext, User
from auth.store import UserStore
from auth.tokens import decode_access_token

logger = logging.getLogger("myflix.auth")


def extract_bearer_token(authorization: str | None) -> str:
    """Return the token from an Authorization header value.

    The scheme is matched case-insensitively ("bearer" is accepted). The
    token itself must be a single non-empty word.
    """
    if not authorization or not authorization.strip():
        raise UnauthenticatedError("Missing Authorization header.")
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer":
        raise UnauthenticatedError("Authorization scheme must be Bearer.")
    if not token or any(ch.isspace() for ch in token):
        raise UnauthenticatedError("Malformed bearer token.")
    return token


def authenticate_request(request: Request) -> AuthContext:
    """Run the Token Gate for one request and attach the result to request.state.auth."""
    token = extract_bearer_token(request.headers.get("Authorization"))
    claims = decode_access_token(token)

    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_username(claims.subject)
    if user is None:
        # Deleted or renamed since the token was issued.
        raise InvalidTokenError(f"Token subject {claims.subject!r} does not exist.")

    context = AuthContext(user=user, claims=claims)
    request.state.auth = context
    return context


def get_current_user(request: Request) -> User:
    """Require a valid bearer token and return the authenticated User.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(user: User = Depends(get_current_user)): ...
    """
    return authenticate_request(request).user


def require_self(username: str, current_user: User = Depends(get_current_user)) -> User:
    """Require that the authenticated user is the one named in the {username} path parameter.

    Raises HTTP 403 otherwise. A valid token for one account must not be able
    to edit, delete or change favourites of another.
    """
    if current_user.username != username:
        logger.info("User %r denied access to account %r", current_user.username, username)
        raise HTTPException(
            status_code=403,
            detail={"code": "forbidden", "message": "You can only modify your own account."},
        )
    return current_user

"""
auth/errors.py -- Exception taxonomy for the credential and token flow.

Every failure the auth layer can report is a subclass of AuthError. The
api/ layer owns the mapping to HTTP status codes and response bodies
(see the exception handlers in api/main.py); nothing in auth/ knows about
status codes.

  ValidationError        client input malformed               -> 422
  AuthenticationError    bad username/password                -> 400
  UnauthenticatedError   no usable bearer token on the request -> 401
  InvalidTokenError      bad signature, garbage, unknown sub  -> 401
  ExpiredTokenError      valid signature, past expiry         -> 401

The last three share TokenError as a base so handlers can collapse them into
one generic 401.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    """One rejected input field and the reason it was rejected."""

    field: str
    message: str


class AuthError(Exception):
    """Base class for all auth-layer failures."""


class ValidationError(AuthError):
    """Raised when a create/update body fails field validation.

    Carries every violation found, not just the first one.
    """

    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in self.errors))


class AuthenticationError(AuthError):
    """Raised when a username/password pair does not match a stored record.

    Unknown username and wrong password raise this with the same message.
    """


class TokenError(AuthError):
    """Base class for the Token Gate failures that collapse to a 401."""


class UnauthenticatedError(TokenError):
    """No bearer token was presented, or the Authorization header is malformed."""


class InvalidTokenError(TokenError):
    """The token is not a valid token signed with our key, or its subject no longer exists."""


class ExpiredTokenError(TokenError):
    """The token signature is valid but its expiry has passed."""

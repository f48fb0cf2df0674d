"""
auth/validation.py -- Field checks for create/update identity requests.

Route handlers call ensure_valid_user_input() exactly once, first thing,
before hashing a password or touching a store. There is no second check
further down the handler.

Every rule is evaluated and every violation is returned, so a client fixing
a form sees all problems in one round trip. Username can therefore collect
two errors (too short and non-alphanumeric) at once.

Email syntax is checked with email-validator (the library behind pydantic's
EmailStr). Deliverability (DNS) is not checked -- validation must stay a pure
CPU check with no network I/O.
"""

from __future__ import annotations

from email_validator import EmailNotValidError, validate_email

from auth.errors import FieldError, ValidationError

USERNAME_MIN_LENGTH = 5
PASSWORD_MAX_BYTES = 72

USERNAME_LENGTH_MESSAGE = "Username is required and has to be minimum five characters long"
USERNAME_ALNUM_MESSAGE = "Username contains non alphanumeric characters - not allowed."
PASSWORD_REQUIRED_MESSAGE = "Password is required"
PASSWORD_TOO_LONG_MESSAGE = "Password must be at most 72 bytes long"
EMAIL_INVALID_MESSAGE = "Email does not appear to be valid"


def _is_alphanumeric(value: str) -> bool:
    # str.isalnum() accepts non-ASCII letters and digits; usernames are ASCII only.
    return value.isascii() and value.isalnum()


def _is_email(value: str) -> bool:
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def validate_user_input(username: str | None, password: str | None, email: str | None) -> list[FieldError]:
    """Return every FieldError for the given identity fields (empty list = valid)."""
    errors: list[FieldError] = []
    username = username or ""
    if len(username) < USERNAME_MIN_LENGTH:
        errors.append(FieldError("Username", USERNAME_LENGTH_MESSAGE))
    if not _is_alphanumeric(username):
        errors.append(FieldError("Username", USERNAME_ALNUM_MESSAGE))
    if not password:
        errors.append(FieldError("Password", PASSWORD_REQUIRED_MESSAGE))
    elif len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        # bcrypt input limit, counted in UTF-8 bytes.
        errors.append(FieldError("Password", PASSWORD_TOO_LONG_MESSAGE))
    if not email or not _is_email(email):
        errors.append(FieldError("Email", EMAIL_INVALID_MESSAGE))
    return errors


def ensure_valid_user_input(username: str | None, password: str | None, email: str | None) -> None:
    """Raise ValidationError carrying all violations, or return None if the input is valid."""
    errors = validate_user_input(username, password, email)
    if errors:
        raise ValidationError(errors)

"""
api/routes/users.py -- User account and favourites REST endpoints.

Routes:
  POST   /users                               -- register (public)
  GET    /users                               -- list accounts (token)
  GET    /users/{username}                    -- one account (token)
  PUT    /users/{username}                    -- replace profile (token, self)
  DELETE /users/{username}                    -- delete account (token, self)
  POST   /users/{username}/movies/{movie_id}  -- add favourite (token, self)
  DELETE /users/{username}/movies/{movie_id}  -- remove favourite (token, self)

POST and PUT take the profile as a JSON body or as a form post
(application/x-www-form-urlencoded or multipart), like /login. Blank form
fields count as absent.

Write path for POST and PUT, in this order and exactly once each:
  1. ensure_valid_user_input()  -- 422 with every field error, nothing touched
  2. store lookup               -- duplicate / not-found checks
  3. hash_password()
  4. store write

"self" routes use require_self(): the token subject must equal {username},
otherwise 403. This is the IDOR guard for account data.
"""

from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError

from api.models import MessageResponse, UserCreate, UserResponse, UserUpdate
from api.routes.auth import FORM_CONTENT_TYPES
from auth.dependencies import get_current_user, require_self
from auth.models import User
from auth.store import UserStore
from auth.tokens import hash_password
from auth.validation import ensure_valid_user_input
from catalog.store import MovieStore

logger = logging.getLogger("myflix.api")

# Auth policy:
# - POST   /users:                              public -- registration
# - GET    /users, /users/{username}:           requires auth (get_current_user)
# - PUT    /users/{username}:                   requires auth + self (require_self)
# - DELETE /users/{username}:                   requires auth + self
# - POST   /users/{username}/movies/{movie_id}: requires auth + self
# - DELETE /users/{username}/movies/{movie_id}: requires auth + self
router = APIRouter()


def _profile_body_schema(model: type[UserCreate]) -> dict:
    schema = model.model_json_schema(by_alias=True)
    return {
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {"schema": schema},
                "application/x-www-form-urlencoded": {"schema": schema},
            },
        }
    }


async def _read_profile(request: Request, model: type[UserCreate]) -> UserCreate:
    """Parse a JSON or form body into model, reporting errors in the 422 shape."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        data = {k: v for k, v in form.items() if isinstance(v, str) and v}
    else:
        try:
            data = await request.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            raise RequestValidationError(
                [{"type": "model_attributes_type", "loc": ("body",), "msg": "Expected a JSON object", "input": None}]
            )
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False)) from exc


async def create_body(request: Request) -> UserCreate:
    return await _read_profile(request, UserCreate)


async def update_body(request: Request) -> UserUpdate:
    return await _read_profile(request, UserUpdate)


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def _not_found(username: str) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"code": "not_found", "message": f"{username} was not found"},
    )


# ---------------------------------------------------------------------------
# Registration (public)
# ---------------------------------------------------------------------------


@router.post(
    "/users",
    response_model=UserResponse,
    status_code=201,
    openapi_extra=_profile_body_schema(UserCreate),
)
def create_user(request: Request, body: UserCreate = Depends(create_body)) -> UserResponse:
    """Register a new account. The password is hashed before it is stored."""
    ensure_valid_user_input(body.username, body.password, body.email)

    user_store: UserStore = request.app.state.user_store
    taken = HTTPException(
        status_code=400,
        detail={"code": "username_taken", "message": f"{body.username} already exists"},
    )
    if user_store.get_by_username(body.username) is not None:
        raise taken

    new_user = User(
        username=body.username,
        hashed_password=hash_password(body.password),
        email=body.email,
        birthday=_iso(body.birthday),
    )
    try:
        user_store.create_user(new_user)
    except IntegrityError as exc:
        # Concurrent registration for the same name won the race.
        raise taken from exc

    logger.info("Registered user %r", body.username)
    return UserResponse.from_user(user_store.get_by_username(body.username))


# ---------------------------------------------------------------------------
# Reads (authenticated)
# ---------------------------------------------------------------------------


@router.get("/users", response_model=list[UserResponse])
def list_users(request: Request, current_user: User = Depends(get_current_user)) -> list[UserResponse]:
    user_store: UserStore = request.app.state.user_store
    return [UserResponse.from_user(u) for u in user_store.list_users()]


@router.get("/users/{username}", response_model=UserResponse)
def get_user(request: Request, username: str, current_user: User = Depends(get_current_user)) -> UserResponse:
    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_username(username)
    if user is None:
        raise _not_found(username)
    return UserResponse.from_user(user)


# ---------------------------------------------------------------------------
# Writes on the caller's own account
# ---------------------------------------------------------------------------


@router.put("/users/{username}", response_model=UserResponse, openapi_extra=_profile_body_schema(UserUpdate))
def update_user(
    request: Request,
    username: str,
    current_user: User = Depends(require_self),
    body: UserUpdate = Depends(update_body),
) -> UserResponse:
    """Replace username, password, email and birthday.

    Renaming the account changes the token subject: tokens issued under the
    old name stop resolving and the client must log in again.
    """
    ensure_valid_user_input(body.username, body.password, body.email)

    user_store: UserStore = request.app.state.user_store
    if user_store.get_by_username(username) is None:
        raise _not_found(username)

    try:
        updated = user_store.update_user(
            username,
            username=body.username,
            hashed_password=hash_password(body.password),
            email=body.email,
            birthday=_iso(body.birthday),
        )
    except IntegrityError as exc:
        raise HTTPException(
            status_code=409,
            detail={"code": "conflict", "message": f"{body.username} already exists"},
        ) from exc
    if updated is None:
        raise _not_found(username)
    return UserResponse.from_user(updated)


@router.delete("/users/{username}", response_model=MessageResponse)
def delete_user(request: Request, username: str, current_user: User = Depends(require_self)) -> MessageResponse:
    user_store: UserStore = request.app.state.user_store
    if not user_store.delete_user(username):
        raise _not_found(username)
    logger.info("Deleted user %r", username)
    return MessageResponse(message=f"{username} was deleted.")


@router.post("/users/{username}/movies/{movie_id}", response_model=UserResponse)
def add_favorite(
    request: Request,
    username: str,
    movie_id: int,
    current_user: User = Depends(require_self),
) -> UserResponse:
    """Add a movie to the user's favourites. Adding it twice is a no-op."""
    movie_store: MovieStore = request.app.state.movie_store
    if movie_store.get_by_id(movie_id) is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": f"Movie {movie_id} not found."},
        )
    user_store: UserStore = request.app.state.user_store
    updated = user_store.add_favorite(username, movie_id)
    if updated is None:
        raise _not_found(username)
    return UserResponse.from_user(updated)


@router.delete("/users/{username}/movies/{movie_id}", response_model=UserResponse)
def remove_favorite(
    request: Request,
    username: str,
    movie_id: int,
    current_user: User = Depends(require_self),
) -> UserResponse:
    user_store: UserStore = request.app.state.user_store
    updated = user_store.remove_favorite(username, movie_id)
    if updated is None:
        raise _not_found(username)
    return UserResponse.from_user(updated)

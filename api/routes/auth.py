"""
api/routes/auth.py -- Credential exchange endpoint.

Routes:
  POST /login -- Username/Password in; {user, token} out

Credentials are read from the query string, a form body
(application/x-www-form-urlencoded or multipart) or a JSON body, in that
order of precedence from lowest to highest: a body field overrides the same
query parameter. Clients written against the original API send them as a
query string or form post.

Security:
  authenticate_user() runs bcrypt for unknown usernames too -- use it, never
  inline get_by_username() + verify_password().
  Unknown user and wrong password both surface as AuthenticationError, which
  api/main.py turns into one 400 body.
  Cache-Control: no-store on every login response.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from api.models import LoginResponse, MessageResponse, UserResponse
from auth.store import UserStore
from auth.tokens import authenticate_user, create_access_token

logger = logging.getLogger("myflix.auth")

# Auth policy: POST /login is public -- it is how a client gets a token.
router = APIRouter()

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def _read_credentials(request: Request) -> tuple[str, str]:
    fields: dict[str, str] = dict(request.query_params)
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        fields.update({k: v for k, v in form.items() if isinstance(v, str)})
    elif content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            fields.update({k: v for k, v in body.items() if isinstance(v, str)})
    return fields.get("Username", ""), fields.get("Password", "")


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={400: {"model": MessageResponse, "description": "Authentication failed"}},
)
async def login(request: Request) -> JSONResponse:
    """Exchange a username and password for a bearer token valid for 7 days."""
    username, password = await _read_credentials(request)
    user_store: UserStore = request.app.state.user_store

    # bcrypt is CPU-bound; keep it off the event loop.
    user = await run_in_threadpool(authenticate_user, user_store, username, password)

    token = create_access_token(user.username)
    logger.info("Issued access token for %r", user.username)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(user=UserResponse.from_user(user), token=token).model_dump(by_alias=True),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp

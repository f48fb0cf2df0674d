"""
tests/test_token_gate.py -- Tests for auth/dependencies.py (the Token Gate).

Unit tests call extract_bearer_token() and authenticate_request() directly;
authenticate_request() only needs request.headers, request.app.state and
request.state, so a SimpleNamespace stands in for the Starlette Request.

Integration tests go through the real ASGI stack on a protected route
(GET /movies) and check that every rejection collapses to the same 401.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from auth.dependencies import authenticate_request, extract_bearer_token
from auth.errors import ExpiredTokenError, InvalidTokenError, UnauthenticatedError
from auth.models import User
from auth.tokens import create_access_token, hash_password

FOREIGN_KEY = "0123456789abcdef" * 4


def _request(user_store, authorization: str | None):
    headers = {} if authorization is None else {"Authorization": authorization}
    return SimpleNamespace(
        headers=headers,
        app=SimpleNamespace(state=SimpleNamespace(user_store=user_store)),
        state=SimpleNamespace(),
    )


# ---------------------------------------------------------------------------
# Header parsing
# ---------------------------------------------------------------------------


class TestExtractBearerToken:
    def test_returns_token(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    def test_scheme_is_case_insensitive(self):
        assert extract_bearer_token("bearer abc") == "abc"

    def test_surrounding_whitespace_ignored(self):
        assert extract_bearer_token("  Bearer   abc  ") == "abc"

    @pytest.mark.parametrize("header", [None, "", "   "])
    def test_absent_header(self, header):
        with pytest.raises(UnauthenticatedError):
            extract_bearer_token(header)

    @pytest.mark.parametrize("header", ["Bearer", "Bearer ", "Basic dXNlcjpwdw==", "Token abc", "Bearer a b", "abc"])
    def test_malformed_header(self, header):
        with pytest.raises(UnauthenticatedError):
            extract_bearer_token(header)


# ---------------------------------------------------------------------------
# Full gate, unit level
# ---------------------------------------------------------------------------


class TestAuthenticateRequest:
    @pytest.fixture
    def store(self, user_store):
        user_store.create_user(User(username="gateuser1", hashed_password=hash_password("pw"), email="g@b.com"))
        return user_store

    def test_round_trip_resolves_identity_and_attaches_context(self, store):
        request = _request(store, f"Bearer {create_access_token('gateuser1')}")
        context = authenticate_request(request)
        assert context.user.username == "gateuser1"
        assert context.claims.subject == "gateuser1"
        assert request.state.auth is context

    def test_missing_header(self, store):
        with pytest.raises(UnauthenticatedError):
            authenticate_request(_request(store, None))

    def test_foreign_signature(self, store):
        token = create_access_token("gateuser1", secret_key=FOREIGN_KEY)
        with pytest.raises(InvalidTokenError):
            authenticate_request(_request(store, f"Bearer {token}"))

    def test_expired(self, store):
        token = create_access_token("gateuser1", now=datetime.now(timezone.utc) - timedelta(days=7, minutes=1))
        with pytest.raises(ExpiredTokenError):
            authenticate_request(_request(store, f"Bearer {token}"))

    def test_unknown_subject(self, store):
        token = create_access_token("ghostuser")
        request = _request(store, f"Bearer {token}")
        with pytest.raises(InvalidTokenError):
            authenticate_request(request)
        assert not hasattr(request.state, "auth")


# ---------------------------------------------------------------------------
# Through the ASGI stack
# ---------------------------------------------------------------------------


class TestGateOverHttp:
    def test_valid_token_passes(self, api_client):
        resp = api_client.client.get("/movies", headers=api_client.auth())
        assert resp.status_code == 200

    def test_lowercase_scheme_passes(self, api_client):
        resp = api_client.client.get("/movies", headers={"Authorization": f"bearer {api_client.token}"})
        assert resp.status_code == 200

    def test_every_rejection_has_the_same_401(self, api_client):
        expired = create_access_token(api_client.username, now=datetime.now(timezone.utc) - timedelta(days=8))
        foreign = create_access_token(api_client.username, secret_key=FOREIGN_KEY)
        ghost = create_access_token("ghostuser")
        cases = [
            {},
            {"Authorization": "Basic dXNlcjpwdw=="},
            {"Authorization": "Bearer"},
            {"Authorization": "Bearer not.a.jwt"},
            {"Authorization": f"Bearer {expired}"},
            {"Authorization": f"Bearer {foreign}"},
            {"Authorization": f"Bearer {ghost}"},
        ]
        bodies = []
        for headers in cases:
            resp = api_client.client.get("/movies", headers=headers)
            assert resp.status_code == 401, headers
            assert resp.headers["WWW-Authenticate"] == "Bearer"
            bodies.append(resp.json())
        assert all(body == bodies[0] for body in bodies)
        assert bodies[0] == {"error": {"code": "unauthorized", "message": "Authentication required.", "detail": None}}

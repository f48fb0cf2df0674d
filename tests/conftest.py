"""
tests/conftest.py -- Shared test fixtures for myFlix tests.

This module provides:
  - _make_test_stores(): creates isolated in-memory DBs for users + movies
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: TestClient plus a registered user and a valid token
  - user_store / movie_store: fresh in-memory stores for unit tests

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.

The DEBUG env var must be set before any auth/core import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# CRITICAL: Set DEBUG before any auth/core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import User
from auth.store import UserStore
from auth.tokens import create_access_token, hash_password
from catalog.models import Director, Genre, Movie
from catalog.store import MovieStore

TEST_USERNAME = "testuser1"
TEST_PASSWORD = "testpass123"
TEST_EMAIL = "testuser1@example.com"

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _memory_url(name: str) -> str:
    return f"sqlite:///file:{name}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


def _make_test_stores(db_suffix: str) -> tuple[UserStore, MovieStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Args:
        db_suffix: String folded into the DB name so parallel test
                   modules don't share state (e.g. 'api').
    """
    url = _memory_url(f"test_myflix_{db_suffix}")
    return UserStore(db_url=url), MovieStore(db_url=url)


def _patch_lifespan(user_store: UserStore, movie_store: MovieStore):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.movie_store = movie_store
        yield

    return test_lifespan


def sample_movies() -> list[Movie]:
    return [
        Movie(
            title="Inception",
            description="A thief who steals corporate secrets through dream-sharing.",
            genre=Genre(name="Science Fiction", description="Speculative futures."),
            director=Director(name="Christopher Nolan", bio="British-American filmmaker.", birth="1970"),
            image_path="inception.png",
            featured=True,
            actors=["Leonardo DiCaprio", "Elliot Page"],
        ),
        Movie(
            title="Interstellar",
            description="Explorers travel through a wormhole.",
            genre=Genre(name="Science Fiction", description="Speculative futures."),
            director=Director(name="Christopher Nolan", bio="British-American filmmaker.", birth="1970"),
        ),
        Movie(
            title="Psycho",
            description="A secretary embezzles money and checks into a remote motel.",
            genre=Genre(name="Thriller", description="Suspense."),
            director=Director(name="Alfred Hitchcock", bio="Master of suspense.", birth="1899", death="1980"),
        ),
    ]


# ---------------------------------------------------------------------------
# Unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore(db_url=_memory_url("unit_users"))
    yield store
    store.close()


@pytest.fixture
def movie_store() -> Generator[MovieStore, None, None]:
    store = MovieStore(db_url=_memory_url("unit_movies"))
    yield store
    store.close()


# ---------------------------------------------------------------------------
# Integration fixture -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@dataclass
class ApiContext:
    client: TestClient
    token: str
    user_store: UserStore
    movie_store: MovieStore
    movie_ids: dict[str, int]
    username: str = TEST_USERNAME
    password: str = TEST_PASSWORD

    def auth(self, token: str | None = None) -> dict[str, str]:
        return {"Authorization": f"Bearer {token or self.token}"}


@pytest.fixture(scope="module")
def api_client() -> Generator[ApiContext, None, None]:
    """Yield an ApiContext for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so
    tests hit real route handlers but use isolated in-memory stores.
    One user (TEST_USERNAME / TEST_PASSWORD) and the sample movies are
    created before the client starts.
    """
    user_store, movie_store = _make_test_stores("api")
    user_store.create_user(
        User(username=TEST_USERNAME, hashed_password=hash_password(TEST_PASSWORD), email=TEST_EMAIL)
    )
    movie_ids = {m.title: movie_store.create_movie(m) for m in sample_movies()}
    token = create_access_token(TEST_USERNAME)

    app.router.lifespan_context = _patch_lifespan(user_store, movie_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiContext(client, token, user_store, movie_store, movie_ids)

    user_store.close()
    movie_store.close()



@pytest.fixture
def movies() -> list[Movie]:
    """Fresh, unsaved copies of the sample catalogue."""
    return sample_movies()

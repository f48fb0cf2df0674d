"""
auth/store.py -- SQLAlchemy Core persistence layer for Credential Records.

Pattern: Repository + Data Mapper (same as catalog/store.py).
UserStore is the repository; _row_to_user is the mapper.
Route and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  The store only ever sees password hashes; hashing happens in auth/tokens.py
  before a User reaches create_user() or update_user().

Favourite movies are a JSON array in a TEXT column (same approach as tags in
the catalogue). add_favorite() keeps set semantics: adding an id that is
already present is a no-op.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, select, text
from sqlalchemy.engine import Engine

from auth.models import User
from core.config import get_settings

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("email", String(320), nullable=False),
    Column("birthday", String(10)),  # YYYY-MM-DD
    Column("favorite_movies", Text, nullable=False, server_default="[]"),  # JSON array of movie ids
    Column("created_at", String(32), nullable=False),
)

# Fields update_user() accepts. Anything else is a programming error.
_UPDATABLE_FIELDS = {"username", "hashed_password", "email", "birthday"}


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User (Credential Record) entities.

    Usage:
        store = UserStore()
        store.create_user(User(username="alice1", hashed_password=hash_password("pw"), email="a@b.com"))
        user = store.get_by_username("alice1")
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /health."""
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the username already exists.
        Callers check get_by_username() first for a friendly message, and
        still catch IntegrityError for the race where two registrations for
        the same name pass that check together.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    username=user.username,
                    hashed_password=user.hashed_password,
                    email=user.email,
                    birthday=user.birthday,
                    favorite_movies=json.dumps(user.favorite_movies),
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self) -> list[User]:
        """Return all users ordered by username."""
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.username)).fetchall()
        return [_row_to_user(r) for r in rows]

    def update_user(self, current_username: str, **fields) -> User | None:
        """Update profile fields on an existing user and return the fresh record.

        Accepted fields: username, hashed_password, email, birthday.
        Returns None if no user is named current_username. Passing username=
        renames the account.

        Raises ValueError for unknown field names and
        sqlalchemy.exc.IntegrityError if a rename collides with another user.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown user fields: {unknown!r}")
        with self.engine.connect() as conn:
            result = conn.execute(_users.update().where(_users.c.username == current_username).values(**fields))
            conn.commit()
        if result.rowcount == 0:
            return None
        return self.get_by_username(fields.get("username", current_username))

    def delete_user(self, username: str) -> bool:
        """Permanently delete a user record. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete().where(_users.c.username == username))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Favourites
    # ------------------------------------------------------------------

    def add_favorite(self, username: str, movie_id: int) -> User | None:
        """Add movie_id to the user's favourites (no-op if already present).

        Returns the updated User, or None if the user does not exist.
        """
        return self._rewrite_favorites(username, lambda ids: ids if movie_id in ids else ids + [movie_id])

    def remove_favorite(self, username: str, movie_id: int) -> User | None:
        """Remove movie_id from the user's favourites (no-op if absent).

        Returns the updated User, or None if the user does not exist.
        """
        return self._rewrite_favorites(username, lambda ids: [i for i in ids if i != movie_id])

    def _rewrite_favorites(self, username: str, change) -> User | None:
        # Read-modify-write inside one transaction so concurrent edits to the
        # same user serialize on SQLite's write lock.
        with self.engine.begin() as conn:
            row = conn.execute(
                select(_users.c.favorite_movies).where(_users.c.username == username)
            ).fetchone()
            if row is None:
                return None
            ids = change(json.loads(row.favorite_movies or "[]"))
            conn.execute(_users.update().where(_users.c.username == username).values(favorite_movies=json.dumps(ids)))
        return self.get_by_username(username)

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        hashed_password=row.hashed_password,
        email=row.email,
        birthday=row.birthday,
        favorite_movies=json.loads(row.favorite_movies or "[]"),
        created_at=row.created_at,
    )

"""
catalog/store.py -- SQLAlchemy-backed persistence layer for the movie catalogue.

Uses SQLAlchemy Core (not ORM) so the dataclasses in catalog/models.py remain
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change, not a rewrite.

Pattern: Repository + Data Mapper. MovieStore is the repository; _row_to_movie
is the mapper. Route handlers never touch SQL directly.

The embedded Genre and Director documents are flattened into columns so that
genre and director lookups are plain indexed equality queries.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = MovieStore()                               # settings.database_url
    store = MovieStore("postgresql://user:pw@host/db") # PostgreSQL
    movie_id = store.create_movie(movie)
    movies = store.list_by_genre("Drama")
    store.close()
"""

import json
from typing import Optional

from sqlalchemy import Boolean, Column, Integer, MetaData, String, Table, Text, create_engine, event, false, text
from sqlalchemy.engine import Engine

from catalog.models import Director, Genre, Movie
from core.config import get_settings

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_movies = Table(
    "movies",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(255), nullable=False, unique=True),
    Column("description", Text, nullable=False, server_default=""),
    Column("genre_name", String(100), nullable=False, index=True),
    Column("genre_description", Text, nullable=False, server_default=""),
    Column("director_name", String(255), nullable=False, index=True),
    Column("director_bio", Text, nullable=False, server_default=""),
    Column("director_birth", String(32)),
    Column("director_death", String(32)),
    Column("image_path", String(500)),
    Column("featured", Boolean, nullable=False, server_default=false()),
    Column("actors", Text, nullable=False, server_default="[]"),  # JSON array serialized as text
)


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class MovieStore:
    """Repository for Movie entities."""

    def __init__(self, db_url: Optional[str] = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def create_movie(self, movie: Movie) -> int:
        """Insert a movie and return its ID.

        Raises sqlalchemy.exc.IntegrityError if a movie with the same title exists.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _movies.insert().values(
                    title=movie.title,
                    description=movie.description,
                    genre_name=movie.genre.name,
                    genre_description=movie.genre.description,
                    director_name=movie.director.name,
                    director_bio=movie.director.bio,
                    director_birth=movie.director.birth,
                    director_death=movie.director.death,
                    image_path=movie.image_path,
                    featured=movie.featured,
                    actors=json.dumps(movie.actors),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_by_id(self, movie_id: int) -> Optional[Movie]:
        with self.engine.connect() as conn:
            row = conn.execute(_movies.select().where(_movies.c.id == movie_id)).fetchone()
        return _row_to_movie(row) if row is not None else None

    def get_by_title(self, title: str) -> Optional[Movie]:
        """Exact, case-sensitive title match. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_movies.select().where(_movies.c.title == title)).fetchone()
        return _row_to_movie(row) if row is not None else None

    def list_movies(self) -> list[Movie]:
        """Return every movie ordered by title."""
        with self.engine.connect() as conn:
            rows = conn.execute(_movies.select().order_by(_movies.c.title)).fetchall()
        return [_row_to_movie(r) for r in rows]

    def list_by_genre(self, genre_name: str) -> list[Movie]:
        """Return movies whose genre name matches exactly, ordered by title."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _movies.select().where(_movies.c.genre_name == genre_name).order_by(_movies.c.title)
            ).fetchall()
        return [_row_to_movie(r) for r in rows]

    def get_director(self, director_name: str) -> Optional[Director]:
        """Return the Director record embedded in the first movie by that director.

        Director data is denormalized onto every movie; the row with the lowest
        id is taken as canonical.
        """
        with self.engine.connect() as conn:
            row = conn.execute(
                _movies.select().where(_movies.c.director_name == director_name).order_by(_movies.c.id).limit(1)
            ).fetchone()
        return _row_to_movie(row).director if row is not None else None

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_movie(row) -> Movie:
    return Movie(
        id=row.id,
        title=row.title,
        description=row.description or "",
        genre=Genre(name=row.genre_name, description=row.genre_description or ""),
        director=Director(
            name=row.director_name,
            bio=row.director_bio or "",
            birth=row.director_birth,
            death=row.director_death,
        ),
        image_path=row.image_path,
        featured=bool(row.featured),
        actors=json.loads(row.actors or "[]"),
    )

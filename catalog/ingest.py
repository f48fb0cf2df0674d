"""
catalog/ingest.py -- JSON parser for bulk movie catalogue import.

Accepts a JSON array of movie documents in the original catalogue shape:

    [
      {
        "Title": "Inception",
        "Description": "...",
        "Genre": {"Name": "Science Fiction", "Description": "..."},
        "Director": {"Name": "Christopher Nolan", "Bio": "...", "Birth": "1970", "Death": null},
        "ImagePath": "inception.png",
        "Featured": true,
        "Actors": ["Leonardo DiCaprio"]
      }
    ]

Pipeline:
  file content -> parse_movies_json() -> list[Movie] -> MovieStore.create_movie()

Documents without a Title are skipped. A missing Genre or Director name is
stored as "Unknown" so genre/director lookups still have a key to match.
No external dependencies beyond stdlib.
"""

import json
from typing import Any

from catalog.models import Director, Genre, Movie

_UNKNOWN = "Unknown"


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def _optional_text(value: Any) -> str | None:
    text = _text(value)
    return text or None


def parse_movie(doc: dict) -> Movie | None:
    """Normalize one movie document. Returns None if the document has no title."""
    title = _text(doc.get("Title"))
    if not title:
        return None
    genre = doc.get("Genre") or {}
    director = doc.get("Director") or {}
    actors = doc.get("Actors") or []
    return Movie(
        title=title,
        description=_text(doc.get("Description")),
        genre=Genre(
            name=_text(genre.get("Name")) or _UNKNOWN,
            description=_text(genre.get("Description")),
        ),
        director=Director(
            name=_text(director.get("Name")) or _UNKNOWN,
            bio=_text(director.get("Bio")),
            birth=_optional_text(director.get("Birth")),
            death=_optional_text(director.get("Death")),
        ),
        image_path=_optional_text(doc.get("ImagePath")),
        featured=bool(doc.get("Featured", False)),
        actors=[_text(a) for a in actors if _text(a)],
    )


def parse_movies_json(content: str) -> list[Movie]:
    """Parse a JSON array of movie documents.

    Raises ValueError if content is not valid JSON or the top level is not an
    array. Non-object entries and entries without a Title are skipped.
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise ValueError("Expected a JSON array of movie documents.")

    movies: list[Movie] = []
    for doc in data:
        if not isinstance(doc, dict):
            continue
        movie = parse_movie(doc)
        if movie is not None:
            movies.append(movie)
    return movies

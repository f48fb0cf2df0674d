"""
catalog/models.py -- Domain dataclasses for the movie catalogue.

These are pure data containers with zero logic. Persistence lives in
catalog/store.py and JSON import in catalog/ingest.py.

Genre and Director are embedded in each Movie (one genre, one director per
movie), matching the shape of the original catalogue documents.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Genre:
    name: str
    description: str = ""


@dataclass
class Director:
    """A film director as embedded in a Movie document.

    birth and death are free-form year or date strings; death is None for
    living directors.
    """

    name: str
    bio: str = ""
    birth: Optional[str] = None
    death: Optional[str] = None


@dataclass
class Movie:
    """One catalogue entry.

    title is unique across the catalogue and is the lookup key for
    GET /movies/{title}. id is None before the record is written to the
    database; favourites reference movies by id.
    """

    title: str
    genre: Genre
    director: Director
    description: str = ""
    image_path: Optional[str] = None
    featured: bool = False
    actors: list[str] = field(default_factory=list)
    id: Optional[int] = None

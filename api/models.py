"""
API request and response models for the myFlix REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
catalog/models.py, which own the internal domain representation. Route
handlers map between the two.

Public field names keep the original catalogue casing (Username, Email,
FavoriteMovies, Title, Genre.Name ...). Python attributes are snake_case and
the public names are Pydantic aliases; populate_by_name lets route code build
models with the snake_case names.

Request models deliberately accept any string for Username, Password and
Email. Field rules live in auth/validation.py so that every violation is
reported in one structured list, and so the same rules apply however the
body arrived.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import User
from catalog.models import Director, Movie

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 401/403/404/409/500 responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class FieldErrorItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    message: str


class ValidationErrorResponse(BaseModel):
    """Body of every 422 response."""

    model_config = ConfigDict(frozen=True)

    errors: list[FieldErrorItem]


class MessageResponse(BaseModel):
    """Plain {"message": ...} body returned by DELETE /users/{username}."""

    model_config = ConfigDict(frozen=True)

    message: str


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserCreate(BaseModel):
    """Request body for POST /users."""

    model_config = ConfigDict(populate_by_name=True)

    username: Optional[str] = Field(default=None, alias="Username")
    password: Optional[str] = Field(default=None, alias="Password")
    email: Optional[str] = Field(default=None, alias="Email")
    birthday: Optional[date] = Field(default=None, alias="Birthday")


class UserUpdate(UserCreate):
    """Request body for PUT /users/{username}.

    Same shape and the same rules as registration: the original API replaces
    every profile field (including the password) on update.
    """


class UserResponse(BaseModel):
    """Public view of a Credential Record. Never includes the password hash."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int = Field(alias="_id")
    username: str = Field(alias="Username")
    email: str = Field(alias="Email")
    birthday: Optional[str] = Field(default=None, alias="Birthday")
    favorite_movies: list[int] = Field(default_factory=list, alias="FavoriteMovies")

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            birthday=user.birthday,
            favorite_movies=list(user.favorite_movies),
        )


class LoginResponse(BaseModel):
    """Response body for a successful POST /login."""

    model_config = ConfigDict(frozen=True)

    user: UserResponse
    token: str


# ---------------------------------------------------------------------------
# Movies
# ---------------------------------------------------------------------------


class GenreResponse(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(alias="Name")
    description: str = Field(default="", alias="Description")


class DirectorResponse(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(alias="Name")
    bio: str = Field(default="", alias="Bio")
    birth: Optional[str] = Field(default=None, alias="Birth")
    death: Optional[str] = Field(default=None, alias="Death")

    @classmethod
    def from_director(cls, director: Director) -> "DirectorResponse":
        return cls(name=director.name, bio=director.bio, birth=director.birth, death=director.death)


class MovieResponse(BaseModel):
    """One movie document in the original catalogue shape."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int = Field(alias="_id")
    title: str = Field(alias="Title")
    description: str = Field(default="", alias="Description")
    genre: GenreResponse = Field(alias="Genre")
    director: DirectorResponse = Field(alias="Director")
    image_path: Optional[str] = Field(default=None, alias="ImagePath")
    featured: bool = Field(default=False, alias="Featured")
    actors: list[str] = Field(default_factory=list, alias="Actors")

    @classmethod
    def from_movie(cls, movie: Movie) -> "MovieResponse":
        """Factory Method -- the domain-to-transport mapping lives with the output model."""
        return cls(
            id=movie.id,
            title=movie.title,
            description=movie.description,
            genre=GenreResponse(name=movie.genre.name, description=movie.genre.description),
            director=DirectorResponse.from_director(movie.director),
            image_path=movie.image_path,
            featured=movie.featured,
            actors=list(movie.actors),
        )

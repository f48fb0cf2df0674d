"""
api/routes/movies.py -- Read-only movie catalogue routes.

Routes:
  GET /movies                              -- all movies
  GET /movies/genre/{genre_name}           -- movies in a genre (may be empty)
  GET /movies/director/{director_name}     -- director record
  GET /movies/{title}                      -- one movie by exact title

Every route requires a valid bearer token (router-level dependency).
"""

from fastapi import APIRouter, Depends, HTTPException, Request

from api.models import DirectorResponse, MovieResponse
from auth.dependencies import get_current_user
from catalog.store import MovieStore

# Router-level dependency applies the Token Gate to every route registered
# on this router, so individual handlers don't repeat Depends(get_current_user).
router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("/movies", response_model=list[MovieResponse])
def list_movies(request: Request) -> list[MovieResponse]:
    movie_store: MovieStore = request.app.state.movie_store
    return [MovieResponse.from_movie(m) for m in movie_store.list_movies()]


@router.get("/movies/genre/{genre_name}", response_model=list[MovieResponse])
def list_movies_by_genre(request: Request, genre_name: str) -> list[MovieResponse]:
    """Return every movie whose genre name matches exactly."""
    movie_store: MovieStore = request.app.state.movie_store
    return [MovieResponse.from_movie(m) for m in movie_store.list_by_genre(genre_name)]


@router.get("/movies/director/{director_name}", response_model=DirectorResponse)
def get_director(request: Request, director_name: str) -> DirectorResponse:
    """Return the director's bio, birth and death years."""
    movie_store: MovieStore = request.app.state.movie_store
    director = movie_store.get_director(director_name)
    if director is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": f"Director {director_name!r} not found."},
        )
    return DirectorResponse.from_director(director)


@router.get("/movies/{title}", response_model=MovieResponse)
def get_movie(request: Request, title: str) -> MovieResponse:
    movie_store: MovieStore = request.app.state.movie_store
    movie = movie_store.get_by_title(title)
    if movie is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": f"Movie {title!r} not found."},
        )
    return MovieResponse.from_movie(movie)

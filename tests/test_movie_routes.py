"""
tests/test_movie_routes.py -- Integration tests for the /movies routes.

All movie routes sit behind the Token Gate; the sample catalogue from
conftest.sample_movies() is loaded before the client starts.
"""

from __future__ import annotations

import pytest


@pytest.mark.parametrize(
    "path",
    ["/movies", "/movies/Inception", "/movies/genre/Thriller", "/movies/director/Alfred Hitchcock"],
)
def test_movie_routes_require_token(api_client, path):
    assert api_client.client.get(path).status_code == 401


def test_list_movies(api_client):
    resp = api_client.client.get("/movies", headers=api_client.auth())
    assert resp.status_code == 200
    assert [m["Title"] for m in resp.json()] == ["Inception", "Interstellar", "Psycho"]


def test_get_movie_by_title(api_client):
    resp = api_client.client.get("/movies/Inception", headers=api_client.auth())
    assert resp.status_code == 200
    movie = resp.json()
    assert movie["_id"] == api_client.movie_ids["Inception"]
    assert movie["Genre"] == {"Name": "Science Fiction", "Description": "Speculative futures."}
    assert movie["Director"]["Name"] == "Christopher Nolan"
    assert movie["Featured"] is True
    assert movie["Actors"] == ["Leonardo DiCaprio", "Elliot Page"]


def test_unknown_title(api_client):
    resp = api_client.client.get("/movies/Nope", headers=api_client.auth())
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "not_found"


def test_movies_by_genre(api_client):
    resp = api_client.client.get("/movies/genre/Science Fiction", headers=api_client.auth())
    assert resp.status_code == 200
    assert [m["Title"] for m in resp.json()] == ["Inception", "Interstellar"]


def test_unknown_genre_is_empty_list(api_client):
    resp = api_client.client.get("/movies/genre/Western", headers=api_client.auth())
    assert resp.status_code == 200
    assert resp.json() == []


def test_director(api_client):
    resp = api_client.client.get("/movies/director/Alfred Hitchcock", headers=api_client.auth())
    assert resp.status_code == 200
    assert resp.json() == {"Name": "Alfred Hitchcock", "Bio": "Master of suspense.", "Birth": "1899", "Death": "1980"}


def test_unknown_director(api_client):
    resp = api_client.client.get("/movies/director/Nobody", headers=api_client.auth())
    assert resp.status_code == 404

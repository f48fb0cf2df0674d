#!/usr/bin/env python3
"""
myFlix -- catalogue and account management CLI.

Usage:
  python main.py load-movies movies.json
  python main.py list-movies
  python main.py issue-token alice123

load-movies imports a JSON array of movie documents (see catalog/ingest.py).
Titles already in the catalogue are skipped, so the command is safe to re-run.

issue-token prints a 7-day bearer token for an existing user, for scripts and
manual testing with curl.

Environment variables (or .env):
  DATABASE_URL  SQLAlchemy URL of the catalogue database
  SECRET_KEY    Token signing key (required unless DEBUG=true, for every command)
"""

import argparse
import sys
from pathlib import Path

from sqlalchemy.exc import IntegrityError

from auth.store import UserStore
from auth.tokens import create_access_token
from catalog.ingest import parse_movies_json
from catalog.store import MovieStore


def _read_file(path: str) -> str | None:
    """Read a UTF-8 text file, or print an error and return None.

    Resolves symlinks and verifies the path is a regular file before reading.
    """
    file_path = Path(path).resolve()
    if not file_path.is_file():
        print(f"  [!] '{path}' is not a readable file.")
        return None
    try:
        return file_path.read_text(encoding="utf-8")
    except OSError as e:
        print(f"  [!] Could not read file '{path}': {e}")
        return None


def load_movies(store: MovieStore, content: str) -> tuple[int, int]:
    """Import movies from JSON content. Returns (created, skipped)."""
    created = skipped = 0
    for movie in parse_movies_json(content):
        if store.get_by_title(movie.title) is not None:
            skipped += 1
            continue
        try:
            store.create_movie(movie)
        except IntegrityError:
            skipped += 1
            continue
        created += 1
    return created, skipped


def _cmd_load_movies(args: argparse.Namespace) -> int:
    content = _read_file(args.path)
    if content is None:
        return 1
    store = MovieStore()
    try:
        created, skipped = load_movies(store, content)
    except ValueError as e:
        print(f"  [!] {e}")
        return 1
    finally:
        store.close()
    print(f"  Loaded {created} movie(s), {skipped} skipped (already present).")
    return 0


def _cmd_list_movies(args: argparse.Namespace) -> int:
    store = MovieStore()
    try:
        movies = store.list_movies()
    finally:
        store.close()
    if not movies:
        print("  Catalogue is empty. Run: python main.py load-movies FILE")
        return 0
    for movie in movies:
        print(f"  {movie.id:>4}  {movie.title}  ({movie.genre.name}, {movie.director.name})")
    return 0


def _cmd_issue_token(args: argparse.Namespace) -> int:
    store = UserStore()
    try:
        user = store.get_by_username(args.username)
    finally:
        store.close()
    if user is None:
        print(f"  [!] No user named '{args.username}'.")
        return 1
    print(create_access_token(user.username))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="myflix",
        description="myFlix catalogue and account management.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py load-movies movies.json
  python main.py list-movies
  SECRET_KEY=... python main.py issue-token alice123
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    p_load = sub.add_parser("load-movies", help="Import movies from a JSON file")
    p_load.add_argument("path", metavar="FILE", help="Path to a JSON array of movie documents")
    p_load.set_defaults(func=_cmd_load_movies)

    p_list = sub.add_parser("list-movies", help="Print every movie in the catalogue")
    p_list.set_defaults(func=_cmd_list_movies)

    p_token = sub.add_parser("issue-token", help="Print a bearer token for an existing user")
    p_token.add_argument("username", help="Account to issue the token for")
    p_token.set_defaults(func=_cmd_issue_token)

    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 0
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

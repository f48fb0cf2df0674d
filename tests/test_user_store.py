"""Unit tests for auth/store.py -- UserStore repository methods.

Covers:
- create/get round trip and the username UNIQUE constraint
- update_user: field whitelist, rename, missing user
- delete_user
- favourites: set semantics on add, no-op remove, missing user
"""

import pytest
from sqlalchemy.exc import IntegrityError

from auth.models import User


def _user(name: str = "storeuser1", **kw) -> User:
    return User(username=name, hashed_password="$2b$12$hash", email=f"{name}@example.com", **kw)


def test_empty_store(user_store):
    assert user_store.list_users() == []
    assert user_store.ping() is True


def test_create_and_get(user_store):
    user_id = user_store.create_user(_user(birthday="1999-12-31"))
    fetched = user_store.get_by_username("storeuser1")
    assert fetched.id == user_id
    assert fetched.email == "storeuser1@example.com"
    assert fetched.birthday == "1999-12-31"
    assert fetched.favorite_movies == []
    assert fetched.created_at


def test_lookup_is_case_sensitive(user_store):
    user_store.create_user(_user("CaseUser1"))
    assert user_store.get_by_username("caseuser1") is None


def test_duplicate_username_raises(user_store):
    user_store.create_user(_user())
    with pytest.raises(IntegrityError):
        user_store.create_user(_user())


def test_list_users_sorted(user_store):
    for name in ("charlie1", "alpha001", "bravo001"):
        user_store.create_user(_user(name))
    assert [u.username for u in user_store.list_users()] == ["alpha001", "bravo001", "charlie1"]


class TestUpdateUser:
    def test_update_fields(self, user_store):
        user_store.create_user(_user())
        updated = user_store.update_user("storeuser1", email="new@example.com", birthday="2001-01-01")
        assert updated.email == "new@example.com"
        assert updated.birthday == "2001-01-01"

    def test_rename_returns_record_under_new_name(self, user_store):
        user_store.create_user(_user())
        updated = user_store.update_user("storeuser1", username="storeuser2")
        assert updated.username == "storeuser2"
        assert user_store.get_by_username("storeuser1") is None

    def test_rename_collision_raises(self, user_store):
        user_store.create_user(_user("storeuser1"))
        user_store.create_user(_user("storeuser2"))
        with pytest.raises(IntegrityError):
            user_store.update_user("storeuser1", username="storeuser2")

    def test_missing_user_returns_none(self, user_store):
        assert user_store.update_user("ghostuser", email="x@example.com") is None

    def test_unknown_field_rejected(self, user_store):
        user_store.create_user(_user())
        with pytest.raises(ValueError):
            user_store.update_user("storeuser1", favorite_movies="[1]")


def test_delete_user(user_store):
    user_store.create_user(_user())
    assert user_store.delete_user("storeuser1") is True
    assert user_store.delete_user("storeuser1") is False
    assert user_store.get_by_username("storeuser1") is None


class TestFavorites:
    def test_add_is_idempotent(self, user_store):
        user_store.create_user(_user())
        user_store.add_favorite("storeuser1", 3)
        user_store.add_favorite("storeuser1", 1)
        updated = user_store.add_favorite("storeuser1", 3)
        assert updated.favorite_movies == [3, 1]

    def test_remove(self, user_store):
        user_store.create_user(_user(favorite_movies=[1, 2, 3]))
        assert user_store.remove_favorite("storeuser1", 2).favorite_movies == [1, 3]

    def test_remove_absent_is_noop(self, user_store):
        user_store.create_user(_user(favorite_movies=[1]))
        assert user_store.remove_favorite("storeuser1", 9).favorite_movies == [1]

    def test_missing_user(self, user_store):
        assert user_store.add_favorite("ghostuser", 1) is None
        assert user_store.remove_favorite("ghostuser", 1) is None

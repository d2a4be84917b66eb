"""Unit tests for favorites/store.py -- FavoriteStore repository methods.

Covers:
- create_favorite() stores the snapshot, including the `by` field
- UNIQUE(user_id, story_id) rejects a second save by the same user only
- list_favorites() is scoped to the owner and newest first
- delete_favorite() removes only the owner's row
- favorite_story_ids() returns the owner's story ids as a set
- user_id must reference a stored user; removing the user removes their favorites
"""

import uuid

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from auth.models import User
from auth.store import UserStore
from favorites.models import Favorite
from favorites.store import FavoriteStore


def _fav(user_id: int, story_id: int, **kwargs) -> Favorite:
    return Favorite(
        user_id=user_id,
        story_id=story_id,
        title=kwargs.pop("title", f"Story {story_id}"),
        by=kwargs.pop("by", "pg"),
        score=kwargs.pop("score", 100),
        time=kwargs.pop("time", 1700000000),
        **kwargs,
    )


@pytest.fixture
def store():
    """FavoriteStore sharing a fresh in-memory DB with users 1, 2 and 3."""
    url = f"sqlite:///file:favorites_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    users = UserStore(url)
    for name in ("ann", "ben", "cat"):
        users.create_user(User(username=name, email=f"{name}@example.com", age=30, hashed_password="x"))
    s = FavoriteStore(url)
    yield s
    s.close()
    users.close()


class TestCreateFavorite:
    def test_snapshot_stored(self, store: FavoriteStore) -> None:
        fid = store.create_favorite(_fav(1, 42, url="https://example.com/a", by="dang"))
        fav = store.get_favorite(1, 42)
        assert fav is not None
        assert fav.id == fid
        assert fav.by == "dang"
        assert fav.url == "https://example.com/a"
        assert fav.title == "Story 42"
        assert fav.created_at

    def test_same_story_twice_rejected(self, store: FavoriteStore) -> None:
        store.create_favorite(_fav(1, 42))
        with pytest.raises(IntegrityError):
            store.create_favorite(_fav(1, 42))

    def test_same_story_for_two_users_allowed(self, store: FavoriteStore) -> None:
        store.create_favorite(_fav(1, 42))
        store.create_favorite(_fav(2, 42))
        assert store.get_favorite(1, 42) is not None
        assert store.get_favorite(2, 42) is not None


class TestListFavorites:
    def test_scoped_and_newest_first(self, store: FavoriteStore) -> None:
        store.create_favorite(_fav(1, 10))
        store.create_favorite(_fav(2, 11))
        store.create_favorite(_fav(1, 12))
        store.create_favorite(_fav(1, 13))
        assert [f.story_id for f in store.list_favorites(1)] == [13, 12, 10]
        assert [f.story_id for f in store.list_favorites(2)] == [11]
        assert store.list_favorites(3) == []

    def test_favorite_story_ids(self, store: FavoriteStore) -> None:
        store.create_favorite(_fav(1, 10))
        store.create_favorite(_fav(1, 12))
        store.create_favorite(_fav(2, 11))
        assert store.favorite_story_ids(1) == {10, 12}
        assert store.favorite_story_ids(3) == set()


class TestDeleteFavorite:
    def test_delete_own(self, store: FavoriteStore) -> None:
        store.create_favorite(_fav(1, 42))
        assert store.delete_favorite(1, 42) is True
        assert store.get_favorite(1, 42) is None
        assert store.delete_favorite(1, 42) is False

    def test_delete_scoped_to_owner(self, store: FavoriteStore) -> None:
        """Another user's delete of the same story id touches nothing."""
        store.create_favorite(_fav(1, 42))
        assert store.delete_favorite(2, 42) is False
        assert store.get_favorite(1, 42) is not None


class TestOwnerReference:
    def test_unknown_user_rejected(self, store: FavoriteStore) -> None:
        with pytest.raises(IntegrityError):
            store.create_favorite(_fav(999, 42))

    def test_user_removal_cascades(self, store: FavoriteStore) -> None:
        store.create_favorite(_fav(1, 42))
        store.create_favorite(_fav(2, 42))
        with store.engine.connect() as conn:
            conn.execute(text("DELETE FROM users WHERE id = :id"), {"id": 1})
            conn.commit()
        assert store.list_favorites(1) == []
        assert [f.user_id for f in store.list_favorites(2)] == [2]

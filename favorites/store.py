"""
favorites/store.py -- SQLAlchemy Core persistence for the Favorite Registry.

Pattern: Repository + Data Mapper (same as auth/store.py).

Ownership: every read and delete is scoped by user_id. There is no method
that deletes by story_id alone, so a caller cannot remove someone else's
favorite by guessing a story id.

Uniqueness: UNIQUE(user_id, story_id) is the authoritative guard. The route
pre-checks with get_favorite() to give a friendly error in the common case;
a concurrent duplicate that slips past the pre-check still fails here with
IntegrityError.

user_id references users.id with ON DELETE CASCADE, so the tables share
auth/store.metadata and removing a user removes their favorites.

Layer rule: no imports from api/. May share engine helpers from auth/store.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Column, ForeignKey, Index, Integer, String, Table, Text, UniqueConstraint
from sqlalchemy.engine import Engine

from auth.store import make_engine, metadata, now_iso
from favorites.models import Favorite

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_favorites = Table(
    "favorites",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("story_id", Integer, nullable=False),
    Column("title", Text, nullable=False),
    Column("url", Text),
    Column("author", String(255), nullable=False),  # HN "by" field
    Column("score", Integer, nullable=False),
    Column("time", Integer, nullable=False),
    Column("created_at", String(32), nullable=False),
    UniqueConstraint("user_id", "story_id", name="uq_user_story"),
    Index("ix_favorites_user_created", "user_id", "created_at"),
)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class FavoriteStore:
    """Repository for Favorite entities.

    Usage:
        store = FavoriteStore("sqlite:///modernhn.db")
        store.create_favorite(Favorite(user_id=1, story_id=42, title="T", by="bob", score=10, time=1690000000))
        store.list_favorites(1)
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        metadata.create_all(self.engine)

    def create_favorite(self, favorite: Favorite) -> int:
        """Insert a favorite and return its ID.

        Raises sqlalchemy.exc.IntegrityError if (user_id, story_id) already exists.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _favorites.insert().values(
                    user_id=favorite.user_id,
                    story_id=favorite.story_id,
                    title=favorite.title,
                    url=favorite.url,
                    author=favorite.by,
                    score=favorite.score,
                    time=favorite.time,
                    created_at=now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_favorite(self, user_id: int, story_id: int) -> Optional[Favorite]:
        """Look up one favorite by (user_id, story_id). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(
                _favorites.select().where((_favorites.c.user_id == user_id) & (_favorites.c.story_id == story_id))
            ).fetchone()
        return _row_to_favorite(row) if row is not None else None

    def list_favorites(self, user_id: int) -> list[Favorite]:
        """Return every favorite of a user, newest first.

        id breaks ties between rows saved within the same timestamp tick.
        """
        with self.engine.connect() as conn:
            rows = conn.execute(
                _favorites.select()
                .where(_favorites.c.user_id == user_id)
                .order_by(_favorites.c.created_at.desc(), _favorites.c.id.desc())
            ).fetchall()
        return [_row_to_favorite(r) for r in rows]

    def favorite_story_ids(self, user_id: int) -> set[int]:
        """Return the set of story ids a user has saved."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _favorites.select().with_only_columns(_favorites.c.story_id).where(_favorites.c.user_id == user_id)
            ).fetchall()
        return {r.story_id for r in rows}

    def delete_favorite(self, user_id: int, story_id: int) -> bool:
        """Delete exactly the (user_id, story_id) row. Returns True if a row was removed."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _favorites.delete().where((_favorites.c.user_id == user_id) & (_favorites.c.story_id == story_id))
            )
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_favorite(row) -> Favorite:
    return Favorite(
        id=row.id,
        user_id=row.user_id,
        story_id=row.story_id,
        title=row.title,
        url=row.url,
        by=row.author,
        score=row.score,
        time=row.time,
        created_at=row.created_at,
    )

"""
api/routes/favorites.py -- The caller's own saved stories.

Routes:
  GET    /api/favorites              -- list own favorites, newest first
  POST   /api/favorites              -- save a story snapshot (201)
  DELETE /api/favorites/{story_id}   -- remove one saved story

All three require the Authentication Gate. The owner is always the resolved
caller; no route accepts a user id from the request.

IDOR guard: DELETE passes current_user.id to the store, whose WHERE clause
requires both user_id and story_id to match. Removing a story that only
someone else saved answers 404, never 200.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import IntegrityError

from api.models import FavoriteCreate, FavoriteCreated, FavoriteList, FavoriteOut, MessageResponse
from auth.dependencies import get_current_user
from auth.models import User
from auth.store import fits_integer
from core.errors import DuplicateFavorite, InvalidId, NotFound
from favorites.models import Favorite
from favorites.store import FavoriteStore

logger = logging.getLogger("modernhn.favorites")

router = APIRouter()


@router.get("/favorites", response_model=FavoriteList)
def list_favorites(request: Request, current_user: User = Depends(get_current_user)) -> FavoriteList:
    """Return every story the caller has saved."""
    favorite_store: FavoriteStore = request.app.state.favorite_store
    favorites = favorite_store.list_favorites(current_user.id)
    return FavoriteList(favorites=[FavoriteOut.from_favorite(f) for f in favorites])


@router.post("/favorites", response_model=FavoriteCreated, status_code=201)
def add_favorite(
    request: Request,
    body: FavoriteCreate,
    current_user: User = Depends(get_current_user),
) -> FavoriteCreated:
    """Save a story for the caller.

    The pre-check produces the friendly error in the common case; the
    UNIQUE(user_id, story_id) constraint rejects a concurrent duplicate
    that gets past it.
    """
    favorite_store: FavoriteStore = request.app.state.favorite_store

    if favorite_store.get_favorite(current_user.id, body.story_id) is not None:
        logger.info("Duplicate favorite: user %s story %s", current_user.id, body.story_id)
        raise DuplicateFavorite()

    favorite = Favorite(
        user_id=current_user.id,
        story_id=body.story_id,
        title=body.title,
        url=body.url,
        by=body.by,
        score=body.score,
        time=body.time,
    )
    try:
        favorite_store.create_favorite(favorite)
    except IntegrityError as exc:
        logger.info("Duplicate favorite (constraint): user %s story %s", current_user.id, body.story_id)
        raise DuplicateFavorite() from exc

    created = favorite_store.get_favorite(current_user.id, body.story_id)
    logger.info("Favorite added: user %s story %s", current_user.id, body.story_id)
    return FavoriteCreated(message="Story added to favorites", favorite=FavoriteOut.from_favorite(created))


@router.delete("/favorites/{story_id}", response_model=MessageResponse)
def remove_favorite(
    request: Request,
    story_id: str,
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    """Remove one of the caller's saved stories.

    story_id arrives as text so a non-numeric value gets InvalidId (400)
    instead of the generic validation envelope.
    """
    try:
        parsed = int(story_id)
    except ValueError as exc:
        raise InvalidId() from exc
    if not fits_integer(parsed):
        # Too large for the column, so no such row can exist.
        raise NotFound("Favorite not found")

    favorite_store: FavoriteStore = request.app.state.favorite_store
    if not favorite_store.delete_favorite(current_user.id, parsed):
        raise NotFound("Favorite not found")
    logger.info("Favorite removed: user %s story %s", current_user.id, parsed)
    return MessageResponse(message="Story removed from favorites")

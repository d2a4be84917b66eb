"""
api/routes/stories.py -- Hacker News proxy.

Routes:
  GET /api/stories?type=top|new|best&limit=N

Public. When the caller presents a valid token, each story carries
isFavorite so the frontend can render the toggle state without a second
request; anonymous callers (or bad tokens) simply get isFavorite=false.
No caching -- every call goes upstream.
"""

from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Request

from api.models import StoryList, StoryOut
from auth.dependencies import get_identity
from auth.models import Authenticated, Identity
from core.config import Settings
from core.fetcher import fetch_stories
from favorites.store import FavoriteStore

router = APIRouter()


@router.get("/stories", response_model=StoryList)
def list_stories(
    request: Request,
    feed: Literal["top", "new", "best"] = Query("top", alias="type"),
    limit: Optional[int] = Query(None),
    identity: Identity = Depends(get_identity),
) -> StoryList:
    """Return the first stories of a Hacker News feed.

    limit is clamped to 1..NEWS_FETCH_LIMIT.
    """
    settings: Settings = request.app.state.settings
    cap = settings.news_fetch_limit
    count = cap if limit is None else max(1, min(limit, cap))

    stories = fetch_stories(settings.news_api_url, feed, count)

    saved: set[int] = set()
    if isinstance(identity, Authenticated):
        favorite_store: FavoriteStore = request.app.state.favorite_store
        saved = favorite_store.favorite_story_ids(identity.user.id)

    return StoryList(stories=[StoryOut.from_story(s, s.id in saved) for s in stories])

"""
fetcher.py -- Hacker News API fetching for the stories proxy.

The upstream is public and unauthenticated. Every call goes through one
module-level requests.Session for connection pooling. Failures on the id list
raise UpstreamUnavailable (the proxy has nothing to show); failures on single
items are logged and skipped so one bad item does not sink the page.
"""

import logging
from typing import Any, Optional

import requests

from core.errors import UpstreamUnavailable
from core.models import STORY_FEEDS, Story

logger = logging.getLogger("modernhn.fetcher")

_TIMEOUT = 10

# max_redirects=3 replaces the requests default of 30 -- a known public API
# never needs more than a couple of hops.
_session = requests.Session()
_session.max_redirects = 3


def fetch_story_ids(base_url: str, feed: str) -> list[int]:
    """Return the story id list for a feed ("top", "new" or "best").

    Raises KeyError for an unknown feed and UpstreamUnavailable when the
    upstream cannot be reached or returns something other than a list.
    """
    endpoint = f"{base_url}/{STORY_FEEDS[feed]}.json"
    try:
        resp = _session.get(endpoint, timeout=_TIMEOUT)
        resp.raise_for_status()
        ids = resp.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("Story list fetch failed for %s: %s", feed, e)
        raise UpstreamUnavailable() from e
    if not isinstance(ids, list):
        logger.warning("Story list for %s was not a list", feed)
        raise UpstreamUnavailable()
    return [i for i in ids if isinstance(i, int)]


def fetch_item(base_url: str, item_id: int) -> Optional[dict[str, Any]]:
    """Fetch a single raw item. Returns None on any failure."""
    try:
        resp = _session.get(f"{base_url}/item/{item_id}.json", timeout=_TIMEOUT)
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("Item fetch failed for %s: %s", item_id, e)
        return None
    return data if isinstance(data, dict) else None


def to_story(raw: dict[str, Any]) -> Optional[Story]:
    """Map a raw item to a Story. Deleted, dead, or title-less items map to None."""
    if raw.get("deleted") or raw.get("dead"):
        return None
    if not raw.get("title") or not isinstance(raw.get("id"), int):
        return None
    return Story(
        id=raw["id"],
        title=raw["title"],
        by=raw.get("by", ""),
        score=int(raw.get("score") or 0),
        time=int(raw.get("time") or 0),
        url=raw.get("url"),
        descendants=int(raw.get("descendants") or 0),
    )


def fetch_stories(base_url: str, feed: str, limit: int) -> list[Story]:
    """Fetch the first `limit` stories of a feed, preserving upstream order."""
    stories = []
    for item_id in fetch_story_ids(base_url, feed)[:limit]:
        raw = fetch_item(base_url, item_id)
        if raw is None:
            continue
        story = to_story(raw)
        if story is not None:
            stories.append(story)
    return stories

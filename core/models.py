"""
core/models.py -- Domain data for the Hacker News stories proxy.

Story is the upstream item reduced to the fields the frontend renders.
Nothing here is persisted; saved stories are favorites/models.Favorite.
"""

from dataclasses import dataclass
from typing import Optional

# ---------------------------------------------------------------------------
# Domain constants
# ---------------------------------------------------------------------------

# Hacker News list endpoints exposed through the stories proxy.
STORY_FEEDS = {
    "top": "topstories",
    "new": "newstories",
    "best": "beststories",
}


@dataclass
class Story:
    """A Hacker News item as returned by the upstream API.

    Only the display fields the frontend renders are kept. url is None for
    text posts (Ask HN, etc.).
    """

    id: int
    title: str
    by: str
    score: int = 0
    time: int = 0
    url: Optional[str] = None
    descendants: int = 0

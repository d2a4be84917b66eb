"""
favorites/models.py -- Domain dataclass for saved stories.

A Favorite is a snapshot: the story's display fields are copied at save time
and never refreshed from Hacker News afterwards. Records are created and
deleted, never edited in place.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Favorite:
    """A story saved by one user.

    (user_id, story_id) is unique. id is None before the record is written.
    """

    user_id: int
    story_id: int
    title: str
    by: str
    score: int
    time: int  # Unix seconds, as reported by Hacker News
    url: Optional[str] = None
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert

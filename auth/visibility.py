"""
auth/visibility.py -- Profile Visibility Filter.

Non-owners only ever see users whose profile_visibility is true, and only the
public fields. A private profile and a missing one produce the same
NotFoundOrPrivate error so callers cannot probe for private accounts.

The owner reads their own record through GET /api/users/profile, which goes
through the Authentication Gate instead of this filter.
"""

from __future__ import annotations

from auth.models import PUBLIC_FIELDS, User
from auth.store import UserStore, fits_integer
from core.errors import NotFoundOrPrivate


def parse_user_id(raw: str) -> int | None:
    """Parse a path segment as a storable positive user id; None if it is not one."""
    try:
        user_id = int(raw)
    except (TypeError, ValueError):
        return None
    return user_id if user_id > 0 and fits_integer(user_id) else None


def require_visible(store: UserStore, raw_user_id: str) -> User:
    """Return the target user if their profile is public, else raise NotFoundOrPrivate."""
    user_id = parse_user_id(raw_user_id)
    user = store.get_visible(user_id) if user_id is not None else None
    if user is None:
        raise NotFoundOrPrivate()
    return user


def public_view(user: User, fields: tuple[str, ...] = PUBLIC_FIELDS) -> dict:
    """Project a visible user onto the requested public fields.

    Unknown or non-public field names are ignored rather than echoed back.
    """
    if not user.profile_visibility:
        raise NotFoundOrPrivate()
    return {name: getattr(user, name) for name in fields if name in PUBLIC_FIELDS}

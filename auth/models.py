"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic beyond projections).
Stores and routes do the work.

Identity is a tagged union: every request is either Anonymous or
Authenticated(user). Handlers receive it as an explicit value instead of
reading attributes stashed on the request object.

Layer rule: no imports from api/ or favorites/.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

# Fields any caller may read on a visible profile.
PUBLIC_FIELDS = ("id", "username", "age", "description", "profile_image_url")


@dataclass
class User:
    """A registered account.

    hashed_password is the bcrypt digest; it never leaves the process.
    profile_visibility gates every read by someone other than the owner.
    """

    username: str
    email: str
    age: int
    id: int | None = None
    hashed_password: str | None = None
    description: str = ""
    profile_image_url: str | None = None
    profile_visibility: bool = True
    created_at: str | None = None
    updated_at: str | None = None

    def to_safe_dict(self) -> dict:
        """Return the safe user projection: everything except the password digest."""
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "age": self.age,
            "description": self.description,
            "profile_image_url": self.profile_image_url,
            "profile_visibility": self.profile_visibility,
        }


@dataclass(frozen=True)
class Anonymous:
    """No credentials were presented, or they did not verify."""

    is_authenticated = False


@dataclass(frozen=True)
class Authenticated:
    """Credentials verified and resolved to a stored user."""

    user: User
    is_authenticated = True


Identity = Union[Anonymous, Authenticated]

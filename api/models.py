"""
API request and response models for ModernHN REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
favorites/models.py, which own the internal domain representation. Route
handlers map between the two.

JSON uses camelCase (storyId, profileImageUrl) to match the frontend; Python
code uses snake_case. Every model accepts either spelling on input.
"""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from auth.models import User
from auth.store import fits_integer
from core.models import Story
from favorites.models import Favorite

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

MIN_USERNAME = 3
MIN_PASSWORD = 8
MIN_AGE = 13
# bcrypt only reads the first 72 bytes and newer releases reject longer input.
MAX_PASSWORD_BYTES = 72


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Shared field rules
#
# Registration and profile update apply the same rules; the helpers keep the
# messages identical between the two.
# ---------------------------------------------------------------------------


def _check_username(value: str) -> str:
    value = value.strip()
    if len(value) < MIN_USERNAME:
        raise ValueError(f"Username must be at least {MIN_USERNAME} characters")
    return value


def _check_email(value: str) -> str:
    value = value.strip()
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Please provide a valid email")
    return value


def _check_password(value: str) -> str:
    if len(value) < MIN_PASSWORD:
        raise ValueError(f"Password must be at least {MIN_PASSWORD} characters")
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


def _check_age(value: int) -> int:
    if value < MIN_AGE:
        raise ValueError(f"Age must be at least {MIN_AGE}")
    return _check_integer(value, "Age")


def _check_integer(value: int, label: str) -> int:
    if not fits_integer(value):
        raise ValueError(f"{label} is out of range")
    return value


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class RegisterRequest(_CamelModel):
    """Request body for POST /api/auth/register."""

    username: str
    email: str
    password: str
    age: int
    description: str = Field(default="", max_length=2000)
    profile_visibility: bool = True

    @field_validator("username")
    @classmethod
    def valid_username(cls, value: str) -> str:
        return _check_username(value)

    @field_validator("email")
    @classmethod
    def valid_email(cls, value: str) -> str:
        return _check_email(value)

    @field_validator("password")
    @classmethod
    def valid_password(cls, value: str) -> str:
        return _check_password(value)

    @field_validator("age")
    @classmethod
    def valid_age(cls, value: int) -> int:
        return _check_age(value)


class LoginRequest(_CamelModel):
    """Request body for POST /api/auth/login."""

    email: str
    password: str

    @field_validator("email")
    @classmethod
    def valid_email(cls, value: str) -> str:
        return _check_email(value)

    @field_validator("password")
    @classmethod
    def password_present(cls, value: str) -> str:
        if not value:
            raise ValueError("Password is required")
        return value


class SafeUser(_CamelModel):
    """The safe user projection: every field except the password digest."""

    id: int
    username: str
    email: str
    age: int
    description: str
    profile_image_url: Optional[str]
    profile_visibility: bool

    @classmethod
    def from_user(cls, user: User) -> "SafeUser":
        return cls(**user.to_safe_dict())


class AuthResponse(_CamelModel):
    message: str
    token: str
    user: SafeUser


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class ProfileUpdate(_CamelModel):
    """Validated form fields for PUT /api/users/profile. None means "leave as is"."""

    username: Optional[str] = None
    email: Optional[str] = None
    age: Optional[int] = None
    description: Optional[str] = Field(default=None, max_length=2000)
    profile_visibility: Optional[bool] = None
    password: Optional[str] = None

    @field_validator("username")
    @classmethod
    def valid_username(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _check_username(value)

    @field_validator("email")
    @classmethod
    def valid_email(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _check_email(value)

    @field_validator("age")
    @classmethod
    def valid_age(cls, value: Optional[int]) -> Optional[int]:
        return None if value is None else _check_age(value)

    @field_validator("password")
    @classmethod
    def valid_password(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _check_password(value)


class ProfileUpdateResponse(_CamelModel):
    message: str
    user: SafeUser


class PublicUser(_CamelModel):
    """What anyone may see of a visible profile."""

    id: int
    username: str
    age: int
    description: str
    profile_image_url: Optional[str]


class PublicUserResponse(_CamelModel):
    user: PublicUser


class PublicUserList(_CamelModel):
    users: list[PublicUser]


class AvatarResponse(_CamelModel):
    avatar: str


# ---------------------------------------------------------------------------
# Favorites
# ---------------------------------------------------------------------------


_INTEGER_LABELS = {"story_id": "Story ID", "score": "Score", "time": "Time"}


class FavoriteCreate(_CamelModel):
    """Request body for POST /api/favorites -- a snapshot of the story."""

    story_id: int
    title: str
    by: str
    score: int
    time: int
    url: Optional[str] = None

    @field_validator("story_id", "score", "time")
    @classmethod
    def fits_column(cls, value: int, info: ValidationInfo) -> int:
        return _check_integer(value, _INTEGER_LABELS[info.field_name])

    @field_validator("title")
    @classmethod
    def title_present(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Title is required")
        return value

    @field_validator("by")
    @classmethod
    def author_present(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Author is required")
        return value

    @field_validator("url")
    @classmethod
    def blank_url_is_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None


class FavoriteOut(_CamelModel):
    id: int
    user_id: int
    story_id: int
    title: str
    url: Optional[str]
    by: str
    score: int
    time: int
    created_at: str

    @classmethod
    def from_favorite(cls, fav: Favorite) -> "FavoriteOut":
        return cls(
            id=fav.id,
            user_id=fav.user_id,
            story_id=fav.story_id,
            title=fav.title,
            url=fav.url,
            by=fav.by,
            score=fav.score,
            time=fav.time,
            created_at=fav.created_at,
        )


class FavoriteList(_CamelModel):
    favorites: list[FavoriteOut]


class FavoriteCreated(_CamelModel):
    message: str
    favorite: FavoriteOut


# ---------------------------------------------------------------------------
# Stories
# ---------------------------------------------------------------------------


class StoryOut(_CamelModel):
    id: int
    title: str
    url: Optional[str]
    by: str
    score: int
    time: int
    descendants: int
    is_favorite: bool = False

    @classmethod
    def from_story(cls, story: Story, is_favorite: bool) -> "StoryOut":
        return cls(
            id=story.id,
            title=story.title,
            url=story.url,
            by=story.by,
            score=story.score,
            time=story.time,
            descendants=story.descendants,
            is_favorite=is_favorite,
        )


class StoryList(_CamelModel):
    stories: list[StoryOut]


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """Error envelope. error carries a detail string only in development mode."""

    message: str
    error: Optional[str] = None


class FieldError(BaseModel):
    field: str
    message: str


class ValidationErrorResponse(BaseModel):
    errors: list[FieldError]


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)

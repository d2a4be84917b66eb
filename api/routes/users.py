"""
api/routes/users.py -- Own profile and public profile routes.

Routes (in registration order to avoid FastAPI path capture conflicts):
  GET  /api/users/profile               -- own safe user (auth required)
  PUT  /api/users/profile               -- update own profile, multipart (auth required)
  GET  /api/users/public                -- every visible profile
  GET  /api/users/{user_id}             -- one visible profile
  GET  /api/users/{user_id}/favorites   -- favorites of a visible profile
  GET  /api/users/{user_id}/avatar      -- image URL of a visible profile

/profile and /public must be registered before /{user_id} or FastAPI captures
"profile" and "public" as path params.

The public routes go through auth/visibility.py: private and missing profiles
answer with the same 404, for every caller, including other signed-in users.
The owner reads their own data through /profile instead.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from api.models import (
    AvatarResponse,
    FavoriteList,
    FavoriteOut,
    ProfileUpdate,
    ProfileUpdateResponse,
    PublicUser,
    PublicUserList,
    PublicUserResponse,
    SafeUser,
)
from auth.dependencies import get_current_user
from auth.models import User
from auth.store import UserStore
from auth.tokens import hash_password
from auth.visibility import public_view, require_visible
from core.config import Settings
from core.errors import AlreadyInUse, NotFound, NotFoundOrPrivate
from core.uploads import staged_image, validate_image
from favorites.store import FavoriteStore

logger = logging.getLogger("modernhn.api.users")

router = APIRouter()


# ---------------------------------------------------------------------------
# Own profile (authenticated)
# ---------------------------------------------------------------------------


@router.get("/users/profile", response_model=SafeUser)
def get_profile(current_user: User = Depends(get_current_user)) -> SafeUser:
    """Return the caller's own record, password digest stripped."""
    return SafeUser.from_user(current_user)


def profile_form(
    username: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    age: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    profile_visibility: Optional[str] = Form(None, alias="profileVisibility"),
    password: Optional[str] = Form(None),
) -> ProfileUpdate:
    """Collect the multipart text fields and validate them as one ProfileUpdate.

    Blank age/visibility values mean "not supplied" (HTML forms send empty
    strings for untouched inputs). Keys use the form field names so errors
    name the field the client sent. Any rule violation becomes a normal 400
    validation response listing every problem.
    """
    raw = {
        "username": username,
        "email": email,
        "age": age or None,
        "description": description,
        "profileVisibility": profile_visibility or None,
        "password": password,
    }
    try:
        return ProfileUpdate.model_validate({k: v for k, v in raw.items() if v is not None})
    except ValidationError as exc:
        raise RequestValidationError(exc.errors()) from exc


@router.put("/users/profile", response_model=ProfileUpdateResponse)
def update_profile(
    request: Request,
    current_user: User = Depends(get_current_user),
    form: ProfileUpdate = Depends(profile_form),
    profile_image: Optional[UploadFile] = File(None, alias="profileImage"),
) -> ProfileUpdateResponse:
    """Apply any subset of profile changes to the caller's own account.

    Username/email changes are re-checked for uniqueness against everyone
    except the caller. A new image replaces the old one; the old file is
    removed only after the update commits, and a failure to remove it does
    not fail the request.
    """
    user_store: UserStore = request.app.state.user_store
    settings: Settings = request.app.state.settings

    updates: dict = {}
    if form.username is not None and form.username != current_user.username:
        other = user_store.get_by_username(form.username)
        if other is not None and other.id != current_user.id:
            raise AlreadyInUse("Username already in use")
        updates["username"] = form.username
    if form.email is not None and form.email != current_user.email:
        other = user_store.get_by_email(form.email)
        if other is not None and other.id != current_user.id:
            raise AlreadyInUse("Email already in use")
        updates["email"] = form.email
    if form.age is not None:
        updates["age"] = form.age
    if form.description is not None:
        updates["description"] = form.description
    if form.profile_visibility is not None:
        updates["profile_visibility"] = form.profile_visibility
    if form.password:
        updates["hashed_password"] = hash_password(form.password)

    if profile_image is not None and profile_image.filename:
        data = profile_image.file.read(settings.max_upload_bytes + 1)
        ext = validate_image(profile_image.filename, profile_image.content_type, len(data), settings.max_upload_bytes)
        with staged_image(settings.upload_dir, ext, data, current_user.profile_image_url) as url:
            updates["profile_image_url"] = url
            _apply_updates(user_store, current_user.id, updates)
    elif updates:
        _apply_updates(user_store, current_user.id, updates)

    updated = user_store.get_by_id(current_user.id)
    logger.info("Profile updated: %s (ID: %s) fields=%s", updated.username, updated.id, sorted(updates))
    return ProfileUpdateResponse(message="Profile updated successfully", user=SafeUser.from_user(updated))


def _apply_updates(user_store: UserStore, user_id: int, updates: dict) -> None:
    try:
        user_store.update_user(user_id, **updates)
    except IntegrityError as exc:
        raise AlreadyInUse() from exc


# ---------------------------------------------------------------------------
# Public profiles
# ---------------------------------------------------------------------------


@router.get("/users/public", response_model=PublicUserList)
def list_public_users(request: Request) -> PublicUserList:
    """Return every user whose profile is visible."""
    user_store: UserStore = request.app.state.user_store
    return PublicUserList(users=[PublicUser(**public_view(u)) for u in user_store.list_visible()])


@router.get("/users/{user_id}", response_model=PublicUserResponse)
def get_public_user(request: Request, user_id: str) -> PublicUserResponse:
    """Return one visible profile; private and missing are both 404."""
    user = require_visible(request.app.state.user_store, user_id)
    return PublicUserResponse(user=PublicUser(**public_view(user)))


@router.get("/users/{user_id}/favorites", response_model=FavoriteList)
def get_public_favorites(request: Request, user_id: str) -> FavoriteList:
    """Return the favorites of a visible profile, newest first."""
    user = require_visible(request.app.state.user_store, user_id)
    favorite_store: FavoriteStore = request.app.state.favorite_store
    return FavoriteList(favorites=[FavoriteOut.from_favorite(f) for f in favorite_store.list_favorites(user.id)])


@router.get("/users/{user_id}/avatar", response_model=AvatarResponse)
def get_avatar(request: Request, user_id: str) -> AvatarResponse:
    """Return the profile image URL of a visible profile.

    The 404 carries defaultAvatar so the client can fall back without a
    second round trip.
    """
    settings: Settings = request.app.state.settings
    try:
        user = require_visible(request.app.state.user_store, user_id)
    except NotFoundOrPrivate:
        user = None
    if user is None or not user.profile_image_url:
        raise NotFound("Avatar not found", defaultAvatar=settings.default_avatar_url)
    return AvatarResponse(avatar=user.profile_image_url)

"""
core/errors.py -- Application error taxonomy.

Every failure a route can report on purpose is an AppError subclass carrying
its HTTP status, a stable machine code, and a human message. api/main.py owns
the single exception handler that turns these into JSON bodies; the `code` is
only exposed to clients in development mode.

Anything that is NOT an AppError (store failures, hashing failures) falls
through to the catch-all handler and becomes a generic 500.
"""

from __future__ import annotations


class AppError(Exception):
    """Base class for expected, client-visible failures."""

    status_code: int = 500
    code: str = "internal_error"
    message: str = "Internal Server Error"

    def __init__(self, message: str | None = None, **extra) -> None:
        self.message = message or self.message
        # Additional top-level fields merged into the JSON body (e.g. defaultAvatar).
        self.extra = extra
        super().__init__(self.message)


# 400 ---------------------------------------------------------------------


class AlreadyInUse(AppError):
    status_code = 400
    code = "already_in_use"
    message = "Username or email already in use"


class DuplicateFavorite(AppError):
    status_code = 400
    code = "duplicate_favorite"
    message = "Story is already in favorites"


class InvalidId(AppError):
    status_code = 400
    code = "invalid_id"
    message = "Invalid story ID"


class InvalidUpload(AppError):
    status_code = 400
    code = "invalid_upload"
    message = "Only image files are allowed"


# 401 ---------------------------------------------------------------------


class AuthRequired(AppError):
    status_code = 401
    code = "auth_required"
    message = "Authentication required"


class InvalidToken(AppError):
    status_code = 401
    code = "invalid_token"
    message = "Invalid token"


class UserNotFound(AppError):
    status_code = 401
    code = "user_not_found"
    message = "User not found"


class InvalidCredentials(AppError):
    status_code = 401
    code = "invalid_credentials"
    message = "Invalid credentials"


# 404 ---------------------------------------------------------------------


class NotFound(AppError):
    status_code = 404
    code = "not_found"
    message = "Not found"


class NotFoundOrPrivate(AppError):
    status_code = 404
    code = "not_found_or_private"
    message = "User not found or profile is private"


# 502 ---------------------------------------------------------------------


class UpstreamUnavailable(AppError):
    status_code = 502
    code = "upstream_unavailable"
    message = "Failed to fetch stories"

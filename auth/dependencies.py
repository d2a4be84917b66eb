"""
auth/dependencies.py -- The Authentication Gate, as FastAPI Depends() helpers.

A protected request is decided in one step, with no retries:
  1. Authorization header missing or not "Bearer <token>" -> AuthRequired (401)
  2. Token fails signature, format, or expiry checks        -> InvalidToken (401)
  3. Token's user_id no longer resolves to a stored user    -> UserNotFound (401)
  4. Otherwise the request proceeds with Authenticated(user).

Every outcome is logged. authenticate() holds the logic and takes its
collaborators as arguments so it can be tested without an app.

get_current_user() is the hard variant used by protected routes.
get_identity() is the soft variant: any failure yields Anonymous().

Layer rule: may import fastapi (part of the DI system); no imports from api/.
"""

from __future__ import annotations

import logging

from fastapi import Request

from auth.models import Anonymous, Authenticated, Identity, User
from auth.store import UserStore
from auth.tokens import TokenSigner
from core.errors import AppError, AuthRequired, UserNotFound

logger = logging.getLogger("modernhn.auth")


def extract_bearer(header: str | None) -> str:
    """Return the token from an Authorization header or raise AuthRequired."""
    if not header:
        raise AuthRequired()
    scheme, _, token = header.partition(" ")
    token = token.strip()
    if scheme != "Bearer" or not token or " " in token:
        raise AuthRequired()
    return token


def authenticate(header: str | None, signer: TokenSigner, store: UserStore) -> Authenticated:
    """Run the gate against a raw Authorization header value."""
    try:
        token = extract_bearer(header)
    except AuthRequired:
        logger.warning("Auth rejected: missing or malformed Authorization header")
        raise
    try:
        claims = signer.verify(token)
    except AppError:
        logger.warning("Auth rejected: invalid or expired token")
        raise
    user = store.get_by_id(claims["user_id"])
    if user is None:
        logger.warning("Auth rejected: token user %s no longer exists", claims["user_id"])
        raise UserNotFound()
    logger.debug("Auth accepted: %s (ID: %s)", user.username, user.id)
    return Authenticated(user=user)


def get_identity(request: Request) -> Identity:
    """Resolve the caller without failing: Anonymous() on any gate failure."""
    if not request.headers.get("Authorization"):
        return Anonymous()
    try:
        return authenticate(
            request.headers.get("Authorization"),
            request.app.state.tokens,
            request.app.state.user_store,
        )
    except AppError:
        return Anonymous()


def get_current_user(request: Request) -> User:
    """Require authentication. Raises a 401 AppError if the gate rejects.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    identity = authenticate(
        request.headers.get("Authorization"),
        request.app.state.tokens,
        request.app.state.user_store,
    )
    return identity.user

"""
api/routes/auth.py -- Registration, login, and logout.

Routes:
  POST /api/auth/register   -- create account; returns token + safe user (201)
  POST /api/auth/login      -- email/password login; returns token + safe user
  POST /api/auth/logout     -- stateless acknowledgement

Security:
  POST /login is rate-limited per client IP (LOGIN_RATE_LIMIT).
  authenticate_user() provides timing equalization -- use it, never inline.
  Cache-Control: no-store on responses that carry a token.
  Passwords are never logged; only usernames, emails and ids are.

Tokens are stateless. Logout cannot revoke one; the client discards it and
it stays valid until expiry.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request, Response
from sqlalchemy.exc import IntegrityError

from api.limiter import limiter
from api.models import AuthResponse, LoginRequest, MessageResponse, RegisterRequest, SafeUser
from auth.models import User
from auth.store import UserStore
from auth.tokens import TokenSigner, authenticate_user, hash_password
from core.config import get_settings
from core.errors import AlreadyInUse, InvalidCredentials

logger = logging.getLogger("modernhn.api.auth")

# Auth policy: every route here is public -- they are how a caller gets a token.
router = APIRouter()


@router.post("/auth/register", response_model=AuthResponse, status_code=201)
def register(request: Request, response: Response, body: RegisterRequest) -> AuthResponse:
    """Create an account and sign the caller in.

    The duplicate check covers username and email in one query and reports a
    combined message without saying which one collided. The UNIQUE
    constraints still decide if two registrations race past the check.
    """
    user_store: UserStore = request.app.state.user_store
    signer: TokenSigner = request.app.state.tokens

    if user_store.find_by_username_or_email(body.username, body.email) is not None:
        logger.warning("Registration failed: username or email already in use - %s / %s", body.username, body.email)
        raise AlreadyInUse()

    new_user = User(
        username=body.username,
        email=body.email,
        age=body.age,
        hashed_password=hash_password(body.password),
        description=body.description,
        profile_visibility=body.profile_visibility,
    )
    try:
        user_id = user_store.create_user(new_user)
    except IntegrityError as exc:
        logger.warning("Registration lost a uniqueness race - %s / %s", body.username, body.email)
        raise AlreadyInUse() from exc

    created = user_store.get_by_id(user_id)
    token = signer.issue(created.id, created.username)
    logger.info("User registered successfully: %s (ID: %s)", created.username, created.id)
    response.headers["Cache-Control"] = "no-store"
    return AuthResponse(message="User registered successfully", token=token, user=SafeUser.from_user(created))


@router.post("/auth/login", response_model=AuthResponse)
@limiter.limit(get_settings().login_rate_limit)  # must be BELOW @router so the registered endpoint is the limited one
def login(request: Request, response: Response, body: LoginRequest) -> AuthResponse:
    """Authenticate with email and password.

    Unknown email and wrong password both return the same 401 so the
    response does not reveal which accounts exist.
    """
    user_store: UserStore = request.app.state.user_store
    signer: TokenSigner = request.app.state.tokens

    user = authenticate_user(user_store, body.email, body.password)
    if user is None:
        raise InvalidCredentials()

    token = signer.issue(user.id, user.username)
    logger.info("User logged in successfully: %s (ID: %s)", user.username, user.id)
    response.headers["Cache-Control"] = "no-store"
    return AuthResponse(message="Login successful", token=token, user=SafeUser.from_user(user))


@router.post("/auth/logout", response_model=MessageResponse)
def logout() -> MessageResponse:
    """Acknowledge a logout. The client is responsible for dropping its token."""
    return MessageResponse(message="Logged out")

"""
auth/tokens.py -- JWT signing and password hashing.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry user_id, username, issued-at and
       expiry. TokenSigner is built once at startup from Settings and stored
       on app.state; nothing here reads configuration on its own. Rotating
       SECRET_KEY invalidates every token issued before the rotation.

  Passwords: bcrypt directly (no passlib wrapper). gensalt() produces a fresh
       random salt per call and embeds it in the digest, so two hashes of the
       same password never match byte-for-byte. The _DUMMY_HASH constant
       enables timing equalization in authenticate_user() so response time
       does not reveal whether an email is registered.

Layer rule: no imports from api/ or favorites/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

from core.errors import InvalidToken

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore
    from core.config import Settings

logger = logging.getLogger("modernhn.auth")

_ALGORITHM = "HS256"

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    bcrypt only looks at the first 72 bytes; the API layer caps password
    length well below the point where that matters for realistic input.
    Errors propagate -- a failed hash must fail the calling operation.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A malformed digest is a mismatch, not an error.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("modernhn_timing_dummy")


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


class TokenSigner:
    """Issues and verifies bearer tokens with a process-wide signing key.

    Usage:
        signer = TokenSigner.from_settings(get_settings())
        token = signer.issue(user.id, user.username)
        claims = signer.verify(token)   # raises InvalidToken
    """

    def __init__(self, secret_key: str, expire_seconds: int) -> None:
        self._secret_key = secret_key
        self.expire_seconds = expire_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenSigner:
        return cls(settings.secret_key, settings.token_expire_seconds)

    def issue(self, user_id: int, username: str) -> str:
        """Encode a signed JWT for the given identity."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "user_id": user_id,
            "username": username,
            "iat": now,
            "exp": now + timedelta(seconds=self.expire_seconds),
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def verify(self, token: str) -> dict:
        """Decode and verify a JWT, returning its claims.

        Raises InvalidToken on a bad signature, a malformed token, an expired
        token, or a payload without an integer user_id.
        """
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM])
        except JWTError as e:
            raise InvalidToken() from e
        if not isinstance(payload.get("user_id"), int):
            raise InvalidToken()
        return payload


# ---------------------------------------------------------------------------
# Credential check (constant-time)
# ---------------------------------------------------------------------------


def authenticate_user(store: UserStore, email: str, password: str) -> User | None:
    """Authenticate an email/password login with timing equalization.

    Always runs bcrypt whether or not the email exists:
    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the User on success, None on any failure.
    """
    user = store.get_by_email(email)
    if user is None or user.hashed_password is None:
        # Do NOT return before running bcrypt.
        verify_password(password, _DUMMY_HASH)
        logger.warning("Login failed: no account for email %s", email)
        return None
    if not verify_password(password, user.hashed_password):
        logger.warning("Login failed: bad password for user %s (ID: %s)", user.username, user.id)
        return None
    return user

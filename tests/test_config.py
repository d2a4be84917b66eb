"""Unit tests for core/config.py -- Settings and the SECRET_KEY policy.

Settings are built with _env_file=None so a developer's .env does not leak in.
"""

import pytest
from pydantic import ValidationError

from core.config import Settings


def test_debug_generates_secret_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SECRET_KEY", raising=False)
    settings = Settings(_env_file=None, debug=True)
    assert len(settings.secret_key) >= 32


def test_production_requires_secret_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SECRET_KEY", raising=False)
    with pytest.raises(ValidationError, match="SECRET_KEY is required"):
        Settings(_env_file=None, debug=False)


def test_short_secret_key_rejected() -> None:
    with pytest.raises(ValidationError, match="at least 32 characters"):
        Settings(_env_file=None, debug=True, secret_key="short")


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("PORT", "TOKEN_EXPIRE_SECONDS", "MAX_UPLOAD_BYTES", "NEWS_FETCH_LIMIT", "DEFAULT_AVATAR_URL"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings(_env_file=None, secret_key="x" * 32)
    assert settings.port == 4001
    assert settings.token_expire_seconds == 7 * 24 * 3600
    assert settings.max_upload_bytes == 5 * 1024 * 1024
    assert settings.news_fetch_limit == 30
    assert settings.default_avatar_url == "/placeholder.svg"


def test_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SECRET_KEY", "e" * 40)
    monkeypatch.setenv("NEWS_FETCH_LIMIT", "10")
    settings = Settings(_env_file=None)
    assert settings.secret_key == "e" * 40
    assert settings.news_fetch_limit == 10

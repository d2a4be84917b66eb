"""
core/uploads.py -- Profile image storage on the local filesystem.

Files live flat under Settings.upload_dir and are served back by the static
mount at /uploads/<filename>. The stored URL (not the path) is what the users
table records, so url_to_path() is the only place that maps one to the other
and it refuses anything that would resolve outside upload_dir.

staged_image() is the scoped operation used by the profile update: the new
file is written before the DB update and removed again if the block raises.
The previous image is only discarded after the block succeeds, and that
discard is best-effort -- an OSError is logged, never raised.
"""

from __future__ import annotations

import logging
import os
import re
import secrets
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from core.errors import InvalidUpload

logger = logging.getLogger("modernhn.uploads")

URL_PREFIX = "/uploads/"

_ALLOWED = re.compile(r"jpeg|jpg|png|gif")


def validate_image(filename: str, content_type: str | None, size: int, max_bytes: int) -> str:
    """Check an upload against the image rules and return its lower-cased extension.

    Both the content type and the extension must name an image type; either
    one alone is easy to spoof.
    """
    ext = os.path.splitext(filename or "")[1].lower()
    if not (_ALLOWED.search(content_type or "") and _ALLOWED.search(ext)):
        raise InvalidUpload()
    if size > max_bytes:
        raise InvalidUpload(f"File too large (max {max_bytes // (1024 * 1024)} MB)")
    return ext


def new_filename(ext: str) -> str:
    """Return a collision-resistant name: profile-<ms timestamp>-<random><ext>."""
    return f"profile-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{ext}"


def save_image(upload_dir: Path, ext: str, data: bytes) -> str:
    """Write image bytes under upload_dir and return the public URL."""
    upload_dir.mkdir(parents=True, exist_ok=True)
    filename = new_filename(ext)
    (upload_dir / filename).write_bytes(data)
    logger.info("Stored profile image %s (%d bytes)", filename, len(data))
    return URL_PREFIX + filename


def url_to_path(upload_dir: Path, url: str | None) -> Path | None:
    """Map a stored /uploads/ URL back to a file path inside upload_dir.

    Returns None for empty values, foreign URLs, or anything that tries to
    escape the directory.
    """
    if not url or not url.startswith(URL_PREFIX):
        return None
    name = url[len(URL_PREFIX) :]
    if not name or "/" in name or "\\" in name or name in (".", ".."):
        return None
    return upload_dir / name


def discard_image(upload_dir: Path, url: str | None) -> bool:
    """Best-effort removal of a stored image. Returns True if a file was removed."""
    path = url_to_path(upload_dir, url)
    if path is None:
        return False
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning("Could not remove old profile image %s: %s", path.name, e)
        return False
    logger.info("Removed old profile image %s", path.name)
    return True


@contextmanager
def staged_image(upload_dir: Path, ext: str, data: bytes, previous_url: str | None) -> Iterator[str]:
    """Store a new image for the duration of an update.

    Yields the new URL. If the body raises, the new file is removed and the
    exception propagates. If it completes, previous_url is discarded.
    """
    url = save_image(upload_dir, ext, data)
    try:
        yield url
    except BaseException:
        discard_image(upload_dir, url)
        raise
    if previous_url and previous_url != url:
        discard_image(upload_dir, previous_url)

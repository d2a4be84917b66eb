"""
api/main.py -- FastAPI application entry point for ModernHN.

Run with:  uvicorn asgi:app --reload
           python main.py

Middleware stack (outermost to innermost):
  1. CORSMiddleware     -- adds CORS headers for the frontend origins
  2. SlowAPIMiddleware  -- enforces per-route rate limits from api.limiter
  3. log_requests       -- one log line per request with latency

Settings are resolved once at import and stored on app.state.settings; the
token signer and the error handlers read them from there. Lifespan builds
the stores and the signer on startup and closes the stores on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException

from api.limiter import limiter
from api.models import ErrorResponse, FieldError, HealthResponse, MessageResponse, ValidationErrorResponse
from api.routes.auth import router as auth_router
from api.routes.favorites import router as favorites_router
from api.routes.stories import router as stories_router
from api.routes.users import router as users_router
from auth.store import UserStore
from auth.tokens import TokenSigner
from core.config import get_settings
from core.errors import AppError
from favorites.store import FavoriteStore

VERSION = "1.0.0"

settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("modernhn.api")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown.
    """
    cfg = app.state.settings
    logger.info("ModernHN API starting up")
    cfg.upload_dir.mkdir(parents=True, exist_ok=True)
    app.state.user_store = UserStore(cfg.database_url)
    app.state.favorite_store = FavoriteStore(cfg.database_url)
    app.state.tokens = TokenSigner.from_settings(cfg)
    logger.info("Database synced successfully")

    yield

    app.state.favorite_store.close()
    app.state.user_store.close()
    logger.info("ModernHN API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="ModernHN API",
    description="Accounts, profiles, and saved stories for a Hacker News reader.",
    version=VERSION,
    lifespan=lifespan,
)
app.state.settings = settings

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration and static uploads
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(users_router, prefix="/api", tags=["Users"])
app.include_router(favorites_router, prefix="/api", tags=["Favorites"])
app.include_router(stories_router, prefix="/api", tags=["Stories"])

# check_dir=False: the directory is created by lifespan, after import.
app.mount("/uploads", StaticFiles(directory=str(settings.upload_dir), check_dir=False), name="uploads")


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every error body is {"message": ...}; "error" is added only in development
# mode (DEBUG=true). Validation failures use {"errors": [{field, message}]}.
# ---------------------------------------------------------------------------


def _error_body(request: Request, message: str, detail: str | None) -> dict:
    debug = request.app.state.settings.debug
    return ErrorResponse(message=message, error=detail if debug else None).model_dump(exclude_none=True)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Return the status and message an AppError subclass declares."""
    body = _error_body(request, exc.message, exc.code)
    body.update(exc.extra)
    return JSONResponse(status_code=exc.status_code, content=body)


def _field_name(loc: tuple) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "form")]
    return ".".join(parts) or "body"


def _clean_message(msg: str) -> str:
    # pydantic prefixes messages raised from validators with "Value error, ".
    return msg.removeprefix("Value error, ")


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 listing every violated rule, not just the first."""
    errors = [
        FieldError(field=_field_name(tuple(e.get("loc", ()))), message=_clean_message(e["msg"])) for e in exc.errors()
    ]
    logger.warning("Validation failed on %s %s: %s", request.method, request.url.path, [e.field for e in errors])
    return JSONResponse(status_code=400, content=ValidationErrorResponse(errors=errors).model_dump())


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with Retry-After when a rate limit is exceeded."""
    # exc.limit wraps the limits.RateLimitItem that was hit; its expiry is the window length.
    retry_after = exc.limit.limit.get_expiry() if exc.limit is not None else 60
    response = JSONResponse(
        status_code=429,
        content=_error_body(request, "Too many requests", str(exc.detail)),
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return framework HTTP errors (404 on unknown routes, 405, ...) in the same envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, str(exc.detail), None),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The traceback goes to the log. Clients get a generic message, plus the
    exception text in development mode only.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=_error_body(request, "Internal Server Error", str(exc)))


# ---------------------------------------------------------------------------
# Health and welcome
# ---------------------------------------------------------------------------


@app.get("/", response_model=MessageResponse, include_in_schema=False)
def welcome() -> MessageResponse:
    return MessageResponse(message="Welcome to the ModernHN API")


@app.get("/api/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version, and a database probe."""
    try:
        database = "ok" if request.app.state.user_store.ping() else "error"
    except Exception:
        logger.exception("Health check database probe failed")
        database = "error"
    return HealthResponse(version=VERSION, components={"app": "ok", "database": database})

"""
api/main.py -- FastAPI application entry point for the Portfolio API.

Serves blogs, projects, resumes (with PDF export), accounts and admin
analytics under /api, plus a liveness probe at /health.

Run with:      uvicorn asgi:app --reload
               python main.py serve

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- lets the configured client origin call the API with credentials
  3. GZipMiddleware        -- compresses larger responses
  4. SlowAPIMiddleware     -- enforces the default and per-route limits from api.limiter

Lifespan opens the database, builds the stores and services once, and hangs
them on app.state; shutdown closes the database. Route handlers reach
everything through request.app.state, so tests can swap any piece.
"""

import logging
import time
import traceback
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.blogs import router as blogs_router
from api.routes.v1.projects import router as projects_router
from api.routes.v1.resumes import router as resumes_router
from api.routes.v1.users import router as users_router
from auth.google import GoogleTokenVerifier
from auth.store import UserStore
from core.config import get_settings
from core.database import Database
from core.errors import PortfolioError
from portfolio.lifecycle import BlogService, ProjectService, ResumeService
from portfolio.render import ResumeRenderer
from portfolio.store import ContentStore

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("portfolio.api")

settings = get_settings()

API_VERSION = "1.0.0"

# HTTP status -> error code for errors raised by routing itself (unknown path,
# wrong method) rather than by our own code.
_HTTP_CODES = {
    400: "VALIDATION",
    401: "AUTH_REQUIRED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}


# ---------------------------------------------------------------------------
# Application state
# ---------------------------------------------------------------------------


def attach_services(
    app: FastAPI,
    db: Database,
    renderer: Optional[ResumeRenderer] = None,
    google_verifier: Optional[GoogleTokenVerifier] = None,
) -> None:
    """Build stores and services on top of an open Database and store them on app.state.

    renderer and google_verifier default to the real implementations; tests
    pass fakes so no browser or network is needed.
    """
    app.state.db = db
    app.state.user_store = UserStore(db)
    app.state.content_store = ContentStore(db)
    app.state.blog_service = BlogService(app.state.content_store)
    app.state.project_service = ProjectService(app.state.content_store)
    app.state.resume_service = ResumeService(app.state.content_store)
    app.state.renderer = renderer or ResumeRenderer(timeout_ms=settings.pdf_timeout_ms)
    app.state.google_verifier = google_verifier or GoogleTokenVerifier(settings.google_client_id)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the database and wire services on startup; close it on shutdown."""
    logger.info("Portfolio API starting up (environment=%s, debug=%s)", settings.environment, settings.debug)
    db = Database(settings.database_url).connect()
    attach_services(app, db)
    if not app.state.google_verifier.enabled:
        logger.warning("GOOGLE_CLIENT_ID not set -- Google sign-in is disabled")
    logger.info("Database ready")

    yield

    db.close()
    logger.info("Portfolio API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Portfolio API",
    description="Blogs, projects and resumes for a personal portfolio site, with admin analytics.",
    version=API_VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Register in the order you want the request to encounter them:
# TrustedHost -> CORS -> GZip -> SlowAPI.
# ---------------------------------------------------------------------------

app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.client_url],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(GZipMiddleware, minimum_size=1024)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


# ---------------------------------------------------------------------------
# Security headers and request logging
# ---------------------------------------------------------------------------

_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
}


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in _SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    if settings.is_production:
        response.headers.setdefault("Strict-Transport-Security", "max-age=15552000; includeSubDomains")
    return response


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
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(users_router, prefix="/api", tags=["Users"])
app.include_router(blogs_router, prefix="/api", tags=["Blogs"])
app.include_router(projects_router, prefix="/api", tags=["Projects"])
app.include_router(resumes_router, prefix="/api", tags=["Resumes"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope:
#   {"success": false, "error": str, "code": str, "errors"?: [...], "stack"?: str}
# ---------------------------------------------------------------------------


def _error(status_code: int, message: str, code: str, **extra) -> JSONResponse:
    body = ErrorResponse(error=message, code=code, **extra)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@app.exception_handler(PortfolioError)
async def portfolio_error_handler(request: Request, exc: PortfolioError) -> JSONResponse:
    """Map the error taxonomy in core/errors.py onto its status code."""
    response = _error(exc.status_code, exc.message, exc.code)
    if exc.status_code == 401:
        response.headers["WWW-Authenticate"] = "Bearer"
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 VALIDATION with one "field: message" line per failed field."""
    errors = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path"))
        errors.append(f"{field}: {err.get('msg', 'invalid')}" if field else err.get("msg", "invalid"))
    return _error(400, "Validation failed", "VALIDATION", errors=errors)


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """Unique-constraint races that slip past the service-level checks."""
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return _error(409, "Duplicate field value entered.", "CONFLICT")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        message = "Route not found"
    else:
        message = str(exc.detail)
    response = _error(exc.status_code, message, _HTTP_CODES.get(exc.status_code, f"HTTP_{exc.status_code}"))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RateLimitExceeded)
def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with Retry-After set to the limit's window length in seconds.

    Plain def: SlowAPIMiddleware calls this handler synchronously.
    """
    item = getattr(getattr(exc, "limit", None), "limit", None)
    retry_after = item.get_expiry() if item is not None else 60
    response = _error(429, "Too many requests from this IP, please try again later.", "RATE_LIMITED")
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything not handled above becomes a 500 INTERNAL.

    The traceback is always logged. It is returned to the client only outside
    production (ENVIRONMENT other than "production", or DEBUG on).
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    stack = None
    if not settings.is_production:
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return _error(500, "Internal server error", "INTERNAL", stack=stack)


# ---------------------------------------------------------------------------
# Health endpoint
#
# Lives on the app itself, outside /api. Exempt from rate limiting so load
# balancers can poll it freely.
# ---------------------------------------------------------------------------


@limiter.exempt
@app.get("/health", response_model=HealthResponse, tags=["Health"])
def health(request: Request) -> JSONResponse:
    """Report liveness and whether the database answers a trivial query."""
    db_ok = request.app.state.db.ping()
    body = HealthResponse(
        success=db_ok,
        message="Portfolio API is running" if db_ok else "Database unavailable",
        timestamp=datetime.now(timezone.utc).isoformat(),
        database="ok" if db_ok else "unavailable",
    )
    return JSONResponse(status_code=200 if db_ok else 503, content=body.model_dump(by_alias=True))

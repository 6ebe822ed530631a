"""
Schools24 Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes app configuration, middleware registration, route mounting,
       and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn app.main:app).

Application Architecture:

    ┌──────────────────────────────────────────────────────────────┐
    │                        FastAPI App                           │
    │                                                              │
    │  Middleware Chain (outermost first):                         │
    │  CORS → GZip → Request ID → Logging → Rate Limit → JWT Auth  │
    │                                                              │
    │  Routes:                                                     │
    │  /health /ready            (root, public)                    │
    │  /api/v1/auth/*            (login/register public)           │
    │  /api/v1/student/* /academic/* /announcements /classes       │
    │  /api/v1/teacher/*         (teacher, admin)                  │
    │  /api/v1/admin/*           (admin)                           │
    │  /uploads/*                (static, read-only)               │
    │                                                              │
    │  Exception Handlers:                                         │
    │  SchoolsError → its status_code │ Exception → 500            │
    └──────────────────────────────────────────────────────────────┘

State owned by the app (app.state):
    token_service  TokenService, shared by JWTAuthMiddleware and AuthService
    rate_limiter   TokenBucketLimiter handed to RateLimitMiddleware
    cache          CacheService (memory or redis backend)

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (logged, never fatal)
    3. Create missing tables
    Shutdown:
    1. Close the cache backend
    2. Dispose database engine (close all connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app import __version__
from app.config import settings
from app.database import dispose_engine, init_models
from app.exceptions import RateLimitExceededError, SchoolsError, UnauthorizedError
from app.middleware.auth import JWTAuthMiddleware
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.rate_limit import RateLimitMiddleware, TokenBucketLimiter
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.routes import academic, admin, announcements, auth, classes, health, student, teacher
from app.services.cache_service import create_cache
from app.services.file_service import URL_PREFIX
from app.services.token_service import TokenService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════


def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output: stdout (Docker captures it)
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # These log every operation at DEBUG/INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("%s %s starting up (env=%s)", settings.app_name, __version__, settings.app_env)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: /health stays reachable while the config is fixed
        logger.error("Configuration error: %s", str(e))

    await init_models()

    logger.info("Server ready at http://%s:%d", settings.server_host, settings.server_port)
    logger.info("API prefix: %s", settings.api_prefix)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Shutting down...")
    await app.state.cache.close()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to the uniform body {error, message, details?, request_id}.

    Every SchoolsError subclass carries its own status_code and error_code,
    so one handler covers the whole hierarchy:
        ValidationError 400 · UnauthorizedError/InvalidTokenError 401 ·
        ForbiddenError 403 · NotFoundError 404 · ConflictError 409 ·
        RateLimitExceededError 429 · FileStorage/Cache/DatabaseError 500

    5xx responses never include context (paths, SQL, keys); it is logged
    server-side only.
    """

    @app.exception_handler(SchoolsError)
    async def handle_schools_error(request: Request, exc: SchoolsError):
        rid = request_id_var.get("")
        content = {"error": exc.error_code, "message": exc.message, "request_id": rid}
        headers = {}

        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        else:
            logger.info("[%s] %s: %s", rid, exc.error_code, exc.message)
            if exc.context:
                content["details"] = exc.context

        if isinstance(exc, UnauthorizedError):
            headers["WWW-Authenticate"] = "Bearer"
        if isinstance(exc, RateLimitExceededError):
            headers["Retry-After"] = str(exc.retry_after)

        return JSONResponse(status_code=exc.status_code, content=content, headers=headers)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Stack trace goes to the log; the client gets a generic message."""
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again or contact support.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    The token service, rate limiter and cache are built here rather than at
    import time, so each app instance (and each test) owns its own.
    """
    app = FastAPI(
        title="Schools24 API",
        description="School management backend: students, teachers, academics, attendance and fees.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    token_service = TokenService()
    rate_limiter = TokenBucketLimiter()
    app.state.token_service = token_service
    app.state.rate_limiter = rate_limiter
    app.state.cache = create_cache(settings)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added = outermost, so they are added innermost first
    app.add_middleware(JWTAuthMiddleware, token_service=token_service, api_prefix=settings.api_prefix)
    app.add_middleware(RateLimitMiddleware, limiter=rate_limiter)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=settings.cors_methods_list,
        allow_headers=settings.cors_headers_list,
        expose_headers=["X-Request-ID", "Retry-After"],
    )

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(health.router)
    for module in (auth, student, academic, teacher, announcements, classes, admin):
        app.include_router(module.router, prefix=settings.api_prefix)

    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount(URL_PREFIX, StaticFiles(directory=str(upload_dir)), name="uploads")

    return app


# ── Application Instance ─────────────────────────────────────────────────
app = create_app()

"""
Companion API — FastAPI Application Factory
============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() builds Settings and the PlatformClient,
       registers middleware, exception handlers and routers.
Who:   uvicorn (`uvicorn companion_api.main:app`) and the test suite, which
       calls create_app() with its own Settings and an httpx transport.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌──────────┐ ┌──────────┐ ┌──────────────────────────┐ │
    │  │  Req ID  │→│ Logging  │→│ CORS (OPTIONS → 200)     │ │
    │  └──────────┘ └──────────┘ └──────────────────────────┘ │
    │                                                          │
    │  Routes (/api/...):                                      │
    │  profile · media · companions · conversations · matches  │
    │  setup · /health                                         │
    │                                                          │
    │  Exception Handlers → {"success": false, "error": ...}   │
    │  400 validation │ 401 auth │ 403 ownership │ 405 │ 500   │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:   logging, configuration check (logged, not fatal)
    Shutdown:  close the platform HTTP client
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from companion_api import __version__
from companion_api.config import Settings
from companion_api.exceptions import CompanionAPIError
from companion_api.middleware.cors import CORSHeadersMiddleware
from companion_api.middleware.logging import RequestLoggingMiddleware
from companion_api.middleware.request_id import RequestIDMiddleware, request_id_var
from companion_api.platform import PlatformClient
from companion_api.responses import cors_headers, error_response
from companion_api.routes import companions, conversations, health, matches, media, profile, setup

logger = logging.getLogger(__name__)

HTTP_ERROR_MESSAGES = {
    404: "Not found",
    405: "Method not allowed",
}


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger once for the whole process.

    Format: 2024-01-15T12:00:00 [INFO] companion_api.access: GET /api/get-banner 200 ...
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(settings.log_level)
    logger.info("=" * 60)
    logger.info("Companion API %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: /health reports "degraded" and handlers answer 500
        logger.error("Configuration error: %s", str(e))

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Companion API shutting down...")
    await app.state.platform.aclose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map every failure to the envelope `{"success": false, "error": message}`.

    Handler hierarchy:
        CompanionAPIError        → exc.status_code (400/401/403/500)
        HTTPException            → its status ("Method not allowed" for 405)
        RequestValidationError   → 400
        Exception (fallback)     → 500, generic message, traceback logged
    """

    @app.exception_handler(CompanionAPIError)
    async def handle_companion_error(request: Request, exc: CompanionAPIError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        else:
            logger.warning("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        message = HTTP_ERROR_MESSAGES.get(exc.status_code) or str(exc.detail)
        return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), errors)
        return error_response(400, message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        # Runs outside the middleware stack: CORS headers are added here
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        settings: Settings = request.app.state.settings
        return error_response(
            500,
            "An unexpected error occurred",
            headers=cors_headers(settings.cors_allow_headers),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings:   Explicit configuration; read from the environment when None.
        transport:  httpx transport for the platform client (tests pass a
                    MockTransport); the default network transport when None.
    """
    settings = settings or Settings()

    app = FastAPI(
        title="Companion API",
        description=(
            "Profile, media, companion, conversation and match handlers in front "
            "of a managed auth / record / storage platform."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.platform = PlatformClient(settings, transport=transport)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → CORS → routes
    app.add_middleware(CORSHeadersMiddleware, allow_headers=settings.cors_allow_headers)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(profile.router)
    app.include_router(media.router)
    app.include_router(companions.router)
    app.include_router(conversations.router)
    app.include_router(matches.router)
    app.include_router(setup.router)
    app.include_router(health.router)

    return app


app = create_app()

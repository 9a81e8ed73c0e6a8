"""
Quillpost Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn app.main:app).
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────────┐ ┌──────────┐ ┌─────────────────┐  │
    │  │  Req ID      │→│ Logging  │→│ GZip / CORS     │  │
    │  └──────────────┘ └──────────┘ └─────────────────┘  │
    │                                                     │
    │  Routes:                                            │
    │  ┌───────────────┐ ┌────────────────┐ ┌──────────┐  │
    │  │ GET /api/blogs│ │POST /api/blogs │ │GET health│  │
    │  └───────────────┘ └────────────────┘ └──────────┘  │
    │                                                     │
    │  Exception Handlers (all → error envelope):         │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ ValidationError→400 │ everything else→500    │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, warn about missing settings
    Shutdown: close the shared document-store connection
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.config import settings
from app.database import connection_manager
from app.exceptions import BlogError, ValidationError
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.request_id import RequestIDMiddleware
from app.routes import blogs, health
from app.schemas.post import ErrorEnvelope

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    When:   Called once during app startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # The Azure SDK logs every HTTP round-trip at INFO
    logging.getLogger("azure").setLevel(logging.WARNING)
    logging.getLogger("azure.core.pipeline.policies.http_logging_policy").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:  logging, then a warning for each missing required setting.
              The server still starts; requests needing the store get a 500
              until the setting is provided.
    Shutdown: close the shared Cosmos client.
    """
    setup_logging()
    logger.info("Quillpost Backend %s starting up...", __version__)

    for name in settings.missing_settings():
        logger.warning("%s is not set. Database connection will not be established.", name)

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("Quillpost Backend shutting down...")
    await connection_manager.close()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(request: Request, status_code: int, message: str) -> JSONResponse:
    # The Exception handler runs outside the middleware stack; request.state
    # lives on the ASGI scope, so the ID is still readable there
    rid = getattr(request.state, "request_id", "")
    return JSONResponse(
        status_code=status_code,
        content=ErrorEnvelope(error=message).model_dump(),
        headers={"X-Request-ID": rid} if rid else None,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to the flat error envelope.

    Handler hierarchy:
        ValidationError   → 400 {"success": false, "error": message}
        BlogError (base)  → 500 {"success": false, "error": message}
                            (ConfigurationError, DatabaseConnectionError,
                             PersistenceError)
        Exception         → 500 {"success": false, "error": str(exc) or "Server error"}

    Full context is logged server-side with the request ID.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = getattr(request.state, "request_id", "")
        logger.warning("[%s] Validation error: %s | Context: %s", rid, exc.message, exc.context)
        return _error_response(request, 400, exc.message)

    @app.exception_handler(BlogError)
    async def handle_blog_error(request: Request, exc: BlogError):
        rid = getattr(request.state, "request_id", "")
        logger.error(
            "[%s] %s %s failed: %s: %s | Context: %s",
            rid,
            request.method,
            request.url.path,
            type(exc).__name__,
            exc.message,
            exc.context,
        )
        return _error_response(request, 500, exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = getattr(request.state, "request_id", "")
        logger.error(
            "[%s] %s %s unexpected error: %s",
            rid,
            request.method,
            request.url.path,
            str(exc),
            exc_info=True,
        )
        return _error_response(request, 500, str(exc) or "Server error")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app = FastAPI(
        title="Quillpost API",
        description="Create and list blog posts stored in Azure Cosmos DB.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → GZip → CORS → routes
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(blogs.router)
    app.include_router(health.router)

    return app


app = create_app()

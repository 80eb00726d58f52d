"""
Office Plant Tracker Backend — FastAPI Application Factory
==========================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() assembles middleware, exception handlers and routers;
       the module-level `app` is what uvicorn serves
       (uvicorn plant_tracker.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌────────────┐ ┌──────────┐ ┌──────────┐ ┌───────────┐  │
    │  │ Rate Limit │→│ Req ID   │→│ Logging  │→│ GZip/CORS │  │
    │  └────────────┘ └──────────┘ └──────────┘ └───────────┘  │
    │                                                          │
    │  Routes:                                                 │
    │  ┌─────────────┐ ┌───────────────┐ ┌────────────────┐    │
    │  │ /api/plants │ │ /api/locations│ │ /api/import-csv│    │
    │  └─────────────┘ └───────────────┘ └────────────────┘    │
    │                                                          │
    │  Exception Handlers:                                     │
    │  ┌────────────────────────────────────────────────────┐  │
    │  │ Validation→400 │ NotFound→404 │ Conflict→409 │ →500 │  │
    │  └────────────────────────────────────────────────────┘  │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, optional create_all (DB_CREATE_TABLES), banner
    Shutdown: dispose the engine's connection pool
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from plant_tracker import __version__
from plant_tracker.config import settings
from plant_tracker.database import create_tables, dispose_engine
from plant_tracker.exceptions import (
    ConflictError,
    CsvParseError,
    DatabaseError,
    NotFoundError,
    PlantTrackerError,
    RateLimitExceededError,
    ValidationError,
)
from plant_tracker.middleware.logging import RequestLoggingMiddleware
from plant_tracker.middleware.rate_limit import RateLimitMiddleware
from plant_tracker.middleware.request_id import RequestIDMiddleware, request_id_var
from plant_tracker.routes import health, imports, locations, plants

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once at startup.

    Format: 2026-01-15T12:00:00 [INFO] plant_tracker.services.import_service: ...
    Output goes to stdout, which Docker collects.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that log every request or statement at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("Office Plant Tracker %s starting up...", __version__)
    logger.info("Database backend: %s", "sqlite" if settings.is_sqlite else "server")

    if settings.db_create_tables:
        await create_tables()
        logger.info("Database tables created from model metadata")

    if settings.import_strict_mode:
        logger.info("CSV import runs in strict mode (first failed row aborts)")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Office Plant Tracker shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error(status_code: int, error: str, message: str, details=None, headers=None) -> JSONResponse:
    content = {"error": error, "message": message}
    if details:
        content["details"] = details
    content["request_id"] = request_id_var.get("")
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application exceptions to HTTP responses.

    Handler hierarchy:
        CsvParseError           → 400 (with parser diagnostics)
        ValidationError         → 400
        RequestValidationError  → 400 (FastAPI body/query validation)
        NotFoundError           → 404
        ConflictError           → 409
        RateLimitExceededError  → 429
        DatabaseError           → 500 (generic message)
        PlantTrackerError       → 500
        Exception               → 500 (stack trace logged)

    Server errors never expose SQL, driver messages or stack traces.
    """

    @app.exception_handler(CsvParseError)
    async def handle_csv_parse_error(request: Request, exc: CsvParseError):
        logger.warning(
            "[%s] CSV parse error: %d diagnostics", request_id_var.get(""), len(exc.diagnostics)
        )
        return _error(400, "csv_parse_error", exc.message, exc.context)

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        fields = [
            {
                "field": ".".join(str(part) for part in error.get("loc", ())[1:]),
                "message": error.get("msg", ""),
            }
            for error in exc.errors()
        ]
        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), fields)
        return _error(400, "validation_error", "Request validation failed", {"errors": fields})

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error(404, "not_found", exc.message, exc.context)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        logger.info("[%s] Conflict: %s", request_id_var.get(""), exc.message)
        return _error(409, "conflict", exc.message, exc.context)

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return _error(
            429,
            "rate_limit_exceeded",
            exc.message,
            exc.context,
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        # Context stays server-side
        logger.error(
            "[%s] Database error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context
        )
        return _error(500, "server_error", exc.message)

    @app.exception_handler(PlantTrackerError)
    async def handle_application_error(request: Request, exc: PlantTrackerError):
        logger.error(
            "[%s] Application error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context
        )
        return _error(500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return _error(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Office Plant Tracker API",
        description=(
            "Inventory of office plants arranged in a location hierarchy "
            "(floor → main zone → sub-zone → pot type → precise spot), "
            "with CSV import that builds the hierarchy from spreadsheet columns."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RateLimit → RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(plants.router)
    app.include_router(locations.router)
    app.include_router(imports.router)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn on the configured host/port."""
    import uvicorn

    uvicorn.run(
        "plant_tracker.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )

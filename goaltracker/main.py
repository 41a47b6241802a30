"""FastAPI application entrypoint.

Application startup order:
1. Load settings (from environment)
2. Configure structured logging
3. Initialize database engine and session factory (unless GOAL_STORE=memory)
4. Select the goal repository (database, or in-memory fallback)
5. Register middleware (CORS, security headers, request ids)
6. Include all routers

Shutdown order:
1. Close DB connection pool
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from goaltracker import __version__
from goaltracker.api.router import api_v1_router, public_router
from goaltracker.config import GoalStoreBackend, get_settings
from goaltracker.core.security import RequestIdMiddleware, SecurityHeadersMiddleware
from goaltracker.database import close_db, init_db
from goaltracker.domain.errors import GoalNotFoundError, GoalValidationError, StorageFailure
from goaltracker.domain.schemas import field_errors
from goaltracker.store import build_goal_repository
from goaltracker.telemetry.logging import configure_logging

log = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown."""
    settings = get_settings()

    # Configure structured logging first (before any log calls)
    configure_logging(
        json_logs=settings.is_prod,
        log_level="DEBUG" if settings.debug else "INFO",
    )

    log.info(
        "app.starting",
        environment=settings.environment,
        goal_store=settings.goal_store,
        db_url=settings.database_url.split("@")[-1],
    )

    uses_database = settings.goal_store != GoalStoreBackend.MEMORY
    if uses_database:
        init_db(settings)

    app.state.goal_repository = await build_goal_repository(settings)

    log.info("app.ready", goal_store=app.state.goal_repository.backend_name)

    yield

    if uses_database:
        await close_db()
    log.info("app.shutdown")


def create_app() -> FastAPI:
    """Application factory."""
    settings = get_settings()

    app = FastAPI(
        title="Goal Tracker",
        description="Personal goals with milestones, notes, progress tracking and statistics.",
        version=__version__,
        docs_url="/docs" if settings.is_dev else None,
        redoc_url="/redoc" if settings.is_dev else None,
        openapi_url="/openapi.json" if settings.is_dev else None,
        lifespan=lifespan,
    )

    # ------------------------------------------------------------------ #
    # Middleware (added in reverse order - last added = first executed)
    # ------------------------------------------------------------------ #

    # CORS (must be first in execution order, so add last)
    cors_origins = ["*"] if settings.is_dev else settings.cors_allowed_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=settings.is_prod,
        allow_methods=["*"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )

    app.add_middleware(SecurityHeadersMiddleware, is_production=settings.is_prod)
    app.add_middleware(RequestIdMiddleware)

    # ------------------------------------------------------------------ #
    # Routers
    # ------------------------------------------------------------------ #
    app.include_router(public_router)
    app.include_router(api_v1_router)

    # ------------------------------------------------------------------ #
    # Exception handlers
    # ------------------------------------------------------------------ #

    @app.exception_handler(GoalValidationError)
    async def validation_error_handler(request: Request, exc: GoalValidationError) -> JSONResponse:
        log.info("app.validation_failed", path=request.url.path, errors=exc.errors)
        return JSONResponse(status_code=400, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        error = GoalValidationError(field_errors(list(exc.errors())))
        log.info("app.validation_failed", path=request.url.path, errors=error.errors)
        return JSONResponse(status_code=400, content=error.to_dict())

    @app.exception_handler(GoalNotFoundError)
    async def not_found_handler(request: Request, exc: GoalNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(StorageFailure)
    async def storage_failure_handler(request: Request, exc: StorageFailure) -> JSONResponse:
        log.error(
            "app.storage_failure",
            path=request.url.path,
            method=request.method,
            error=str(exc),
        )
        return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        log.error(
            "app.unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    return app


# Module-level app instance for uvicorn
app = create_app()

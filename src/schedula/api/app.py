"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from schedula import __version__
from schedula.api.middleware import (
    ApiUsageMiddleware,
    ErrorHandlingMiddleware,
    TenantResolutionMiddleware,
)
from schedula.api.routers import health_router, v1_router
from schedula.config.settings import Settings, get_settings
from schedula.core.logging import setup_logging
from schedula.core.redis import ApiUsageCounter, close_redis
from schedula.db.config import close_db, get_session_factory, init_db

logger = structlog.get_logger("schedula.api")


def create_app(
    settings: Settings | None = None,
    *,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    usage_counter: ApiUsageCounter | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings override (useful for testing)
        session_factory: Session factory override (default: process-wide engine)
        usage_counter: API usage counter override (default: shared Redis client)

    Returns:
        Configured FastAPI application

    Example:
        # Run with uvicorn
        uvicorn schedula.api.app:create_app --factory
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="Schedula API",
        description="Multi-tenant appointment booking API",
        version=__version__,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=_lifespan,
    )

    # Store shared resources on app state for access in dependencies
    app.state.settings = settings
    app.state.owns_store = session_factory is None
    app.state.session_factory = session_factory or get_session_factory()
    app.state.usage_counter = usage_counter or ApiUsageCounter()

    _configure_middleware(app)
    _configure_routers(app)

    return app


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Args:
        app: FastAPI application

    Yields:
        None (context for application lifetime)
    """
    setup_logging(app.state.settings.log_level)
    logger.info("api_starting", version=__version__)

    if app.state.owns_store:
        try:
            await init_db()
            logger.info("database_ready")
        except SQLAlchemyError as e:
            logger.warning("database_init_failed", error=str(e))

    yield

    logger.info("api_stopping")
    if app.state.owns_store:
        await close_db()
    await close_redis()


def _configure_middleware(app: FastAPI) -> None:
    """Configure middleware stack.

    Middleware order (outermost to innermost execution):
    1. ErrorHandlingMiddleware - Converts exceptions to HTTP responses
    2. TenantResolutionMiddleware - Resolves the tenant and sets request context
    3. ApiUsageMiddleware - Enforces and counts daily API requests

    Note: Middleware is added in reverse order because Starlette
    processes them from last-added to first-added.
    """
    app.add_middleware(ApiUsageMiddleware)
    app.add_middleware(TenantResolutionMiddleware)
    app.add_middleware(ErrorHandlingMiddleware)


def _configure_routers(app: FastAPI) -> None:
    """Configure API routers."""
    # Health check endpoints (no prefix - at root level)
    app.include_router(health_router)

    app.include_router(v1_router)

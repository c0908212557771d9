"""FastAPI dependencies for API endpoints."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from schedula.booking import BookingService, ResourceService
from schedula.config.settings import Settings
from schedula.core.context import ANONYMOUS, Principal, TenantContext, require_tenant
from schedula.core.redis import ApiUsageCounter
from schedula.quota import QuotaEnforcer

__all__ = [
    "get_app_settings",
    "get_booking_service",
    "get_db",
    "get_principal",
    "get_resource_service",
    "get_session_factory",
    "get_tenant",
    "get_usage_counter",
]


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    """Session factory the application was created with."""
    return request.app.state.session_factory


async def get_db(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session for the duration of the request."""
    async with session_factory() as session:
        yield session


def get_tenant(request: Request) -> TenantContext:
    """Get the tenant resolved by TenantResolutionMiddleware.

    Raises:
        TenantContextRequiredError: If the request has no tenant (operator host)
    """
    return require_tenant(getattr(request.state, "tenant", None))


def get_principal(request: Request) -> Principal:
    """Get the caller set by upstream authentication, anonymous if unset."""
    return getattr(request.state, "principal", None) or ANONYMOUS


def get_usage_counter(request: Request) -> ApiUsageCounter:
    return request.app.state.usage_counter


def get_booking_service(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> BookingService:
    """Get a BookingService bound to the application's session factory."""
    return BookingService(session_factory, settings)


def get_resource_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    usage_counter: Annotated[ApiUsageCounter, Depends(get_usage_counter)],
) -> ResourceService:
    """Get a ResourceService whose quota checks share the request session."""
    return ResourceService(db, QuotaEnforcer(db, usage_counter))

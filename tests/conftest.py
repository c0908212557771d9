"""Pytest fixtures for Schedula tests."""

from collections.abc import AsyncGenerator
from decimal import Decimal
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
import structlog
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from schedula.booking import BookingService
from schedula.config.settings import Settings
from schedula.core.context import Principal, TenantContext
from schedula.core.redis import ApiUsageCounter
from schedula.db.config import create_engine, create_session_factory
from schedula.db.models import (
    Base,
    BlockType,
    Employee,
    Location,
    Schedule,
    Service,
    Tenant,
    TenantStatus,
    Weekday,
)


# =============================================================================
# Structlog Configuration Fixture
# =============================================================================


@pytest.fixture(scope="function", autouse=True)
def reset_structlog_after_test():
    """Reset structlog configuration after each test.

    This ensures tests that modify structlog global state
    don't affect other tests.
    """
    yield
    structlog.reset_defaults()
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Create settings for testing against a file-backed SQLite database."""
    return Settings(
        ENVIRONMENT="test",
        DEBUG=True,
        log_level="DEBUG",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'schedula.db'}",
        STORE_RETRY_ATTEMPTS=2,
        STORE_RETRY_MAX_WAIT_SECONDS=0.1,
    )


@pytest_asyncio.fixture
async def test_engine(test_settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    """Create a test database engine with all tables.

    A file database rather than :memory: so that concurrent sessions
    see each other's commits.
    """
    engine = create_engine(test_settings.DATABASE_URL, test_settings)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(test_engine)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


# =============================================================================
# Seed data
# =============================================================================


@pytest_asyncio.fixture
async def tenant_row(db_session: AsyncSession) -> Tenant:
    """An ACTIVE tenant on the BASIC plan in UTC."""
    tenant = Tenant(
        name="Acme Salon",
        email="owner@acme.example",
        subdomain="acme",
        status=TenantStatus.ACTIVE.value,
        plan="BASIC",
        settings={"timezone": "UTC", "rescheduleTimeLimitHours": 2},
        features={},
    )
    db_session.add(tenant)
    await db_session.commit()
    return tenant


@pytest.fixture
def tenant(tenant_row: Tenant) -> TenantContext:
    return TenantContext.from_model(tenant_row)


@pytest_asyncio.fixture
async def location(db_session: AsyncSession, tenant_row: Tenant) -> Location:
    location = Location(tenant_id=tenant_row.tenant_id, name="Main Street", address="1 Main St")
    db_session.add(location)
    await db_session.commit()
    return location


@pytest_asyncio.fixture
async def employee(db_session: AsyncSession, tenant_row: Tenant) -> Employee:
    employee = Employee(tenant_id=tenant_row.tenant_id, name="Sam", email="sam@acme.example")
    db_session.add(employee)
    await db_session.commit()
    return employee


@pytest_asyncio.fixture
async def service(db_session: AsyncSession, tenant_row: Tenant) -> Service:
    """A 30 minute service."""
    service = Service(
        tenant_id=tenant_row.tenant_id,
        name="Haircut",
        duration_minutes=30,
        price=Decimal("25.00"),
    )
    db_session.add(service)
    await db_session.commit()
    return service


@pytest_asyncio.fixture
async def monday_schedule(
    db_session: AsyncSession,
    tenant_row: Tenant,
    employee: Employee,
    location: Location,
) -> Schedule:
    """Working hours Monday 09:00-10:00."""
    schedule = Schedule(
        tenant_id=tenant_row.tenant_id,
        employee_id=employee.employee_id,
        location_id=location.location_id,
        weekday=Weekday.MONDAY.value,
        start_time="09:00",
        end_time="10:00",
        block_type=BlockType.WORKING_HOURS.value,
    )
    db_session.add(schedule)
    await db_session.commit()
    return schedule


@pytest.fixture
def customer() -> Principal:
    return Principal(
        subject_id="auth0|alice",
        email="alice@example.com",
        name="Alice Liddell",
    )


@pytest.fixture
def admin() -> Principal:
    return Principal(
        subject_id="auth0|owner",
        email="owner@acme.example",
        permissions=frozenset({"admin"}),
    )


@pytest.fixture
def booking_service(
    session_factory: async_sessionmaker[AsyncSession],
    test_settings: Settings,
) -> BookingService:
    return BookingService(session_factory, test_settings)


# =============================================================================
# API test fixtures
# =============================================================================


@pytest.fixture
def usage_counter() -> MagicMock:
    """ApiUsageCounter double that never touches Redis."""
    counter = MagicMock(spec=ApiUsageCounter)
    counter.get = AsyncMock(return_value=0)
    counter.increment = AsyncMock(return_value=1)
    return counter


@pytest.fixture
def test_app(
    test_settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    usage_counter: MagicMock,
) -> FastAPI:
    """Create a FastAPI test application bound to the test database."""
    from schedula.api.app import create_app

    return create_app(
        settings=test_settings,
        session_factory=session_factory,
        usage_counter=usage_counter,
    )


@pytest_asyncio.fixture
async def test_client(test_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client addressing the ``acme`` tenant by subdomain."""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://acme.localhost",
    ) as client:
        yield client

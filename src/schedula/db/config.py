"""Database configuration and session management."""

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from schedula.config.settings import Settings, get_settings

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def create_engine(database_url: str, settings: Settings | None = None) -> AsyncEngine:
    """Create an async engine for the given URL.

    SQLite gets a generous busy timeout so that a booking waiting on
    another booking's write lock blocks instead of failing immediately.
    """
    settings = settings or get_settings()
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        return create_async_engine(
            url,
            echo=settings.DEBUG,
            connect_args={"timeout": settings.STORE_TIMEOUT_SECONDS},
        )

    if settings.ENVIRONMENT == "test":
        return create_async_engine(url, echo=settings.DEBUG, poolclass=NullPool)

    return create_async_engine(
        url,
        echo=settings.DEBUG,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_pre_ping=True,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to an engine."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def get_engine() -> AsyncEngine:
    """Get or create the process-wide engine."""
    global _engine
    if _engine is None:
        _engine = create_engine(get_settings().DATABASE_URL)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the process-wide session factory."""
    global _session_factory
    if _session_factory is None:
        _session_factory = create_session_factory(get_engine())
    return _session_factory


async def init_db() -> None:
    """Verify connectivity so the pool is ready before accepting requests."""
    async with get_engine().begin() as conn:
        await conn.execute(text("SELECT 1"))


async def close_db() -> None:
    """Close database connections gracefully."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


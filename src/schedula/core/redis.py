"""Redis client and API usage counters.

Daily API request counts per tenant live in Redis rather than the
database; each day's key expires on its own shortly after the day ends.
"""

import asyncio
from datetime import UTC, date, datetime
from uuid import UUID

from redis.asyncio import ConnectionPool, Redis

from schedula.config.settings import get_settings
from schedula.core.error_handling import store_errors

_pool: ConnectionPool | None = None
_client: Redis | None = None
_lock = asyncio.Lock()


async def get_redis_pool() -> ConnectionPool:
    """Get or create the Redis connection pool.

    Returns:
        Shared connection pool for Redis connections
    """
    global _pool
    if _pool is None:
        async with _lock:
            if _pool is None:
                settings = get_settings()
                _pool = ConnectionPool.from_url(
                    settings.REDIS_URL,
                    max_connections=settings.REDIS_MAX_CONNECTIONS,
                    decode_responses=True,
                )
    return _pool


async def get_redis_client() -> Redis:
    """Get or create the Redis client.

    Returns:
        Shared Redis client with connection pool
    """
    global _client
    if _client is None:
        pool = await get_redis_pool()
        async with _lock:
            if _client is None:
                _client = Redis(connection_pool=pool)
    return _client


async def close_redis() -> None:
    """Close Redis connection pool and client.

    Should be called during application shutdown.
    """
    global _pool, _client
    async with _lock:
        if _client is not None:
            await _client.aclose()
            _client = None
        if _pool is not None:
            await _pool.disconnect()
            _pool = None


class ApiUsageCounter:
    """Per-tenant daily API request counter.

    Keys have the form ``api_usage:{tenant_id}:{YYYY-MM-DD}`` (UTC day)
    and expire two days after their first increment.
    """

    KEY_TTL_SECONDS = 2 * 24 * 60 * 60

    def __init__(self, client: Redis | None = None, prefix: str = "api_usage"):
        """Initialize the counter.

        Args:
            client: Redis client (uses global if None)
            prefix: Key prefix for namespacing
        """
        self._client = client
        self.prefix = prefix

    async def _get_client(self) -> Redis:
        if self._client is not None:
            return self._client
        return await get_redis_client()

    def make_key(self, tenant_id: UUID, day: date | None = None) -> str:
        day = day or datetime.now(UTC).date()
        return f"{self.prefix}:{tenant_id}:{day.isoformat()}"

    async def increment(self, tenant_id: UUID, day: date | None = None) -> int:
        """Record one API request for a tenant.

        Returns:
            The tenant's request count for the day, including this one

        Raises:
            StoreUnavailableError: If Redis cannot be reached
        """
        key = self.make_key(tenant_id, day)

        async with store_errors():
            client = await self._get_client()
            pipe = client.pipeline()
            pipe.incr(key)
            pipe.expire(key, self.KEY_TTL_SECONDS)
            results = await pipe.execute()
        return int(results[0])

    async def get(self, tenant_id: UUID, day: date | None = None) -> int:
        """Get a tenant's request count for the day (0 if none)."""
        async with store_errors():
            client = await self._get_client()
            value = await client.get(self.make_key(tenant_id, day))
        return int(value) if value is not None else 0

"""Data store error translation and retry policy.

Database driver and Redis connection failures are normalized into StoreUnavailableError, the
only error kind that is retried. Domain errors pass through untouched.

Usage:
    from schedula.core.error_handling import store_errors, with_store_retry

    async def load():
        async with store_errors():
            return await repo.get(tenant_id, pk)

    row = await with_store_retry(load)
"""

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TypeVar

import structlog
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from sqlalchemy.exc import DBAPIError, OperationalError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from schedula.config.settings import get_settings
from schedula.core.exceptions import StoreUnavailableError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@asynccontextmanager
async def store_errors() -> AsyncIterator[None]:
    """Translate SQLAlchemy and Redis connection errors into StoreUnavailableError.

    Raises:
        StoreUnavailableError: On OperationalError, DBAPIError or a Redis
            connection or timeout error
    """
    try:
        yield
    except (OperationalError, DBAPIError) as e:
        logger.warning("store_unavailable", error_type=type(e).__name__, error=str(e.orig or e))
        raise StoreUnavailableError(str(e.orig or e)) from e
    except (RedisConnectionError, RedisTimeoutError) as e:
        logger.warning("store_unavailable", error_type=type(e).__name__, error=str(e))
        raise StoreUnavailableError(str(e)) from e


def _log_retry(retry_state: RetryCallState) -> None:
    logger.warning(
        "store_retry",
        attempt=retry_state.attempt_number,
        error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
    )


def store_retrying(attempts: int | None = None) -> AsyncRetrying:
    """Retry policy for store calls: exponential backoff, StoreUnavailableError only."""
    settings = get_settings()
    return AsyncRetrying(
        retry=retry_if_exception_type(StoreUnavailableError),
        stop=stop_after_attempt(attempts or settings.STORE_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=0.1, max=settings.STORE_RETRY_MAX_WAIT_SECONDS),
        before_sleep=_log_retry,
        reraise=True,
    )


async def with_store_retry(
    operation: Callable[[], Awaitable[T]],
    attempts: int | None = None,
) -> T:
    """Run an async operation, retrying transient store failures.

    Args:
        operation: Zero-argument coroutine function to run
        attempts: Override the configured attempt count

    Returns:
        The operation's result

    Raises:
        StoreUnavailableError: If every attempt fails
    """
    return await store_retrying(attempts)(operation)

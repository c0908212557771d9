"""Unit tests for store error translation and retries."""

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from sqlalchemy.exc import OperationalError

from schedula.core.error_handling import store_errors, with_store_retry
from schedula.core.exceptions import BookingConflictError, StoreUnavailableError


def operational_error() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("database is locked"))


class TestStoreErrors:
    """Tests for store_errors()."""

    async def test_operational_error_is_translated(self):
        with pytest.raises(StoreUnavailableError) as exc_info:
            async with store_errors():
                raise operational_error()
        assert "database is locked" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, OperationalError)

    async def test_redis_connection_error_is_translated(self):
        with pytest.raises(StoreUnavailableError, match="Connection refused"):
            async with store_errors():
                raise RedisConnectionError("Connection refused")

    async def test_redis_timeout_is_translated(self):
        with pytest.raises(StoreUnavailableError):
            async with store_errors():
                raise RedisTimeoutError("Timeout reading from socket")

    async def test_domain_errors_pass_through(self):
        with pytest.raises(BookingConflictError):
            async with store_errors():
                raise BookingConflictError(employee_id=None)

    async def test_no_error(self):
        async with store_errors():
            value = 1
        assert value == 1


class TestWithStoreRetry:
    """Tests for with_store_retry()."""

    async def test_returns_result(self):
        operation = AsyncMock(return_value="ok")
        assert await with_store_retry(operation) == "ok"
        operation.assert_awaited_once()

    async def test_retries_store_unavailable(self):
        operation = AsyncMock(side_effect=[StoreUnavailableError(), "ok"])
        assert await with_store_retry(operation, attempts=3) == "ok"
        assert operation.await_count == 2

    async def test_gives_up_after_attempts(self):
        operation = AsyncMock(side_effect=StoreUnavailableError("down"))
        with pytest.raises(StoreUnavailableError, match="down"):
            await with_store_retry(operation, attempts=2)
        assert operation.await_count == 2

    async def test_domain_errors_are_not_retried(self):
        operation = AsyncMock(side_effect=BookingConflictError(employee_id=None))
        with pytest.raises(BookingConflictError):
            await with_store_retry(operation, attempts=3)
        operation.assert_awaited_once()

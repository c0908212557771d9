"""Unit tests for QuotaEnforcer with mocked usage sources."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from schedula.config.plans import PlanId, QuotaResource
from schedula.core.context import TenantContext
from schedula.core.exceptions import QuotaExceededError, TenantContextRequiredError
from schedula.db.models.tenant import TenantStatus
from schedula.quota import QuotaEnforcer
from schedula.quota.enforcer import month_start

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)


def make_tenant(plan: PlanId = PlanId.BASIC, timezone: str = "UTC") -> TenantContext:
    return TenantContext(
        tenant_id=uuid4(),
        name="Acme",
        subdomain="acme",
        status=TenantStatus.ACTIVE,
        plan=plan,
        settings={"timezone": timezone},
    )


@pytest.fixture
def enforcer() -> QuotaEnforcer:
    counter = MagicMock()
    counter.get = AsyncMock(return_value=0)
    enforcer = QuotaEnforcer(MagicMock(), usage_counter=counter)
    enforcer.locations = MagicMock(count=AsyncMock(return_value=0))
    enforcer.employees = MagicMock(count=AsyncMock(return_value=0))
    enforcer.services = MagicMock(count=AsyncMock(return_value=0))
    enforcer.appointments = MagicMock(count_created_since=AsyncMock(return_value=0))
    return enforcer


class TestMonthStart:
    """Tests for month_start()."""

    def test_utc_tenant(self):
        assert month_start(make_tenant(), NOW) == datetime(2026, 3, 1, tzinfo=UTC)

    def test_local_month_differs_from_utc(self):
        """Early on the 1st in UTC is still the previous month in New York."""
        tenant = make_tenant(timezone="America/New_York")
        now = datetime(2026, 3, 1, 2, 0, tzinfo=UTC)
        # 2026-02-01 00:00 EST is 05:00 UTC
        assert month_start(tenant, now) == datetime(2026, 2, 1, 5, 0, tzinfo=UTC)


@pytest.mark.asyncio
class TestCheckQuota:
    """Tests for QuotaEnforcer.check_quota()."""

    async def test_below_limit_is_allowed(self, enforcer: QuotaEnforcer):
        enforcer.locations.count.return_value = 2

        check = await enforcer.check_quota(make_tenant(), QuotaResource.LOCATIONS, NOW)

        assert check.allowed
        assert check.limit == 3
        assert check.current == 2

    async def test_at_limit_is_exceeded(self, enforcer: QuotaEnforcer):
        enforcer.locations.count.return_value = 3

        check = await enforcer.check_quota(make_tenant(), QuotaResource.LOCATIONS, NOW)

        assert not check.allowed
        assert check.current == check.limit == 3

    async def test_unrestricted_resource_is_not_counted(self, enforcer: QuotaEnforcer):
        check = await enforcer.check_quota(
            make_tenant(PlanId.PRO), QuotaResource.EMPLOYEES, NOW
        )

        assert check.allowed
        assert check.limit is None
        assert check.current is None
        enforcer.employees.count.assert_not_awaited()

    async def test_appointments_counted_from_local_month_start(self, enforcer: QuotaEnforcer):
        tenant = make_tenant()
        await enforcer.check_quota(tenant, QuotaResource.APPOINTMENTS_PER_MONTH, NOW)

        enforcer.appointments.count_created_since.assert_awaited_once_with(
            tenant.tenant_id, datetime(2026, 3, 1, tzinfo=UTC)
        )

    async def test_api_requests_read_from_daily_counter(self, enforcer: QuotaEnforcer):
        tenant = make_tenant()
        enforcer.usage_counter.get.return_value = 1000

        check = await enforcer.check_quota(tenant, QuotaResource.API_REQUESTS_PER_DAY, NOW)

        assert not check.allowed
        enforcer.usage_counter.get.assert_awaited_once_with(tenant.tenant_id, NOW.date())

    async def test_free_plan_api_requests_unrestricted(self, enforcer: QuotaEnforcer):
        check = await enforcer.check_quota(
            make_tenant(PlanId.FREE), QuotaResource.API_REQUESTS_PER_DAY, NOW
        )
        assert check.allowed
        enforcer.usage_counter.get.assert_not_awaited()

    async def test_requires_tenant(self, enforcer: QuotaEnforcer):
        with pytest.raises(TenantContextRequiredError):
            await enforcer.check_quota(None, QuotaResource.LOCATIONS)


@pytest.mark.asyncio
class TestEnforceQuota:
    """Tests for QuotaEnforcer.enforce_quota()."""

    async def test_raises_with_limit_and_current(self, enforcer: QuotaEnforcer):
        enforcer.services.count.return_value = 25

        with pytest.raises(QuotaExceededError) as exc_info:
            await enforcer.enforce_quota(make_tenant(), QuotaResource.SERVICES, NOW)

        assert exc_info.value.resource == "services"
        assert exc_info.value.limit == 25
        assert exc_info.value.current == 25

    async def test_returns_check_when_allowed(self, enforcer: QuotaEnforcer):
        enforcer.services.count.return_value = 24
        check = await enforcer.enforce_quota(make_tenant(), QuotaResource.SERVICES, NOW)
        assert check.allowed

    async def test_usage_report_covers_every_resource(self, enforcer: QuotaEnforcer):
        report = await enforcer.usage_report(make_tenant(), NOW)
        assert set(report) == set(QuotaResource)
        assert all(check.allowed for check in report.values())

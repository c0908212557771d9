"""QuotaEnforcer against real database counts."""

from datetime import UTC, datetime

import pytest

from schedula.booking import BookingRequest
from schedula.config.plans import PlanId, QuotaResource
from schedula.core.context import TenantContext
from schedula.core.exceptions import QuotaExceededError
from schedula.db.models import Location, Tenant, TenantStatus
from schedula.quota import QuotaEnforcer


@pytest.fixture
async def free_tenant(db_session, tenant_row) -> TenantContext:
    tenant_row.plan = PlanId.FREE.value
    await db_session.commit()
    return TenantContext.from_model(tenant_row)


@pytest.fixture
def enforcer(db_session, usage_counter) -> QuotaEnforcer:
    return QuotaEnforcer(db_session, usage_counter)


@pytest.mark.asyncio
class TestStoredResourceQuotas:
    """Counts come from the tenant's rows."""

    async def test_at_limit_is_exceeded(self, enforcer, free_tenant, location):
        check = await enforcer.check_quota(free_tenant, QuotaResource.LOCATIONS)

        assert not check.allowed
        assert (check.limit, check.current) == (1, 1)

        with pytest.raises(QuotaExceededError) as exc_info:
            await enforcer.enforce_quota(free_tenant, QuotaResource.LOCATIONS)
        assert exc_info.value.resource == "locations"
        assert (exc_info.value.limit, exc_info.value.current) == (1, 1)

    async def test_below_limit_is_allowed(self, enforcer, free_tenant, employee):
        check = await enforcer.enforce_quota(free_tenant, QuotaResource.EMPLOYEES)

        assert check.allowed
        assert (check.limit, check.current) == (5, 1)

    async def test_basic_plan_has_room(self, enforcer, tenant, location):
        check = await enforcer.enforce_quota(tenant, QuotaResource.LOCATIONS)
        assert (check.limit, check.current) == (3, 1)

    async def test_counts_only_own_tenant(self, db_session, enforcer, free_tenant):
        other = Tenant(name="Other", subdomain="other", status=TenantStatus.ACTIVE.value)
        db_session.add(other)
        await db_session.commit()
        db_session.add(Location(tenant_id=other.tenant_id, name="Elsewhere"))
        await db_session.commit()

        check = await enforcer.enforce_quota(free_tenant, QuotaResource.LOCATIONS)
        assert check.current == 0


@pytest.mark.asyncio
class TestMonthlyAppointments:
    """Appointments are counted by creation month."""

    async def test_counts_this_months_bookings(
        self, enforcer, tenant, customer, booking_service, service, employee, location
    ):
        await booking_service.book(
            tenant,
            BookingRequest(
                service_id=service.service_id,
                employee_id=employee.employee_id,
                location_id=location.location_id,
                start_time=datetime(2030, 1, 7, 9, 0, tzinfo=UTC),
            ),
            customer,
        )

        this_month = await enforcer.check_quota(tenant, QuotaResource.APPOINTMENTS_PER_MONTH)
        assert this_month.current == 1

        later = await enforcer.check_quota(
            tenant, QuotaResource.APPOINTMENTS_PER_MONTH, now=datetime(2099, 1, 15, tzinfo=UTC)
        )
        assert later.current == 0

    async def test_report_covers_every_resource(self, enforcer, tenant, location):
        report = await enforcer.usage_report(tenant)

        assert set(report) == set(QuotaResource)
        assert report[QuotaResource.LOCATIONS].current == 1
        assert report[QuotaResource.API_REQUESTS_PER_DAY].current == 0

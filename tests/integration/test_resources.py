"""Integration tests for location, employee and service creation."""

from decimal import Decimal
from uuid import uuid4

import pytest

from schedula.booking import ResourceService
from schedula.config.plans import PlanId
from schedula.core.context import TenantContext
from schedula.core.exceptions import (
    FeatureNotAvailableError,
    NotFoundError,
    QuotaExceededError,
    TenantContextRequiredError,
)
from schedula.db.models import EmployeeLocation, Location, Service, Tenant, TenantStatus
from schedula.quota import QuotaEnforcer


async def on_plan(
    db_session, tenant_row, plan: PlanId, features: dict | None = None
) -> TenantContext:
    tenant_row.plan = plan.value
    if features is not None:
        tenant_row.features = features
    await db_session.commit()
    return TenantContext.from_model(tenant_row)


@pytest.fixture
def resources(db_session, usage_counter) -> ResourceService:
    return ResourceService(db_session, QuotaEnforcer(db_session, usage_counter))


@pytest.mark.asyncio
class TestCreateLocation:
    """Location quotas and the multiple-locations feature."""

    async def test_first_location_on_free_plan(self, db_session, tenant_row, resources):
        tenant = await on_plan(db_session, tenant_row, PlanId.FREE)

        location = await resources.create_location(tenant, "Main Street", "1 Main St")

        assert location.tenant_id == tenant.tenant_id
        assert location.address == "1 Main St"

    async def test_second_location_on_free_plan_is_over_quota(
        self, db_session, tenant_row, resources
    ):
        tenant = await on_plan(db_session, tenant_row, PlanId.FREE)
        await resources.create_location(tenant, "Main Street")

        with pytest.raises(QuotaExceededError) as exc_info:
            await resources.create_location(tenant, "High Street")

        assert exc_info.value.resource == "locations"
        assert (exc_info.value.limit, exc_info.value.current) == (1, 1)
        assert len(await resources.list_locations(tenant)) == 1

    async def test_second_location_needs_feature(self, db_session, tenant_row, resources):
        tenant = await on_plan(
            db_session, tenant_row, PlanId.BASIC, features={"multipleLocations": False}
        )
        await resources.create_location(tenant, "Main Street")

        with pytest.raises(FeatureNotAvailableError) as exc_info:
            await resources.create_location(tenant, "High Street")

        assert exc_info.value.feature == "multipleLocations"
        assert exc_info.value.plan == "BASIC"

    async def test_basic_plan_allows_several(self, tenant, resources):
        await resources.create_location(tenant, "Main Street")
        await resources.create_location(tenant, "High Street")

        names = [loc.name for loc in await resources.list_locations(tenant)]
        assert sorted(names) == ["High Street", "Main Street"]

    async def test_unlimited_plan_allows_many(self, db_session, tenant_row, resources):
        tenant = await on_plan(db_session, tenant_row, PlanId.PRO)
        for i in range(4):
            await resources.create_location(tenant, f"Branch {i}")

        assert len(await resources.list_locations(tenant)) == 4

    async def test_requires_tenant(self, resources):
        with pytest.raises(TenantContextRequiredError):
            await resources.create_location(None, "Main Street")


@pytest.mark.asyncio
class TestCreateEmployee:
    """Employee quota and location assignment."""

    async def test_assigns_locations(self, db_session, tenant, resources, location):
        employee = await resources.create_employee(
            tenant, "Sam", "sam@acme.example", [location.location_id]
        )

        assignment = await db_session.get(
            EmployeeLocation, (employee.employee_id, location.location_id)
        )
        assert assignment is not None
        assert assignment.tenant_id == tenant.tenant_id

    async def test_unknown_location(self, tenant, resources):
        with pytest.raises(NotFoundError) as exc_info:
            await resources.create_employee(tenant, "Sam", location_ids=[uuid4()])
        assert exc_info.value.resource == "location"

    async def test_other_tenants_location(self, db_session, tenant, resources):
        other = Tenant(name="Other", subdomain="other", status=TenantStatus.ACTIVE.value)
        db_session.add(other)
        await db_session.commit()
        foreign = Location(tenant_id=other.tenant_id, name="Elsewhere")
        db_session.add(foreign)
        await db_session.commit()

        with pytest.raises(NotFoundError):
            await resources.create_employee(tenant, "Sam", location_ids=[foreign.location_id])

    async def test_free_plan_employee_quota(self, db_session, tenant_row, resources):
        tenant = await on_plan(db_session, tenant_row, PlanId.FREE)
        for i in range(5):
            await resources.create_employee(tenant, f"Employee {i}")

        with pytest.raises(QuotaExceededError) as exc_info:
            await resources.create_employee(tenant, "One too many")

        assert exc_info.value.resource == "employees"
        assert (exc_info.value.limit, exc_info.value.current) == (5, 5)


@pytest.mark.asyncio
class TestCreateService:
    """Service quota and duration."""

    async def test_create(self, tenant, resources):
        service = await resources.create_service(tenant, "Haircut", 30, Decimal("25.00"))

        assert service.duration_minutes == 30
        assert [s.service_id for s in await resources.list_services(tenant)] == [
            service.service_id
        ]

    async def test_duration_must_be_positive(self, tenant, resources):
        with pytest.raises(ValueError, match="positive"):
            await resources.create_service(tenant, "Nothing", 0)

    async def test_free_plan_service_quota(self, db_session, tenant_row, resources):
        tenant = await on_plan(db_session, tenant_row, PlanId.FREE)
        db_session.add_all(
            [
                Service(tenant_id=tenant.tenant_id, name=f"Service {i}", duration_minutes=30)
                for i in range(10)
            ]
        )
        await db_session.commit()

        with pytest.raises(QuotaExceededError) as exc_info:
            await resources.create_service(tenant, "Extra", 30)

        assert exc_info.value.resource == "services"
        assert exc_info.value.limit == 10

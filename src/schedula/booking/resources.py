"""Tenant resources: locations, employees and services.

Creating a resource is gated by the tenant's plan. The quota for the
resource is checked first; a second location additionally needs the
multiple-locations feature.

Usage:
    resources = ResourceService(db)
    location = await resources.create_location(tenant, "Main Street")
"""

from decimal import Decimal
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from schedula.config.plans import FeatureKey, QuotaResource
from schedula.core.context import TenantContext, require_tenant
from schedula.core.error_handling import store_errors
from schedula.db.models.resources import Employee, EmployeeLocation, Location, Service
from schedula.db.repositories import EmployeeRepository, LocationRepository, ServiceRepository
from schedula.quota import QuotaEnforcer

logger = structlog.get_logger(__name__)


class ResourceService:
    """Create and list a tenant's bookable resources."""

    def __init__(self, db: AsyncSession, quota: QuotaEnforcer | None = None):
        """Initialize the service.

        Args:
            db: Async SQLAlchemy session
            quota: Quota enforcer (default: one bound to the same session)
        """
        self.db = db
        self.quota = quota or QuotaEnforcer(db)
        self.locations = LocationRepository(db)
        self.employees = EmployeeRepository(db)
        self.services = ServiceRepository(db)

    async def create_location(
        self,
        tenant: TenantContext | None,
        name: str,
        address: str = "",
    ) -> Location:
        """Create a location.

        Raises:
            TenantContextRequiredError: If tenant is None
            QuotaExceededError: If the plan's location quota is used up
            FeatureNotAvailableError: If the tenant already has a location
                and multiple locations are not enabled
        """
        tenant = require_tenant(tenant)
        check = await self.quota.enforce_quota(tenant, QuotaResource.LOCATIONS)

        current = check.current
        if current is None:
            async with store_errors():
                current = await self.locations.count(tenant.tenant_id)
        if current >= 1:
            tenant.require_feature(FeatureKey.MULTIPLE_LOCATIONS)

        async with store_errors():
            location = await self.locations.create(
                Location(tenant_id=tenant.tenant_id, name=name, address=address)
            )
        logger.info("location_created", location_id=str(location.location_id))
        return location

    async def create_employee(
        self,
        tenant: TenantContext | None,
        name: str,
        email: str | None = None,
        location_ids: list[UUID] | None = None,
    ) -> Employee:
        """Create an employee, optionally assigned to locations.

        Raises:
            TenantContextRequiredError: If tenant is None
            QuotaExceededError: If the plan's employee quota is used up
            NotFoundError: If a location is not in the tenant
        """
        tenant = require_tenant(tenant)
        await self.quota.enforce_quota(tenant, QuotaResource.EMPLOYEES)

        async with store_errors():
            for location_id in location_ids or []:
                await self.locations.get_or_raise(tenant.tenant_id, location_id)

            employee = await self.employees.create(
                Employee(tenant_id=tenant.tenant_id, name=name, email=email), commit=False
            )
            for location_id in location_ids or []:
                self.db.add(
                    EmployeeLocation(
                        tenant_id=tenant.tenant_id,
                        employee_id=employee.employee_id,
                        location_id=location_id,
                    )
                )
            await self.db.commit()
            await self.db.refresh(employee)

        logger.info(
            "employee_created",
            employee_id=str(employee.employee_id),
            locations=len(location_ids or []),
        )
        return employee

    async def create_service(
        self,
        tenant: TenantContext | None,
        name: str,
        duration_minutes: int,
        price: Decimal | None = None,
    ) -> Service:
        """Create a bookable service.

        Raises:
            TenantContextRequiredError: If tenant is None
            ValueError: If the duration is not positive
            QuotaExceededError: If the plan's service quota is used up
        """
        tenant = require_tenant(tenant)
        if duration_minutes <= 0:
            raise ValueError("Service duration must be positive")
        await self.quota.enforce_quota(tenant, QuotaResource.SERVICES)

        async with store_errors():
            service = await self.services.create(
                Service(
                    tenant_id=tenant.tenant_id,
                    name=name,
                    duration_minutes=duration_minutes,
                    price=price,
                )
            )
        logger.info("service_created", service_id=str(service.service_id))
        return service

    async def list_locations(self, tenant: TenantContext | None) -> list[Location]:
        tenant = require_tenant(tenant)
        async with store_errors():
            return await self.locations.list_all(tenant.tenant_id)

    async def list_employees(self, tenant: TenantContext | None) -> list[Employee]:
        tenant = require_tenant(tenant)
        async with store_errors():
            return await self.employees.list_all(tenant.tenant_id)

    async def list_services(self, tenant: TenantContext | None) -> list[Service]:
        tenant = require_tenant(tenant)
        async with store_errors():
            return await self.services.list_all(tenant.tenant_id)

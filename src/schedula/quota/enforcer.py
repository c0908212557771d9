"""Quota Enforcer: plan limits against live tenant usage.

Limits come from the static plan table. Usage is recounted on every
call: database counts for stored resources, the Redis daily counter for
API requests. The check is advisory and is not atomic with the mutation
that follows it.

Usage:
    enforcer = QuotaEnforcer(db)
    await enforcer.enforce_quota(tenant, QuotaResource.LOCATIONS)
"""

from dataclasses import dataclass
from datetime import UTC, datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from schedula.config.plans import QuotaResource
from schedula.core.context import TenantContext, require_tenant
from schedula.core.error_handling import store_errors
from schedula.core.exceptions import QuotaExceededError
from schedula.core.redis import ApiUsageCounter
from schedula.db.repositories import (
    AppointmentRepository,
    EmployeeRepository,
    LocationRepository,
    ServiceRepository,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class QuotaCheck:
    """Result of a quota check.

    Attributes:
        resource: The resource that was checked
        allowed: Whether another unit may be created
        limit: Plan limit, None when unrestricted
        current: Current usage, None when not counted
    """

    resource: QuotaResource
    allowed: bool
    limit: int | None = None
    current: int | None = None


def month_start(tenant: TenantContext, now: datetime) -> datetime:
    """Start of the tenant-local calendar month containing now, in UTC."""
    local = now.astimezone(tenant.timezone)
    start = local.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return start.astimezone(UTC)


class QuotaEnforcer:
    """Check tenant usage against plan quotas."""

    def __init__(self, db: AsyncSession, usage_counter: ApiUsageCounter | None = None):
        """Initialize the enforcer.

        Args:
            db: Async SQLAlchemy session
            usage_counter: Daily API request counter (default: global Redis client)
        """
        self.db = db
        self.usage_counter = usage_counter or ApiUsageCounter()
        self.locations = LocationRepository(db)
        self.employees = EmployeeRepository(db)
        self.services = ServiceRepository(db)
        self.appointments = AppointmentRepository(db)

    async def current_usage(
        self,
        tenant: TenantContext,
        resource: QuotaResource,
        now: datetime | None = None,
    ) -> int:
        """Count a tenant's current usage of a resource."""
        now = now or datetime.now(UTC)

        if resource == QuotaResource.API_REQUESTS_PER_DAY:
            return await self.usage_counter.get(tenant.tenant_id, now.date())

        async with store_errors():
            if resource == QuotaResource.LOCATIONS:
                return await self.locations.count(tenant.tenant_id)
            if resource == QuotaResource.EMPLOYEES:
                return await self.employees.count(tenant.tenant_id)
            if resource == QuotaResource.SERVICES:
                return await self.services.count(tenant.tenant_id)
            return await self.appointments.count_created_since(
                tenant.tenant_id, month_start(tenant, now)
            )

    async def check_quota(
        self,
        tenant: TenantContext | None,
        resource: QuotaResource,
        now: datetime | None = None,
    ) -> QuotaCheck:
        """Check whether the tenant has room for one more unit.

        Args:
            tenant: Resolved tenant
            resource: Resource about to be created or consumed
            now: Reference time for monthly and daily windows

        Returns:
            QuotaCheck; unrestricted resources are allowed without counting

        Raises:
            TenantContextRequiredError: If tenant is None
        """
        tenant = require_tenant(tenant)
        limit = tenant.plan_config.quotas.limit_for(resource)
        if limit is None:
            return QuotaCheck(resource=resource, allowed=True)

        current = await self.current_usage(tenant, resource, now)
        return QuotaCheck(resource=resource, allowed=current < limit, limit=limit, current=current)

    async def enforce_quota(
        self,
        tenant: TenantContext | None,
        resource: QuotaResource,
        now: datetime | None = None,
    ) -> QuotaCheck:
        """Check a quota and raise when it is exhausted.

        Raises:
            QuotaExceededError: If current usage has reached the limit
        """
        check = await self.check_quota(tenant, resource, now)
        if not check.allowed:
            logger.info(
                "quota_exceeded",
                resource=resource.value,
                limit=check.limit,
                current=check.current,
            )
            raise QuotaExceededError(resource.value, check.limit, check.current)
        return check

    async def usage_report(
        self,
        tenant: TenantContext | None,
        now: datetime | None = None,
    ) -> dict[QuotaResource, QuotaCheck]:
        """Usage against every quota resource of the tenant's plan."""
        tenant = require_tenant(tenant)
        return {resource: await self.check_quota(tenant, resource, now) for resource in QuotaResource}

"""Repositories for locations, employees and services."""

from uuid import UUID

from sqlalchemy import func, select, update

from schedula.db.models.base import utcnow
from schedula.db.models.resources import Employee, Location, Service

from .base import TenantScopedRepository


class LocationRepository(TenantScopedRepository[Location]):
    resource_name = "location"


class EmployeeRepository(TenantScopedRepository[Employee]):
    resource_name = "employee"

    async def lock(self, tenant_id: UUID, employee_id: UUID) -> bool:
        """Take the booking write lock on an employee row.

        Issues an UPDATE so the lock is held until the surrounding
        transaction ends: a row lock on PostgreSQL, the database write
        lock on SQLite.

        Returns:
            True if the employee exists in this tenant
        """
        result = await self.db.execute(
            update(Employee)
            .where(Employee.employee_id == employee_id, Employee.tenant_id == tenant_id)
            .values(updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0


class ServiceRepository(TenantScopedRepository[Service]):
    resource_name = "service"

    async def max_duration(self, tenant_id: UUID) -> int:
        """Longest service duration in minutes for a tenant (0 if none)."""
        result = await self.db.execute(
            select(func.max(Service.duration_minutes)).where(Service.tenant_id == tenant_id)
        )
        return result.scalar() or 0

"""Schedule Store: weekly working-hour blocks per employee and location.

Reads serve the availability calculator. Writes keep the invariant that
blocks of the same type for one (employee, location, weekday) never
overlap.
"""

from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from schedula.core.context import TenantContext, require_tenant
from schedula.core.error_handling import store_errors
from schedula.core.exceptions import InvalidScheduleError, ScheduleOverlapError
from schedula.db.models.schedule import BlockType, Schedule, Weekday, parse_hhmm
from schedula.db.repositories import (
    EmployeeRepository,
    LocationRepository,
    ScheduleRepository,
)

logger = structlog.get_logger(__name__)


class ScheduleStore:
    """Tenant-scoped access to schedule blocks."""

    def __init__(self, db: AsyncSession):
        """Initialize the store.

        Args:
            db: Async SQLAlchemy session
        """
        self.db = db
        self.schedules = ScheduleRepository(db)
        self.employees = EmployeeRepository(db)
        self.locations = LocationRepository(db)

    async def find_schedule_for_weekday(
        self,
        tenant: TenantContext | None,
        employee_id: UUID,
        location_id: UUID,
        weekday: Weekday,
        block_type: BlockType = BlockType.WORKING_HOURS,
    ) -> list[Schedule]:
        """Blocks of one type for an employee at a location on a weekday.

        Returns:
            Blocks ordered by start time (empty if none)

        Raises:
            TenantContextRequiredError: If tenant is None
        """
        tenant = require_tenant(tenant)
        async with store_errors():
            return await self.schedules.list_blocks(
                tenant.tenant_id,
                employee_id=employee_id,
                location_id=location_id,
                weekday=weekday,
                block_type=block_type,
            )

    async def list_schedules(
        self,
        tenant: TenantContext | None,
        *,
        employee_id: UUID | None = None,
        location_id: UUID | None = None,
        weekday: Weekday | None = None,
        block_type: BlockType | None = None,
    ) -> list[Schedule]:
        tenant = require_tenant(tenant)
        async with store_errors():
            return await self.schedules.list_blocks(
                tenant.tenant_id,
                employee_id=employee_id,
                location_id=location_id,
                weekday=weekday,
                block_type=block_type,
            )

    async def add_schedule(
        self,
        tenant: TenantContext | None,
        *,
        employee_id: UUID,
        location_id: UUID,
        weekday: Weekday,
        start_time: str,
        end_time: str,
        block_type: BlockType = BlockType.WORKING_HOURS,
    ) -> Schedule:
        """Create a schedule block.

        Args:
            tenant: Resolved tenant
            employee_id: Employee the block belongs to
            location_id: Location the block applies to
            weekday: Day of the week
            start_time: Wall-clock start as HH:MM
            end_time: Wall-clock end as HH:MM
            block_type: Kind of block

        Returns:
            The created Schedule

        Raises:
            ValueError: If a time is not HH:MM
            NotFoundError: If the employee or location is not in the tenant
            InvalidScheduleError: If start is not before end
            ScheduleOverlapError: If the block overlaps one of the same type
        """
        tenant = require_tenant(tenant)
        start, end = parse_hhmm(start_time), parse_hhmm(end_time)
        if start >= end:
            raise InvalidScheduleError(start_time, end_time)

        async with store_errors():
            await self.employees.get_or_raise(tenant.tenant_id, employee_id)
            await self.locations.get_or_raise(tenant.tenant_id, location_id)

            existing = await self.schedules.list_blocks(
                tenant.tenant_id,
                employee_id=employee_id,
                location_id=location_id,
                weekday=weekday,
                block_type=block_type,
            )
            for block in existing:
                if block.start < end and block.end > start:
                    raise ScheduleOverlapError(block.schedule_id)

            schedule = await self.schedules.create(
                Schedule(
                    tenant_id=tenant.tenant_id,
                    employee_id=employee_id,
                    location_id=location_id,
                    weekday=weekday.value,
                    start_time=start_time,
                    end_time=end_time,
                    block_type=block_type.value,
                )
            )

        logger.info(
            "schedule_created",
            schedule_id=str(schedule.schedule_id),
            employee_id=str(employee_id),
            weekday=weekday.value,
            window=f"{start_time}-{end_time}",
        )
        return schedule

    async def remove_schedule(self, tenant: TenantContext | None, schedule_id: UUID) -> None:
        """Delete a schedule block.

        Raises:
            NotFoundError: If the block is not in the tenant
        """
        tenant = require_tenant(tenant)
        async with store_errors():
            schedule = await self.schedules.get_or_raise(tenant.tenant_id, schedule_id)
            await self.schedules.delete(schedule)
        logger.info("schedule_removed", schedule_id=str(schedule_id))

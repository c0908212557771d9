"""Schedule block queries."""

from uuid import UUID

from schedula.db.models.schedule import BlockType, Schedule, Weekday

from .base import TenantScopedRepository


class ScheduleRepository(TenantScopedRepository[Schedule]):
    resource_name = "schedule"

    async def list_blocks(
        self,
        tenant_id: UUID,
        *,
        employee_id: UUID | None = None,
        location_id: UUID | None = None,
        weekday: Weekday | None = None,
        block_type: BlockType | None = None,
    ) -> list[Schedule]:
        """List a tenant's blocks matching optional filters, ordered by start time."""
        stmt = self.scoped(tenant_id)
        if employee_id is not None:
            stmt = stmt.where(Schedule.employee_id == employee_id)
        if location_id is not None:
            stmt = stmt.where(Schedule.location_id == location_id)
        if weekday is not None:
            stmt = stmt.where(Schedule.weekday == weekday.value)
        if block_type is not None:
            stmt = stmt.where(Schedule.block_type == block_type.value)
        result = await self.db.execute(stmt.order_by(Schedule.weekday, Schedule.start_time))
        return list(result.scalars().all())

"""Appointment queries: busy intervals, conflicts, counts and sweeps."""

from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import select, update

from schedula.db.models.appointment import Appointment, AppointmentStatus

from .base import TenantScopedRepository


class AppointmentRepository(TenantScopedRepository[Appointment]):
    resource_name = "appointment"

    async def list_scheduled_between(
        self,
        tenant_id: UUID,
        employee_id: UUID,
        start: datetime,
        end: datetime,
        max_duration_minutes: int,
    ) -> list[Appointment]:
        """SCHEDULED appointments of an employee overlapping [start, end).

        Appointments that began before start are included while they are
        still running, bounded by the tenant's longest service.
        """
        stmt = (
            self.scoped(tenant_id)
            .where(
                Appointment.employee_id == employee_id,
                Appointment.status == AppointmentStatus.SCHEDULED.value,
                Appointment.start_time > start - timedelta(minutes=max_duration_minutes),
                Appointment.start_time < end,
            )
            .order_by(Appointment.start_time)
        )
        result = await self.db.execute(stmt)
        return [
            appointment
            for appointment in result.scalars().all()
            if appointment.end_time > start
        ]

    async def find_overlapping(
        self,
        tenant_id: UUID,
        employee_id: UUID,
        start: datetime,
        end: datetime,
        max_duration_minutes: int,
        exclude_id: UUID | None = None,
    ) -> list[Appointment]:
        """SCHEDULED appointments of an employee overlapping [start, end).

        End times are derived from each appointment's service, so the query
        only bounds candidates by the tenant's longest service and the
        half-open overlap test runs on the loaded rows.

        Args:
            tenant_id: Owning tenant
            employee_id: Employee whose calendar is checked
            start: Start of the proposed interval (UTC)
            end: End of the proposed interval (UTC)
            max_duration_minutes: Longest service duration in the tenant
            exclude_id: Appointment to ignore, used when rescheduling

        Returns:
            Appointments whose interval intersects the proposed one
        """
        stmt = self.scoped(tenant_id).where(
            Appointment.employee_id == employee_id,
            Appointment.status == AppointmentStatus.SCHEDULED.value,
            Appointment.start_time < end,
            Appointment.start_time > start - timedelta(minutes=max_duration_minutes),
        )
        if exclude_id is not None:
            stmt = stmt.where(Appointment.appointment_id != exclude_id)
        result = await self.db.execute(stmt)
        return [
            appointment
            for appointment in result.scalars().all()
            if appointment.start_time < end and appointment.end_time > start
        ]

    async def count_created_since(self, tenant_id: UUID, since: datetime) -> int:
        """Appointments created at or after a point in time."""
        return await self.count(tenant_id, Appointment.created_at >= since)

    async def search(
        self,
        tenant_id: UUID,
        *,
        location_id: UUID | None = None,
        employee_id: UUID | None = None,
        status: AppointmentStatus | None = None,
        start_from: datetime | None = None,
        start_to: datetime | None = None,
        user_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Appointment]:
        """List a tenant's appointments matching optional filters.

        Args:
            tenant_id: Owning tenant
            location_id: Only appointments at this location
            employee_id: Only appointments with this employee
            status: Only appointments in this status
            start_from: Only appointments starting at or after this time
            start_to: Only appointments starting before this time
            user_id: Only appointments booked by this customer
            limit: Maximum number of rows (max 1000)
            offset: Pagination offset

        Returns:
            Appointments ordered by start time
        """
        stmt = self.scoped(tenant_id)
        if location_id is not None:
            stmt = stmt.where(Appointment.location_id == location_id)
        if employee_id is not None:
            stmt = stmt.where(Appointment.employee_id == employee_id)
        if status is not None:
            stmt = stmt.where(Appointment.status == status.value)
        if start_from is not None:
            stmt = stmt.where(Appointment.start_time >= start_from)
        if start_to is not None:
            stmt = stmt.where(Appointment.start_time < start_to)
        if user_id is not None:
            stmt = stmt.where(Appointment.user_id == user_id)

        stmt = (
            stmt.order_by(Appointment.start_time, Appointment.appointment_id)
            .limit(min(limit, 1000))
            .offset(offset)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_past_due_ids(
        self,
        tenant_id: UUID,
        started_before: datetime,
        started_after: datetime,
        limit: int,
    ) -> list[UUID]:
        """IDs of SCHEDULED appointments that started inside a window."""
        stmt = (
            select(Appointment.appointment_id)
            .where(
                Appointment.tenant_id == tenant_id,
                Appointment.status == AppointmentStatus.SCHEDULED.value,
                Appointment.start_time < started_before,
                Appointment.start_time >= started_after,
            )
            .order_by(Appointment.start_time)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def cancel_many(
        self,
        tenant_id: UUID,
        appointment_ids: list[UUID],
        *,
        reason: str,
        canceled_by: str,
    ) -> int:
        """Cancel appointments that are still SCHEDULED.

        Returns:
            Number of rows updated
        """
        if not appointment_ids:
            return 0
        result = await self.db.execute(
            update(Appointment)
            .where(
                Appointment.tenant_id == tenant_id,
                Appointment.appointment_id.in_(appointment_ids),
                Appointment.status == AppointmentStatus.SCHEDULED.value,
            )
            .values(
                status=AppointmentStatus.CANCELLED.value,
                cancel_reason=reason,
                canceled_by=canceled_by,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

"""Booking Transaction Manager.

Owns the system's correctness guarantee: no two SCHEDULED appointments of
one employee ever overlap, even under concurrent booking attempts.

Each write runs as one unit of work on its own session. The unit first
takes a write lock on the employee row, so overlapping bookings for the
same employee are serialized and the later one sees the earlier one's
committed appointment when it checks for conflicts. Leaving the unit by
error, timeout or cancellation rolls the session back.

Usage:
    bookings = BookingService(session_factory)
    appointment = await bookings.book(tenant, BookingRequest(...), principal)
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta
from typing import TypeVar
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from schedula.config.settings import Settings, get_settings
from schedula.core.context import ANONYMOUS, Principal, TenantContext, require_tenant
from schedula.core.error_handling import store_errors, with_store_retry
from schedula.core.exceptions import (
    AnonymousBookingError,
    BookingConflictError,
    DeleteNotAllowedError,
    InvalidStatusTransitionError,
    NotFoundError,
    RescheduleWindowError,
    StoreUnavailableError,
)
from schedula.db.models.appointment import ALLOWED_TRANSITIONS, Appointment, AppointmentStatus
from schedula.db.models.resources import Service
from schedula.db.repositories import (
    AppointmentRepository,
    EmployeeRepository,
    LocationRepository,
    ServiceRepository,
)

from .availability import local_day_bounds
from .types import AppointmentFilters, AppointmentUpdate, BookingRequest

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class BookingService:
    """Create, reschedule, cancel and delete appointments.

    Attributes:
        session_factory: Factory producing one session per unit of work
        settings: Timeouts, retry and anonymous-booking policy
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings | None = None,
    ):
        self.session_factory = session_factory
        self.settings = settings or get_settings()

    async def _run(
        self,
        operation: Callable[[], Awaitable[T]],
        timeout: float | None,
    ) -> T:
        """Run a unit of work with store retries under an overall deadline.

        Raises:
            StoreUnavailableError: If retries are exhausted or the deadline passes
        """
        deadline = timeout if timeout is not None else self.settings.STORE_TIMEOUT_SECONDS
        try:
            return await asyncio.wait_for(with_store_retry(operation), deadline)
        except TimeoutError as e:
            logger.warning("store_timeout", timeout_seconds=deadline)
            raise StoreUnavailableError("Data store operation timed out") from e

    # =========================================================================
    # Booking
    # =========================================================================

    async def book(
        self,
        tenant: TenantContext | None,
        request: BookingRequest,
        principal: Principal | None = None,
        *,
        timeout: float | None = None,
    ) -> Appointment:
        """Create a SCHEDULED appointment if the slot is free.

        Args:
            tenant: Resolved tenant
            request: Service, employee, location and start time
            principal: Authenticated customer (anonymous if None)
            timeout: Deadline in seconds (default: STORE_TIMEOUT_SECONDS)

        Returns:
            The created Appointment

        Raises:
            TenantContextRequiredError: If tenant is None
            AnonymousBookingError: If anonymous bookings are disabled
            NotFoundError: If the employee, service or location is not in the tenant
            BookingConflictError: If the slot overlaps a scheduled appointment
            StoreUnavailableError: If the store stays unavailable or times out
        """
        tenant = require_tenant(tenant)
        principal = principal or ANONYMOUS

        if principal.is_anonymous:
            if not self.settings.ALLOW_ANONYMOUS_BOOKINGS:
                raise AnonymousBookingError()
            logger.warning(
                "anonymous_booking",
                employee_id=str(request.employee_id),
                booked_by=principal.booked_by,
            )

        appointment = await self._run(
            lambda: self._book_once(tenant, request, principal), timeout
        )

        logger.info(
            "booking_created",
            appointment_id=str(appointment.appointment_id),
            employee_id=str(appointment.employee_id),
            start_time=appointment.start_time.isoformat(),
            user_id=appointment.user_id,
        )
        return appointment

    async def _book_once(
        self,
        tenant: TenantContext,
        request: BookingRequest,
        principal: Principal,
    ) -> Appointment:
        async with store_errors(), self.session_factory() as session, session.begin():
            service = await self._lock_and_check(
                session,
                tenant,
                employee_id=request.employee_id,
                service_id=request.service_id,
                start_time=request.start_time,
            )
            await LocationRepository(session).get_or_raise(tenant.tenant_id, request.location_id)

            appointment = Appointment(
                tenant_id=tenant.tenant_id,
                service_id=service.service_id,
                employee_id=request.employee_id,
                location_id=request.location_id,
                start_time=request.start_time.astimezone(UTC),
                status=AppointmentStatus.SCHEDULED.value,
                booked_by=principal.booked_by,
                booked_by_name=principal.booked_by_name,
                user_id=principal.user_id,
                payment_status=request.payment_status.value,
                payment_amount=request.payment_amount,
            )
            appointment.service = service
            return await AppointmentRepository(session).create(appointment, commit=False)

    async def _lock_and_check(
        self,
        session: AsyncSession,
        tenant: TenantContext,
        *,
        employee_id: UUID,
        service_id: UUID,
        start_time: datetime,
        exclude_id: UUID | None = None,
    ) -> Service:
        """Lock the employee and reject the interval if it is taken.

        Returns:
            The Service whose duration defines the interval

        Raises:
            NotFoundError: If the employee or service is not in the tenant
            BookingConflictError: If a scheduled appointment overlaps
        """
        if not await EmployeeRepository(session).lock(tenant.tenant_id, employee_id):
            raise NotFoundError("employee", employee_id)

        services = ServiceRepository(session)
        service = await services.get_or_raise(tenant.tenant_id, service_id)
        start = start_time.astimezone(UTC)
        end = start + timedelta(minutes=service.duration_minutes)

        conflicts = await AppointmentRepository(session).find_overlapping(
            tenant.tenant_id,
            employee_id,
            start,
            end,
            max_duration_minutes=await services.max_duration(tenant.tenant_id),
            exclude_id=exclude_id,
        )
        if conflicts:
            logger.info(
                "booking_conflict",
                employee_id=str(employee_id),
                start_time=start.isoformat(),
                conflicting=[str(a.appointment_id) for a in conflicts],
            )
            raise BookingConflictError(employee_id, [a.appointment_id for a in conflicts])
        return service

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_appointment(self, tenant: TenantContext | None, appointment_id: UUID) -> Appointment:
        """Get one appointment of the tenant.

        Raises:
            NotFoundError: If the appointment is not in the tenant
        """
        tenant = require_tenant(tenant)
        async with store_errors(), self.session_factory() as session:
            return await AppointmentRepository(session).get_or_raise(tenant.tenant_id, appointment_id)

    async def list_appointments(
        self,
        tenant: TenantContext | None,
        principal: Principal | None = None,
        filters: AppointmentFilters | None = None,
    ) -> list[Appointment]:
        """List appointments, restricted to the caller's own unless admin.

        Args:
            tenant: Resolved tenant
            principal: Caller; non-admins only see appointments they booked
            filters: Optional location, employee, status and date filters

        Returns:
            Appointments ordered by start time
        """
        tenant = require_tenant(tenant)
        principal = principal or ANONYMOUS
        filters = filters or AppointmentFilters()

        start_from, start_to = filters.start_from, filters.start_to
        if filters.day is not None:
            day_start, day_end = local_day_bounds(filters.day, tenant.timezone)
            start_from = max(start_from, day_start) if start_from else day_start
            start_to = min(start_to, day_end) if start_to else day_end

        async with store_errors(), self.session_factory() as session:
            return await AppointmentRepository(session).search(
                tenant.tenant_id,
                location_id=filters.location_id,
                employee_id=filters.employee_id,
                status=filters.status,
                start_from=start_from,
                start_to=start_to,
                user_id=None if principal.is_admin else principal.user_id,
                limit=filters.limit,
                offset=filters.offset,
            )

    # =========================================================================
    # Updates
    # =========================================================================

    async def update_appointment(
        self,
        tenant: TenantContext | None,
        appointment_id: UUID,
        update: AppointmentUpdate,
        principal: Principal | None = None,
        *,
        now: datetime | None = None,
        timeout: float | None = None,
    ) -> Appointment:
        """Reschedule, change status or record payment for an appointment.

        Args:
            tenant: Resolved tenant
            appointment_id: Appointment to change
            update: Fields to change
            principal: Caller, recorded as canceller on cancellation
            now: Reference time (default: current UTC time)
            timeout: Deadline in seconds (default: STORE_TIMEOUT_SECONDS)

        Returns:
            The updated Appointment

        Raises:
            NotFoundError: If the appointment is not in the tenant
            RescheduleWindowError: If rescheduling too close to the start
            InvalidStatusTransitionError: If the status change is not allowed
            BookingConflictError: If the new time overlaps another appointment
        """
        tenant = require_tenant(tenant)
        principal = principal or ANONYMOUS
        now = now or datetime.now(UTC)

        appointment = await self._run(
            lambda: self._update_once(tenant, appointment_id, update, principal, now), timeout
        )
        logger.info(
            "appointment_updated",
            appointment_id=str(appointment_id),
            status=appointment.status,
            fields=sorted(update.model_dump(exclude_none=True)),
        )
        return appointment

    async def _update_once(
        self,
        tenant: TenantContext,
        appointment_id: UUID,
        update: AppointmentUpdate,
        principal: Principal,
        now: datetime,
    ) -> Appointment:
        async with store_errors(), self.session_factory() as session, session.begin():
            appointments = AppointmentRepository(session)
            appointment = await appointments.get_or_raise(tenant.tenant_id, appointment_id)
            current = AppointmentStatus(appointment.status)

            if update.start_time is not None and current != AppointmentStatus.CANCELLED:
                hours_until_start = (appointment.start_time - now).total_seconds() / 3600
                limit = tenant.reschedule_limit_hours
                if hours_until_start < limit:
                    raise RescheduleWindowError(limit, hours_until_start)

            target = update.status or current
            if target != current and target not in ALLOWED_TRANSITIONS[current]:
                raise InvalidStatusTransitionError(current.value, target.value)

            changes: dict = {}
            if update.start_time is not None:
                new_start = update.start_time.astimezone(UTC)
                if new_start != appointment.start_time and target == AppointmentStatus.SCHEDULED:
                    await self._lock_and_check(
                        session,
                        tenant,
                        employee_id=appointment.employee_id,
                        service_id=appointment.service_id,
                        start_time=new_start,
                        exclude_id=appointment.appointment_id,
                    )
                changes["start_time"] = new_start

            if target != current:
                changes["status"] = target.value
                if target == AppointmentStatus.FULFILLED:
                    changes["fulfillment_date"] = now
                elif target == AppointmentStatus.CANCELLED:
                    changes["canceled_by"] = principal.booked_by
                    changes["cancel_reason"] = update.cancel_reason

            if update.payment_status is not None:
                changes["payment_status"] = update.payment_status.value
            if update.payment_amount is not None:
                changes["payment_amount"] = update.payment_amount

            return await appointments.update(appointment, changes, commit=False)

    async def delete_appointment(
        self,
        tenant: TenantContext | None,
        appointment_id: UUID,
        *,
        now: datetime | None = None,
        timeout: float | None = None,
    ) -> None:
        """Delete an appointment that is cancelled or already past.

        Raises:
            NotFoundError: If the appointment is not in the tenant
            DeleteNotAllowedError: If the appointment is active and upcoming
        """
        tenant = require_tenant(tenant)
        now = now or datetime.now(UTC)

        await self._run(lambda: self._delete_once(tenant, appointment_id, now), timeout)
        logger.info("appointment_deleted", appointment_id=str(appointment_id))

    async def _delete_once(self, tenant: TenantContext, appointment_id: UUID, now: datetime) -> None:
        async with store_errors(), self.session_factory() as session, session.begin():
            appointments = AppointmentRepository(session)
            appointment = await appointments.get_or_raise(tenant.tenant_id, appointment_id)

            is_cancelled = appointment.status == AppointmentStatus.CANCELLED.value
            if not is_cancelled and appointment.start_time >= now:
                raise DeleteNotAllowedError(appointment_id)

            await appointments.delete(appointment, commit=False)

"""Availability Calculator.

Produces the bookable slots for a service with one employee at one
location on a calendar day. The day is the tenant's local wall-clock day;
slots are reported in UTC with local HH:MM labels.

Usage:
    calculator = AvailabilityCalculator(db)
    slots = await calculator.compute_slots(tenant, service_id, location_id, employee_id, day)
    for slot in slots:
        print(slot.start_label, slot.end_label)
"""

from collections.abc import Iterator, Sequence
from datetime import UTC, date, datetime, time, timedelta
from uuid import UUID
from zoneinfo import ZoneInfo

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from schedula.config.settings import Settings, get_settings
from schedula.core.context import TenantContext, require_tenant
from schedula.core.error_handling import store_errors
from schedula.core.exceptions import NotFoundError
from schedula.db.models.schedule import Weekday
from schedula.db.repositories import AppointmentRepository, ServiceRepository

from .schedules import ScheduleStore
from .types import TimeSlot

logger = structlog.get_logger(__name__)

Interval = tuple[datetime, datetime]


def local_day_bounds(day: date, tz: ZoneInfo) -> Interval:
    """UTC bounds [start, end) of a calendar day in a timezone."""
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(UTC), end.astimezone(UTC)


def local_to_utc(day: date, wall_clock: time, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, wall_clock, tzinfo=tz).astimezone(UTC)


class AvailableSlots:
    """Lazy, restartable sequence of free slots.

    Each iteration walks the working windows from the start again; nothing
    is cached between iterations.
    """

    def __init__(
        self,
        windows: Sequence[Interval],
        busy: Sequence[Interval],
        duration: timedelta,
        step: timedelta,
        tz: ZoneInfo,
    ):
        self.windows = tuple(windows)
        self.busy = tuple(busy)
        self.duration = duration
        self.step = step
        self.tz = tz

    def __iter__(self) -> Iterator[TimeSlot]:
        for window_start, window_end in self.windows:
            candidate = window_start
            while candidate + self.duration <= window_end:
                candidate_end = candidate + self.duration
                if not self._overlaps_busy(candidate, candidate_end):
                    yield TimeSlot(
                        start=candidate,
                        end=candidate_end,
                        start_label=self._label(candidate),
                        end_label=self._label(candidate_end),
                    )
                candidate += self.step

    def _overlaps_busy(self, start: datetime, end: datetime) -> bool:
        return any(start < busy_end and end > busy_start for busy_start, busy_end in self.busy)

    def _label(self, moment: datetime) -> str:
        return moment.astimezone(self.tz).strftime("%H:%M")

    def __repr__(self) -> str:
        return (
            f"<AvailableSlots(windows={len(self.windows)}, busy={len(self.busy)}, "
            f"duration={self.duration})>"
        )


class AvailabilityCalculator:
    """Compute free slots from working hours and existing bookings."""

    def __init__(self, db: AsyncSession, settings: Settings | None = None):
        """Initialize the calculator.

        Args:
            db: Async SQLAlchemy session
            settings: Settings providing the scan step (default: global)
        """
        self.settings = settings or get_settings()
        self.services = ServiceRepository(db)
        self.appointments = AppointmentRepository(db)
        self.schedules = ScheduleStore(db)

    async def compute_slots(
        self,
        tenant: TenantContext | None,
        service_id: UUID,
        location_id: UUID,
        employee_id: UUID,
        day: date,
    ) -> AvailableSlots:
        """Compute bookable slots for a local calendar day.

        Args:
            tenant: Resolved tenant
            service_id: Service whose duration sets the slot length
            location_id: Location of the working hours
            employee_id: Employee to book
            day: Calendar day in the tenant's timezone

        Returns:
            AvailableSlots in chronological order

        Raises:
            TenantContextRequiredError: If tenant is None
            NotFoundError: If the service or the day's working hours are missing
        """
        tenant = require_tenant(tenant)
        tz = tenant.timezone

        async with store_errors():
            service = await self.services.get_or_raise(tenant.tenant_id, service_id)

        weekday = Weekday.from_iso_weekday(day.isoweekday())
        blocks = await self.schedules.find_schedule_for_weekday(
            tenant, employee_id, location_id, weekday
        )
        if not blocks:
            raise NotFoundError("schedule", message="No schedule found for this day")

        day_start, day_end = local_day_bounds(day, tz)
        async with store_errors():
            max_duration = await self.services.max_duration(tenant.tenant_id)
            booked = await self.appointments.list_scheduled_between(
                tenant.tenant_id, employee_id, day_start, day_end, max_duration
            )

        windows = [
            (local_to_utc(day, block.start, tz), local_to_utc(day, block.end, tz))
            for block in blocks
        ]
        busy = [(appointment.start_time, appointment.end_time) for appointment in booked]

        logger.debug(
            "availability_computed",
            employee_id=str(employee_id),
            service_id=str(service_id),
            day=day.isoformat(),
            weekday=weekday.value,
            windows=len(windows),
            busy=len(busy),
        )

        return AvailableSlots(
            windows=windows,
            busy=busy,
            duration=timedelta(minutes=service.duration_minutes),
            step=timedelta(minutes=self.settings.SLOT_SCAN_STEP_MINUTES),
            tz=tz,
        )

"""Value types for availability and bookings."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from schedula.db.models.appointment import AppointmentStatus, PaymentStatus


def _require_aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    return value


class TimeSlot(BaseModel):
    """A bookable interval [start, end).

    Attributes:
        start: Absolute start (UTC)
        end: Absolute end (UTC)
        start_label: Local wall-clock start as HH:MM
        end_label: Local wall-clock end as HH:MM
    """

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime
    start_label: str
    end_label: str

    def overlaps(self, other: "TimeSlot") -> bool:
        return self.start < other.end and other.start < self.end


class BookingRequest(BaseModel):
    """Canonical input for creating an appointment."""

    model_config = ConfigDict(frozen=True)

    service_id: UUID
    employee_id: UUID
    location_id: UUID
    start_time: datetime
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    payment_amount: Decimal | None = None

    @field_validator("start_time")
    @classmethod
    def start_time_must_be_aware(cls, value: datetime | None) -> datetime | None:
        return _require_aware(value)


class AppointmentUpdate(BaseModel):
    """Partial update of an appointment. Unset fields are left alone."""

    model_config = ConfigDict(frozen=True)

    start_time: datetime | None = None
    status: AppointmentStatus | None = None
    cancel_reason: str | None = Field(default=None, max_length=1000)
    payment_status: PaymentStatus | None = None
    payment_amount: Decimal | None = None

    @field_validator("start_time")
    @classmethod
    def start_time_must_be_aware(cls, value: datetime | None) -> datetime | None:
        return _require_aware(value)


class AppointmentFilters(BaseModel):
    """Filters for listing appointments.

    ``day`` is a calendar day in the tenant's timezone and is combined
    with ``start_from``/``start_to`` when both are given.
    """

    model_config = ConfigDict(frozen=True)

    location_id: UUID | None = None
    employee_id: UUID | None = None
    status: AppointmentStatus | None = None
    day: date | None = None
    start_from: datetime | None = None
    start_to: datetime | None = None
    limit: int = Field(default=100, ge=1, le=1000)
    offset: int = Field(default=0, ge=0)

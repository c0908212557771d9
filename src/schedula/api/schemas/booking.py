"""Request and response schemas for availability and appointments."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from schedula.booking import AvailableSlots, BookingRequest, TimeSlot
from schedula.booking.types import AppointmentUpdate
from schedula.db.models.appointment import Appointment, AppointmentStatus, PaymentStatus


def _alias(name: str, camel: str) -> AliasChoices:
    return AliasChoices(name, camel)


class AppointmentCreateRequest(BaseModel):
    """Request to book an appointment.

    Accepts snake_case and camelCase field names and maps both onto the
    canonical BookingRequest.
    """

    service_id: UUID = Field(validation_alias=_alias("service_id", "serviceId"))
    employee_id: UUID = Field(validation_alias=_alias("employee_id", "employeeId"))
    location_id: UUID = Field(validation_alias=_alias("location_id", "locationId"))
    start_time: datetime = Field(
        validation_alias=_alias("start_time", "startTime"),
        description="Absolute start time with timezone offset",
    )
    payment_status: PaymentStatus = Field(
        default=PaymentStatus.UNPAID,
        validation_alias=_alias("payment_status", "paymentStatus"),
    )
    payment_amount: Decimal | None = Field(
        default=None, validation_alias=_alias("payment_amount", "paymentAmount")
    )

    model_config = {"json_schema_extra": {"example": {
        "service_id": "7c2b8e0a-1f4d-4e55-9a0e-6f1c2d3b4a51",
        "employee_id": "5f0c7d2e-8a61-4c43-9a57-0e4f1f0d8b6a",
        "location_id": "0e9a4c1b-3d2f-4b6a-8c7e-1a2b3c4d5e6f",
        "start_time": "2026-03-02T09:30:00Z",
    }}}

    def to_booking_request(self) -> BookingRequest:
        return BookingRequest(
            service_id=self.service_id,
            employee_id=self.employee_id,
            location_id=self.location_id,
            start_time=self.start_time,
            payment_status=self.payment_status,
            payment_amount=self.payment_amount,
        )


class AppointmentUpdateRequest(BaseModel):
    """Partial appointment update. Omitted fields are left unchanged."""

    start_time: datetime | None = Field(
        default=None, validation_alias=_alias("start_time", "startTime")
    )
    status: AppointmentStatus | None = None
    cancel_reason: str | None = Field(
        default=None,
        max_length=1000,
        validation_alias=_alias("cancel_reason", "cancelReason"),
    )
    payment_status: PaymentStatus | None = Field(
        default=None, validation_alias=_alias("payment_status", "paymentStatus")
    )
    payment_amount: Decimal | None = Field(
        default=None, validation_alias=_alias("payment_amount", "paymentAmount")
    )

    def to_update(self) -> AppointmentUpdate:
        return AppointmentUpdate(**self.model_dump())


class AppointmentResponse(BaseModel):
    """A booked appointment."""

    model_config = ConfigDict(from_attributes=True)

    appointment_id: UUID
    service_id: UUID
    employee_id: UUID
    location_id: UUID
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus
    booked_by: str
    booked_by_name: str
    user_id: str
    canceled_by: str | None = None
    cancel_reason: str | None = None
    payment_status: PaymentStatus
    payment_amount: Decimal | None = None
    fulfillment_date: datetime | None = None
    created_at: datetime

    @classmethod
    def from_model(cls, appointment: Appointment) -> "AppointmentResponse":
        return cls.model_validate(appointment)


class AppointmentListResponse(BaseModel):
    """A page of appointments."""

    items: list[AppointmentResponse]
    count: int = Field(..., description="Number of items in this page")


class TimeSlotResponse(BaseModel):
    """A bookable slot."""

    start: datetime
    end: datetime
    start_label: str = Field(..., description="Local start time as HH:MM")
    end_label: str = Field(..., description="Local end time as HH:MM")

    @classmethod
    def from_slot(cls, slot: TimeSlot) -> "TimeSlotResponse":
        return cls(
            start=slot.start,
            end=slot.end,
            start_label=slot.start_label,
            end_label=slot.end_label,
        )


class AvailabilityResponse(BaseModel):
    """Bookable slots for one employee, service and day."""

    day: date
    service_id: UUID
    employee_id: UUID
    location_id: UUID
    slots: list[TimeSlotResponse]

    model_config = {"json_schema_extra": {"example": {
        "day": "2026-03-02",
        "service_id": "7c2b8e0a-1f4d-4e55-9a0e-6f1c2d3b4a51",
        "employee_id": "5f0c7d2e-8a61-4c43-9a57-0e4f1f0d8b6a",
        "location_id": "0e9a4c1b-3d2f-4b6a-8c7e-1a2b3c4d5e6f",
        "slots": [{
            "start": "2026-03-02T09:00:00Z",
            "end": "2026-03-02T09:30:00Z",
            "start_label": "09:00",
            "end_label": "09:30",
        }],
    }}}

    @classmethod
    def build(
        cls,
        day: date,
        service_id: UUID,
        employee_id: UUID,
        location_id: UUID,
        slots: AvailableSlots,
    ) -> "AvailabilityResponse":
        return cls(
            day=day,
            service_id=service_id,
            employee_id=employee_id,
            location_id=location_id,
            slots=[TimeSlotResponse.from_slot(slot) for slot in slots],
        )

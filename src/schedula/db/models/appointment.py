"""Appointment model."""

from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, PortableUUID, TimestampMixin, UTCDateTime
from .resources import Service


class AppointmentStatus(str, Enum):
    """Appointment lifecycle: SCHEDULED, then one terminal state."""

    SCHEDULED = "SCHEDULED"
    CANCELLED = "CANCELLED"
    FULFILLED = "FULFILLED"


ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset(
        {AppointmentStatus.CANCELLED, AppointmentStatus.FULFILLED}
    ),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.FULFILLED: frozenset(),
}


class PaymentStatus(str, Enum):
    """Payment state captured alongside an appointment."""

    UNPAID = "UNPAID"
    PAID = "PAID"
    REFUNDED = "REFUNDED"


class Appointment(TimestampMixin, Base):
    """A booked service with one employee at one location.

    The customer identity is captured at booking time and is not a live
    foreign key. The end time is always derived from the service duration.
    """

    __tablename__ = "appointments"

    appointment_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("tenants.tenant_id", ondelete="CASCADE"), nullable=False
    )
    service_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("services.service_id", ondelete="CASCADE"), nullable=False
    )
    employee_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("employees.employee_id", ondelete="CASCADE"), nullable=False
    )
    location_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("locations.location_id", ondelete="CASCADE"), nullable=False
    )
    start_time: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=AppointmentStatus.SCHEDULED.value
    )

    # Customer identity at booking time
    booked_by: Mapped[str] = mapped_column(String(255), nullable=False)
    booked_by_name: Mapped[str] = mapped_column(String(255), nullable=False)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)

    # Cancellation
    canceled_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cancel_reason: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    # Payment and fulfillment
    payment_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PaymentStatus.UNPAID.value
    )
    payment_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    fulfillment_date: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    service: Mapped[Service] = relationship(lazy="selectin")

    __table_args__ = (
        Index("idx_appointment_employee_start", "employee_id", "status", "start_time"),
        Index("idx_appointment_tenant_start", "tenant_id", "start_time"),
        Index("idx_appointment_tenant_created", "tenant_id", "created_at"),
        Index("idx_appointment_user", "tenant_id", "user_id"),
    )

    @property
    def end_time(self) -> datetime:
        return self.start_time + timedelta(minutes=self.service.duration_minutes)

    def __repr__(self) -> str:
        return (
            f"<Appointment(id={self.appointment_id}, employee={self.employee_id}, "
            f"start={self.start_time.isoformat()}, status={self.status})>"
        )

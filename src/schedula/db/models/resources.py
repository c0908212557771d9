"""Bookable resources owned by a tenant: locations, employees and services."""

from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, PortableUUID, TimestampMixin


class Location(TimestampMixin, Base):
    """A physical place where appointments happen."""

    __tablename__ = "locations"

    location_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("tenants.tenant_id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    __table_args__ = (Index("idx_location_tenant", "tenant_id"),)

    def __repr__(self) -> str:
        return f"<Location(id={self.location_id}, name={self.name})>"


class Employee(TimestampMixin, Base):
    """A person whose calendar can be booked.

    The row doubles as the serialization point for bookings: the booking
    transaction updates it first so that concurrent bookings for the same
    employee queue behind one another.
    """

    __tablename__ = "employees"

    employee_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("tenants.tenant_id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    __table_args__ = (Index("idx_employee_tenant", "tenant_id"),)

    def __repr__(self) -> str:
        return f"<Employee(id={self.employee_id}, name={self.name})>"


class Service(TimestampMixin, Base):
    """Something a customer can book; its duration sets the slot length."""

    __tablename__ = "services"

    service_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("tenants.tenant_id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)

    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_service_duration_positive"),
        Index("idx_service_tenant", "tenant_id"),
    )

    def __repr__(self) -> str:
        return f"<Service(id={self.service_id}, name={self.name}, duration={self.duration_minutes})>"


class EmployeeLocation(Base):
    """Many-to-many assignment of employees to locations."""

    __tablename__ = "employee_locations"

    employee_id: Mapped[UUID] = mapped_column(
        PortableUUID(),
        ForeignKey("employees.employee_id", ondelete="CASCADE"),
        primary_key=True,
    )
    location_id: Mapped[UUID] = mapped_column(
        PortableUUID(),
        ForeignKey("locations.location_id", ondelete="CASCADE"),
        primary_key=True,
    )
    tenant_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("tenants.tenant_id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (Index("idx_employee_location_tenant", "tenant_id"),)

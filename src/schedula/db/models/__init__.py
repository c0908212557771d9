"""Database models for Schedula."""

from .appointment import ALLOWED_TRANSITIONS, Appointment, AppointmentStatus, PaymentStatus
from .base import Base, TimestampMixin
from .resources import Employee, EmployeeLocation, Location, Service
from .schedule import BlockType, Schedule, Weekday
from .tenant import Tenant, TenantStatus

__all__ = [
    "ALLOWED_TRANSITIONS",
    "Appointment",
    "AppointmentStatus",
    "Base",
    "BlockType",
    "Employee",
    "EmployeeLocation",
    "Location",
    "PaymentStatus",
    "Schedule",
    "Service",
    "Tenant",
    "TenantStatus",
    "TimestampMixin",
    "Weekday",
]

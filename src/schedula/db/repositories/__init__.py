"""Tenant-scoped data access."""

from .appointment import AppointmentRepository
from .base import TenantScopedRepository
from .resources import EmployeeRepository, LocationRepository, ServiceRepository
from .schedule import ScheduleRepository
from .tenant import TenantRepository

__all__ = [
    "AppointmentRepository",
    "EmployeeRepository",
    "LocationRepository",
    "ScheduleRepository",
    "ServiceRepository",
    "TenantRepository",
    "TenantScopedRepository",
]

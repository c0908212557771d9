"""Booking core: resources, schedules, availability and booking transactions."""

from .availability import AvailabilityCalculator, AvailableSlots
from .maintenance import PastAppointmentProcessor
from .resources import ResourceService
from .schedules import ScheduleStore
from .transactions import BookingService
from .types import AppointmentFilters, AppointmentUpdate, BookingRequest, TimeSlot

__all__ = [
    "AppointmentFilters",
    "AppointmentUpdate",
    "AvailabilityCalculator",
    "AvailableSlots",
    "BookingRequest",
    "BookingService",
    "PastAppointmentProcessor",
    "ResourceService",
    "ScheduleStore",
    "TimeSlot",
]

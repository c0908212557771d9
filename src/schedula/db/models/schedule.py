"""Weekly working-hour blocks."""

import re
from datetime import time
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, validates

from .base import Base, PortableUUID, TimestampMixin

HHMM_PATTERN = re.compile(r"^([01][0-9]|2[0-3]):[0-5][0-9]$")


class Weekday(str, Enum):
    """Days of the week, Sunday first."""

    SUNDAY = "SUNDAY"
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"

    @classmethod
    def from_iso_weekday(cls, isoweekday: int) -> "Weekday":
        """Map date.isoweekday() (Monday=1 .. Sunday=7) to a Weekday."""
        return _WEEKDAYS[isoweekday % 7]


_WEEKDAYS = list(Weekday)


class BlockType(str, Enum):
    """Kind of schedule block."""

    WORKING_HOURS = "WORKING_HOURS"
    BREAK = "BREAK"


def parse_hhmm(value: str) -> time:
    """Parse an HH:MM wall-clock string.

    Raises:
        ValueError: If the value is not a valid HH:MM time
    """
    if not HHMM_PATTERN.match(value):
        raise ValueError(f"Time must be in HH:MM format: {value!r}")
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


class Schedule(TimestampMixin, Base):
    """A recurring weekly block for one employee at one location.

    Start and end are wall-clock HH:MM strings in the tenant's timezone.
    """

    __tablename__ = "schedules"

    schedule_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("tenants.tenant_id", ondelete="CASCADE"), nullable=False
    )
    employee_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("employees.employee_id", ondelete="CASCADE"), nullable=False
    )
    location_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("locations.location_id", ondelete="CASCADE"), nullable=False
    )
    weekday: Mapped[str] = mapped_column(String(10), nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    block_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BlockType.WORKING_HOURS.value
    )

    __table_args__ = (
        Index("idx_schedule_lookup", "tenant_id", "employee_id", "location_id", "weekday"),
    )

    @validates("start_time", "end_time")
    def _validate_hhmm(self, key: str, value: str) -> str:
        parse_hhmm(value)
        return value

    @property
    def start(self) -> time:
        return parse_hhmm(self.start_time)

    @property
    def end(self) -> time:
        return parse_hhmm(self.end_time)

    def __repr__(self) -> str:
        return (
            f"<Schedule(id={self.schedule_id}, weekday={self.weekday}, "
            f"{self.start_time}-{self.end_time}, type={self.block_type})>"
        )

"""Request and response schemas for locations, employees and services."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class LocationCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    address: str = Field(default="", max_length=500)


class LocationResponse(BaseModel):
    """A tenant location."""

    model_config = ConfigDict(from_attributes=True)

    location_id: UUID
    name: str
    address: str
    created_at: datetime


class EmployeeCreateRequest(BaseModel):
    """Request to create an employee, optionally assigned to locations."""

    name: str = Field(..., min_length=1, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    location_ids: list[UUID] = Field(
        default_factory=list,
        validation_alias=AliasChoices("location_ids", "locationIds"),
    )


class EmployeeResponse(BaseModel):
    """A bookable employee."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: UUID
    name: str
    email: str | None = None
    created_at: datetime


class ServiceCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    duration_minutes: int = Field(
        ...,
        gt=0,
        validation_alias=AliasChoices("duration_minutes", "durationMinutes", "duration"),
        description="Slot length in minutes",
    )
    price: Decimal | None = Field(default=None, ge=0)


class ServiceResponse(BaseModel):
    """A bookable service."""

    model_config = ConfigDict(from_attributes=True)

    service_id: UUID
    name: str
    duration_minutes: int
    price: Decimal | None = None
    created_at: datetime

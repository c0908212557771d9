"""Availability endpoint."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from schedula.api.dependencies import get_app_settings, get_db, get_tenant
from schedula.api.schemas.booking import AvailabilityResponse
from schedula.api.schemas.errors import APIError
from schedula.booking import AvailabilityCalculator
from schedula.config.settings import Settings
from schedula.core.context import TenantContext

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get(
    "",
    response_model=AvailabilityResponse,
    summary="List bookable slots",
    description="Free slots for one employee, service and location on a local calendar day.",
    responses={
        404: {"model": APIError, "description": "Service or schedule not found"},
    },
)
async def get_availability(
    service_id: UUID,
    location_id: UUID,
    employee_id: UUID,
    day: Annotated[date, Query(alias="date", description="Day in the tenant's timezone")],
    tenant: Annotated[TenantContext, Depends(get_tenant)],
    db: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> AvailabilityResponse:
    """Compute availability for a day."""
    calculator = AvailabilityCalculator(db, settings)
    slots = await calculator.compute_slots(tenant, service_id, location_id, employee_id, day)
    return AvailabilityResponse.build(day, service_id, employee_id, location_id, slots)

"""Appointment endpoints."""

from datetime import date, datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from schedula.api.dependencies import (
    get_booking_service,
    get_db,
    get_principal,
    get_tenant,
    get_usage_counter,
)
from schedula.api.schemas.booking import (
    AppointmentCreateRequest,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentUpdateRequest,
)
from schedula.api.schemas.errors import APIError
from schedula.booking import AppointmentFilters, BookingService
from schedula.config.plans import QuotaResource
from schedula.core.context import Principal, TenantContext
from schedula.core.redis import ApiUsageCounter
from schedula.db.models.appointment import AppointmentStatus
from schedula.quota import QuotaEnforcer

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.post(
    "",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book an appointment",
    responses={
        404: {"model": APIError, "description": "Employee, service or location not found"},
        409: {"model": APIError, "description": "Time slot already booked"},
        429: {"model": APIError, "description": "Monthly appointment quota exceeded"},
    },
)
async def create_appointment(
    body: AppointmentCreateRequest,
    tenant: Annotated[TenantContext, Depends(get_tenant)],
    principal: Annotated[Principal, Depends(get_principal)],
    service: Annotated[BookingService, Depends(get_booking_service)],
    db: Annotated[AsyncSession, Depends(get_db)],
    usage_counter: Annotated[ApiUsageCounter, Depends(get_usage_counter)],
) -> AppointmentResponse:
    """Book an appointment if the plan allows another one this month."""
    await QuotaEnforcer(db, usage_counter).enforce_quota(
        tenant, QuotaResource.APPOINTMENTS_PER_MONTH
    )
    appointment = await service.book(tenant, body.to_booking_request(), principal)
    return AppointmentResponse.from_model(appointment)


@router.get(
    "",
    response_model=AppointmentListResponse,
    summary="List appointments",
    description="Admins see every appointment; other callers see only their own.",
)
async def list_appointments(
    tenant: Annotated[TenantContext, Depends(get_tenant)],
    principal: Annotated[Principal, Depends(get_principal)],
    service: Annotated[BookingService, Depends(get_booking_service)],
    location_id: UUID | None = None,
    employee_id: UUID | None = None,
    appointment_status: Annotated[AppointmentStatus | None, Query(alias="status")] = None,
    day: Annotated[date | None, Query(alias="date")] = None,
    start_from: datetime | None = None,
    start_to: datetime | None = None,
    limit: Annotated[int, Query(ge=1, le=1000)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> AppointmentListResponse:
    """List appointments matching the filters."""
    filters = AppointmentFilters(
        location_id=location_id,
        employee_id=employee_id,
        status=appointment_status,
        day=day,
        start_from=start_from,
        start_to=start_to,
        limit=limit,
        offset=offset,
    )
    appointments = await service.list_appointments(tenant, principal, filters)
    items = [AppointmentResponse.from_model(a) for a in appointments]
    return AppointmentListResponse(items=items, count=len(items))


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    summary="Get an appointment",
    responses={404: {"model": APIError, "description": "Appointment not found"}},
)
async def get_appointment(
    appointment_id: UUID,
    tenant: Annotated[TenantContext, Depends(get_tenant)],
    service: Annotated[BookingService, Depends(get_booking_service)],
) -> AppointmentResponse:
    appointment = await service.get_appointment(tenant, appointment_id)
    return AppointmentResponse.from_model(appointment)


@router.patch(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    summary="Update an appointment",
    description="Reschedule, cancel, fulfil or update payment details.",
    responses={
        400: {"model": APIError, "description": "Reschedule window or status rule violated"},
        404: {"model": APIError, "description": "Appointment not found"},
        409: {"model": APIError, "description": "New time slot already booked"},
    },
)
async def update_appointment(
    appointment_id: UUID,
    body: AppointmentUpdateRequest,
    tenant: Annotated[TenantContext, Depends(get_tenant)],
    principal: Annotated[Principal, Depends(get_principal)],
    service: Annotated[BookingService, Depends(get_booking_service)],
) -> AppointmentResponse:
    appointment = await service.update_appointment(
        tenant, appointment_id, body.to_update(), principal
    )
    return AppointmentResponse.from_model(appointment)


@router.delete(
    "/{appointment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an appointment",
    description="Only cancelled or past appointments can be deleted.",
    responses={
        403: {"model": APIError, "description": "Appointment is still upcoming"},
        404: {"model": APIError, "description": "Appointment not found"},
    },
)
async def delete_appointment(
    appointment_id: UUID,
    tenant: Annotated[TenantContext, Depends(get_tenant)],
    service: Annotated[BookingService, Depends(get_booking_service)],
) -> None:
    await service.delete_appointment(tenant, appointment_id)

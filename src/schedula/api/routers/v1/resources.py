"""Location, employee and service endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from schedula.api.dependencies import get_resource_service, get_tenant
from schedula.api.schemas.errors import APIError
from schedula.api.schemas.resources import (
    EmployeeCreateRequest,
    EmployeeResponse,
    LocationCreateRequest,
    LocationResponse,
    ServiceCreateRequest,
    ServiceResponse,
)
from schedula.booking import ResourceService
from schedula.core.context import TenantContext

router = APIRouter(tags=["resources"])


@router.post(
    "/locations",
    response_model=LocationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a location",
    responses={
        403: {"model": APIError, "description": "Plan does not allow multiple locations"},
        429: {"model": APIError, "description": "Location quota exceeded"},
    },
)
async def create_location(
    body: LocationCreateRequest,
    tenant: Annotated[TenantContext, Depends(get_tenant)],
    resources: Annotated[ResourceService, Depends(get_resource_service)],
) -> LocationResponse:
    location = await resources.create_location(tenant, body.name, body.address)
    return LocationResponse.model_validate(location)


@router.get("/locations", response_model=list[LocationResponse], summary="List locations")
async def list_locations(
    tenant: Annotated[TenantContext, Depends(get_tenant)],
    resources: Annotated[ResourceService, Depends(get_resource_service)],
) -> list[LocationResponse]:
    return [LocationResponse.model_validate(loc) for loc in await resources.list_locations(tenant)]


@router.post(
    "/employees",
    response_model=EmployeeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an employee",
    responses={
        404: {"model": APIError, "description": "Location not found"},
        429: {"model": APIError, "description": "Employee quota exceeded"},
    },
)
async def create_employee(
    body: EmployeeCreateRequest,
    tenant: Annotated[TenantContext, Depends(get_tenant)],
    resources: Annotated[ResourceService, Depends(get_resource_service)],
) -> EmployeeResponse:
    employee = await resources.create_employee(
        tenant, body.name, body.email, body.location_ids
    )
    return EmployeeResponse.model_validate(employee)


@router.get("/employees", response_model=list[EmployeeResponse], summary="List employees")
async def list_employees(
    tenant: Annotated[TenantContext, Depends(get_tenant)],
    resources: Annotated[ResourceService, Depends(get_resource_service)],
) -> list[EmployeeResponse]:
    return [EmployeeResponse.model_validate(e) for e in await resources.list_employees(tenant)]


@router.post(
    "/services",
    response_model=ServiceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a service",
    responses={429: {"model": APIError, "description": "Service quota exceeded"}},
)
async def create_service(
    body: ServiceCreateRequest,
    tenant: Annotated[TenantContext, Depends(get_tenant)],
    resources: Annotated[ResourceService, Depends(get_resource_service)],
) -> ServiceResponse:
    service = await resources.create_service(
        tenant, body.name, body.duration_minutes, body.price
    )
    return ServiceResponse.model_validate(service)


@router.get("/services", response_model=list[ServiceResponse], summary="List services")
async def list_services(
    tenant: Annotated[TenantContext, Depends(get_tenant)],
    resources: Annotated[ResourceService, Depends(get_resource_service)],
) -> list[ServiceResponse]:
    return [ServiceResponse.model_validate(s) for s in await resources.list_services(tenant)]

"""API v1 routers."""

from fastapi import APIRouter

from .appointments import router as appointments_router
from .availability import router as availability_router
from .resources import router as resources_router

router = APIRouter(prefix="/v1")
router.include_router(availability_router)
router.include_router(appointments_router)
router.include_router(resources_router)

__all__ = ["router"]

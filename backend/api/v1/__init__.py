"""Version 1 API routers."""

from fastapi import APIRouter

from .enquiries import router as enquiries_router
from .health import router as health_router
from .sessions import router as sessions_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(health_router)
api_router.include_router(sessions_router)
api_router.include_router(enquiries_router)

__all__ = ["api_router"]

"""API v1 router - aggregates all domain routers."""

from fastapi import APIRouter

from dormmate.api.v1.announcements.router import router as announcements_router
from dormmate.api.v1.health.router import router as health_router

router = APIRouter(prefix="/api/v1")

router.include_router(health_router)
router.include_router(announcements_router)

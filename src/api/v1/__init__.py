"""API v1 router configuration."""

from fastapi import APIRouter

from api.v1.routes.notifications import notifications_router, preferences_router
from api.v1.routes.outbox import router as outbox_router

router = APIRouter()
router.include_router(notifications_router)
router.include_router(preferences_router)
router.include_router(outbox_router)

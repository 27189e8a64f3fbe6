"""API route aggregation.

All routers registered here get mounted under /api in main.py. Routes that
need the caller's identity take it via Depends(get_current_user) in the
handler itself; health, auth and the cron trigger are open at this level.
"""

from fastapi import APIRouter

from creatorcompass.api.analytics import router as analytics_router
from creatorcompass.api.auth import router as auth_router
from creatorcompass.api.cron import router as cron_router
from creatorcompass.api.health import router as health_router
from creatorcompass.api.notifications import router as notifications_router

api_router = APIRouter(prefix="/api")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(cron_router, tags=["cron"])
api_router.include_router(notifications_router, tags=["notifications"])
api_router.include_router(analytics_router, tags=["analytics"])

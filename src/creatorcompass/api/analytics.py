"""Analytics API routes — premium only.

- GET  /analytics/sse      → live analytics-update stream
- POST /analytics/metrics  → record a metric snapshot, pushed live
- GET  /analytics/metrics  → snapshots for a time range / platform

Non-subscribers get 403 with upgrade_required so the client can show the
upgrade prompt.
"""

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from creatorcompass.auth.dependencies import CurrentIdentity, get_current_user
from creatorcompass.db.engine import get_db
from creatorcompass.db.models import User
from creatorcompass.realtime.connections import ConnectionManager
from creatorcompass.realtime.dependencies import (
    get_analytics_streams,
    get_heartbeat_interval,
)
from creatorcompass.realtime.stream import sse_response, stream_events
from creatorcompass.schemas.analytics import SnapshotCreate, SnapshotRead, TimeRange
from creatorcompass.services.analytics_service import (
    AnalyticsService,
    PremiumRequiredError,
    require_premium,
)

router = APIRouter(prefix="/analytics")


async def _premium_user(
    identity: CurrentIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Load the caller and enforce an active subscription (404 / 403)."""
    user = await db.get(User, identity.user_uuid)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    try:
        require_premium(user)
    except PremiumRequiredError as e:
        raise HTTPException(
            status_code=403,
            detail={"message": str(e), "upgrade_required": True},
        )
    return user


def _svc(
    db: AsyncSession = Depends(get_db),
    streams: ConnectionManager = Depends(get_analytics_streams),
) -> AnalyticsService:
    return AnalyticsService(db, streams)


@router.get("/sse")
async def analytics_stream(
    user: User = Depends(_premium_user),
    db: AsyncSession = Depends(get_db),
    streams: ConnectionManager = Depends(get_analytics_streams),
    heartbeat_interval: float = Depends(get_heartbeat_interval),
):
    """Server-sent events for this user's analytics.

    Frames: connected, heartbeat, analytics-update.
    """
    user_id = str(user.id)
    await db.close()
    return sse_response(stream_events(streams, user_id, heartbeat_interval))


@router.post("/metrics", response_model=SnapshotRead, status_code=201)
async def record_metrics(
    body: SnapshotCreate,
    user: User = Depends(_premium_user),
    svc: AnalyticsService = Depends(_svc),
):
    """Record a metric snapshot and push it to the caller's analytics stream."""
    return await svc.record_snapshot(
        user.id,
        platform=body.platform,
        followers=body.followers,
        views=body.views,
        engagement=body.engagement,
    )


@router.get("/metrics", response_model=list[SnapshotRead])
async def list_metrics(
    time_range: TimeRange = Query("30days"),
    platform: Literal["all", "youtube", "tiktok", "twitch"] = Query("all"),
    user: User = Depends(_premium_user),
    svc: AnalyticsService = Depends(_svc),
):
    return await svc.list_snapshots(user.id, time_range=time_range, platform=platform)

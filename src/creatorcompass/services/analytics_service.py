"""Analytics service — premium gate, metric snapshots, live updates.

Analytics is a premium feature: every operation requires the user's
subscription to be 'active'. Recording a snapshot pushes an
analytics-update frame to the user's analytics stream, best effort.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from creatorcompass.db.models import AnalyticsSnapshot, User
from creatorcompass.realtime.connections import ConnectionManager, send_analytics_update
from creatorcompass.schemas.analytics import SnapshotRead

TIME_RANGE_DAYS: dict[str, int] = {
    "7days": 7,
    "30days": 30,
    "3months": 90,
    "6months": 180,
    "1year": 365,
}


class PremiumRequiredError(Exception):
    """Raised when a non-subscriber touches a premium feature."""


def require_premium(user: User) -> None:
    subscription = user.subscription
    if subscription is None or subscription.status != "active":
        raise PremiumRequiredError("Analytics is a premium feature")


class AnalyticsService:
    def __init__(self, db: AsyncSession, streams: Optional[ConnectionManager] = None):
        self.db = db
        self.streams = streams

    async def record_snapshot(
        self,
        user_id: uuid.UUID,
        platform: str,
        followers: int,
        views: int,
        engagement: float = 0.0,
    ) -> AnalyticsSnapshot:
        snapshot = AnalyticsSnapshot(
            user_id=user_id,
            platform=platform,
            followers=followers,
            views=views,
            engagement=engagement,
        )
        self.db.add(snapshot)
        await self.db.commit()

        if self.streams is not None:
            send_analytics_update(
                self.streams,
                str(user_id),
                SnapshotRead.model_validate(snapshot).model_dump(mode="json"),
            )
        return snapshot

    async def list_snapshots(
        self,
        user_id: uuid.UUID,
        time_range: str = "30days",
        platform: str = "all",
        now: Optional[datetime] = None,
    ) -> list[AnalyticsSnapshot]:
        """Snapshots recorded within the time range, oldest first."""
        now = now or datetime.now(timezone.utc)
        since = now - timedelta(days=TIME_RANGE_DAYS.get(time_range, 30))

        query = (
            select(AnalyticsSnapshot)
            .where(
                AnalyticsSnapshot.user_id == user_id,
                AnalyticsSnapshot.recorded_at >= since,
            )
            .order_by(AnalyticsSnapshot.recorded_at)
        )
        if platform != "all":
            query = query.where(AnalyticsSnapshot.platform == platform)

        result = await self.db.execute(query)
        return list(result.scalars().all())

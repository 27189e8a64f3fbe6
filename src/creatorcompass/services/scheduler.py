"""Scheduled notification jobs.

Run once per cron tick (GET /api/notifications/cron). Each job scans for
candidates and fires the matching trigger; preference checks happen inside
NotificationService, so a candidate doesn't always produce a notification.
The returned counts are candidates processed.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from creatorcompass.db.models import Milestone, Progress, Subscription, User
from creatorcompass.realtime.connections import ConnectionManager
from creatorcompass.services.notification_service import NotificationService
from creatorcompass.services.notification_triggers import NotificationTriggers

logger = structlog.get_logger()

UPCOMING_MILESTONE_DAYS = 3
TRIAL_WARNING_DAYS = 7

_DAY_SECONDS = 24 * 60 * 60


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _days_until(target: datetime, now: datetime) -> int:
    return math.ceil((_as_utc(target) - now).total_seconds() / _DAY_SECONDS)


class NotificationScheduler:
    def __init__(self, db: AsyncSession, streams: Optional[ConnectionManager] = None):
        self.db = db
        self.triggers = NotificationTriggers(NotificationService(db, streams))

    async def send_daily_reminders(self) -> int:
        """Users who opted into daily reminders and have an active roadmap."""
        active_users = select(Progress.user_id).where(Progress.is_active.is_(True))
        result = await self.db.execute(select(User).where(User.id.in_(active_users)))
        users = [
            u for u in result.scalars().all()
            if (u.notification_preferences or {}).get("daily_reminders") is True
        ]
        for user in users:
            await self.triggers.send_daily_reminder(user.id)
        return len(users)

    async def send_streak_warnings(self, now: datetime) -> int:
        """Active roadmaps with no activity since before yesterday."""
        start_of_yesterday = (now - timedelta(days=1)).replace(
            hour=0, minute=0, second=0, microsecond=0
        )
        result = await self.db.execute(
            select(Progress).where(
                Progress.is_active.is_(True),
                Progress.last_activity_date < start_of_yesterday,
            )
        )
        at_risk = list(result.scalars().all())
        hours_remaining = 24 - now.hour
        for progress in at_risk:
            await self.triggers.on_streak_warning(progress.user_id, hours_remaining)
        return len(at_risk)

    async def send_upcoming_milestones(self, now: datetime) -> int:
        horizon = now + timedelta(days=UPCOMING_MILESTONE_DAYS)
        result = await self.db.execute(
            select(Milestone).where(
                Milestone.is_completed.is_(False),
                Milestone.target_date >= now,
                Milestone.target_date <= horizon,
            )
        )
        milestones = list(result.scalars().all())
        for milestone in milestones:
            await self.triggers.on_milestone_upcoming(
                milestone.user_id,
                milestone.id,
                milestone.title,
                _days_until(milestone.target_date, now),
            )
        return len(milestones)

    async def send_trial_endings(self, now: datetime) -> int:
        horizon = now + timedelta(days=TRIAL_WARNING_DAYS)
        result = await self.db.execute(
            select(Subscription).where(
                Subscription.status == "trialing",
                Subscription.current_period_end >= now,
                Subscription.current_period_end <= horizon,
            )
        )
        trials = list(result.scalars().all())
        for subscription in trials:
            await self.triggers.on_trial_ending(
                subscription.user_id,
                _days_until(subscription.current_period_end, now),
            )
        return len(trials)

    async def run(self, now: Optional[datetime] = None) -> dict[str, int]:
        """Run every job once and report how many candidates each processed."""
        now = now or datetime.now(timezone.utc)
        counts = {
            "daily_reminders": await self.send_daily_reminders(),
            "streak_warnings": await self.send_streak_warnings(now),
            "upcoming_milestones": await self.send_upcoming_milestones(now),
            "trial_endings": await self.send_trial_endings(now),
        }
        logger.info("notifications.cron_completed", **counts)
        return counts

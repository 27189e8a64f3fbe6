"""Notification service — persisted notifications plus real-time push.

Every notification goes through the same path:
1. Check the user's preferences (category switched off? quiet hours?)
2. Persist the row
3. After commit, push it to the user's notification stream, best effort

Step 3 never fails the caller. If the user has no open stream on this
process the push is simply skipped; the row is still there the next time
the client lists its notifications.
"""

import math
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from creatorcompass.db.models import Notification, User
from creatorcompass.events.types import (
    ACHIEVEMENT_UNLOCKED,
    CONTENT_SCHEDULE,
    DAILY_TASK_REMINDER,
    FEATURE_ANNOUNCEMENT,
    LEVEL_UP,
    MILESTONE_ACHIEVED,
    MILESTONE_UPCOMING,
    NOTIFICATION_CATEGORIES,
    PAYMENT_FAILED,
    PLATFORM_UPDATE,
    STREAK_ACHIEVED,
    STREAK_LOST,
    STREAK_WARNING,
    SUBSCRIPTION_RENEWED,
    TRIAL_ENDING,
)
from creatorcompass.realtime.connections import (
    ConnectionManager,
    send_notification_to_user,
)
from creatorcompass.schemas.notification import NotificationPreferences, NotificationRead

logger = structlog.get_logger()

DEFAULT_DURATION_MS = 5000

# type → (icon, color, animation)
NOTIFICATION_DEFAULTS: dict[str, tuple[str, str, str]] = {
    MILESTONE_ACHIEVED: ("🎯", "green", "bounce"),
    MILESTONE_UPCOMING: ("📅", "blue", "slide"),
    STREAK_ACHIEVED: ("🔥", "orange", "bounce"),
    STREAK_WARNING: ("⚠️", "yellow", "pulse"),
    STREAK_LOST: ("💔", "red", "shake"),
    DAILY_TASK_REMINDER: ("📝", "blue", "slide"),
    CONTENT_SCHEDULE: ("📅", "purple", "slide"),
    FEATURE_ANNOUNCEMENT: ("🎉", "purple", "bounce"),
    PLATFORM_UPDATE: ("📢", "blue", "slide"),
    ACHIEVEMENT_UNLOCKED: ("🏆", "gold", "bounce"),
    LEVEL_UP: ("⚡", "purple", "bounce"),
    TRIAL_ENDING: ("⏰", "yellow", "pulse"),
    SUBSCRIPTION_RENEWED: ("✅", "green", "slide"),
    PAYMENT_FAILED: ("❌", "red", "shake"),
}
FALLBACK_DEFAULTS = ("📬", "gray", "slide")


class NotificationNotFoundError(Exception):
    pass


class UserNotFoundError(Exception):
    pass


def notification_defaults(notification_type: str) -> tuple[str, str, str]:
    return NOTIFICATION_DEFAULTS.get(notification_type, FALLBACK_DEFAULTS)


def should_send(notification_type: str, preferences: dict) -> bool:
    """A type is only suppressed when its category is explicitly False."""
    category = NOTIFICATION_CATEGORIES.get(notification_type)
    if category is None:
        return True
    return preferences.get(category) is not False


def _minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


def is_in_quiet_hours(preferences: dict, now: datetime) -> bool:
    """Whether `now` (UTC) falls inside the user's stored quiet-hours window.

    Both bounds are inclusive. A window whose start is after its end spans
    midnight (22:00–08:00).
    """
    start = preferences.get("quiet_hours_start")
    end = preferences.get("quiet_hours_end")
    if not start or not end:
        return False

    current = now.hour * 60 + now.minute
    start_min = _minutes(start)
    end_min = _minutes(end)

    if start_min <= end_min:
        return start_min <= current <= end_min
    return current >= start_min or current <= end_min


def serialize_notification(notification: Notification) -> dict[str, Any]:
    return NotificationRead.model_validate(notification).model_dump(mode="json")


class NotificationService:
    """Business logic for notification CRUD, preferences, and delivery."""

    def __init__(self, db: AsyncSession, streams: Optional[ConnectionManager] = None):
        self.db = db
        self.streams = streams

    # ─── Create ──────────────────────────────────────────

    async def create(
        self,
        user_id: uuid.UUID,
        notification_type: str,
        title: str,
        message: str,
        *,
        icon: Optional[str] = None,
        color: Optional[str] = None,
        animation: Optional[str] = None,
        duration: Optional[int] = None,
        metadata: Optional[dict[str, Any]] = None,
        respect_preferences: bool = True,
        now: Optional[datetime] = None,
    ) -> Optional[Notification]:
        """Store a notification and push it to the user's open stream.

        Returns None when the user's preferences suppress it.
        Raises UserNotFoundError if the user doesn't exist.
        """
        user = await self.db.get(User, user_id)
        if not user:
            raise UserNotFoundError(f"User {user_id} not found")

        if respect_preferences:
            preferences = user.notification_preferences or {}
            if not should_send(notification_type, preferences):
                logger.debug(
                    "notification.suppressed",
                    user_id=str(user_id),
                    type=notification_type,
                    reason="category_disabled",
                )
                return None
            if is_in_quiet_hours(preferences, now or datetime.now(timezone.utc)):
                logger.debug(
                    "notification.suppressed",
                    user_id=str(user_id),
                    type=notification_type,
                    reason="quiet_hours",
                )
                return None

        default_icon, default_color, default_animation = notification_defaults(
            notification_type
        )
        notification = Notification(
            user_id=user_id,
            type=notification_type,
            title=title,
            message=message,
            icon=icon or default_icon,
            color=color or default_color,
            animation=animation or default_animation,
            duration=duration or DEFAULT_DURATION_MS,
            meta=metadata or {},
            is_read=False,
        )
        self.db.add(notification)
        await self.db.commit()

        if self.streams is not None:
            send_notification_to_user(
                self.streams, str(user_id), serialize_notification(notification)
            )
        return notification

    async def create_bulk(
        self,
        user_ids: list[uuid.UUID],
        notification_type: str,
        title: str,
        message: str,
        **kwargs: Any,
    ) -> list[Notification]:
        """Create the same notification for many users; suppressed ones are omitted."""
        created = []
        for user_id in user_ids:
            notification = await self.create(
                user_id, notification_type, title, message, **kwargs
            )
            if notification is not None:
                created.append(notification)
        return created

    # ─── Read ────────────────────────────────────────────

    async def list_notifications(
        self,
        user_id: uuid.UUID,
        page: int = 1,
        limit: int = 20,
        unread_only: bool = False,
    ) -> dict[str, Any]:
        """Newest-first page of a user's notifications with pagination info."""
        filters = [Notification.user_id == user_id]
        if unread_only:
            filters.append(Notification.is_read.is_(False))

        result = await self.db.execute(
            select(Notification)
            .where(*filters)
            .order_by(Notification.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        total = await self.db.scalar(
            select(func.count()).select_from(Notification).where(*filters)
        )
        total = total or 0

        return {
            "notifications": list(result.scalars().all()),
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": math.ceil(total / limit),
            },
        }

    async def unread_count(self, user_id: uuid.UUID) -> int:
        count = await self.db.scalar(
            select(func.count())
            .select_from(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        )
        return count or 0

    async def _get_owned(
        self, user_id: uuid.UUID, notification_id: uuid.UUID
    ) -> Notification:
        notification = await self.db.get(Notification, notification_id)
        if not notification or notification.user_id != user_id:
            raise NotificationNotFoundError(f"Notification {notification_id} not found")
        return notification

    # ─── Update / delete ─────────────────────────────────

    async def set_read(
        self, user_id: uuid.UUID, notification_id: uuid.UUID, is_read: bool = True
    ) -> Notification:
        notification = await self._get_owned(user_id, notification_id)
        notification.is_read = is_read
        await self.db.commit()
        return notification

    async def mark_all_read(self, user_id: uuid.UUID) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
        )
        await self.db.commit()
        return result.rowcount or 0

    async def delete(self, user_id: uuid.UUID, notification_id: uuid.UUID) -> None:
        notification = await self._get_owned(user_id, notification_id)
        await self.db.delete(notification)
        await self.db.commit()

    # ─── Preferences ─────────────────────────────────────

    async def _get_user(self, user_id: uuid.UUID) -> User:
        user = await self.db.get(User, user_id)
        if not user:
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    async def get_preferences(self, user_id: uuid.UUID) -> dict[str, Any]:
        """Effective preferences: defaults overlaid with what the user stored."""
        user = await self._get_user(user_id)
        return NotificationPreferences(
            **(user.notification_preferences or {})
        ).model_dump()

    async def update_preferences(
        self, user_id: uuid.UUID, updates: dict[str, Any]
    ) -> dict[str, Any]:
        """Merge provided fields into the stored preferences."""
        user = await self._get_user(user_id)
        current = dict(user.notification_preferences or {})
        current.update(updates)
        # Reassign so the JSON column is flagged dirty
        user.notification_preferences = current
        await self.db.commit()
        return NotificationPreferences(**current).model_dump()

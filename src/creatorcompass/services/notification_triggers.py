"""Domain-event → notification mapping.

Each trigger turns something that happened in a creator's journey into a
notification with fixed copy. Triggers go through NotificationService.create,
so preferences and quiet hours apply and the result is pushed live.
"""

import uuid
from typing import Any, Optional

from sqlalchemy import select

from creatorcompass.db.models import Notification, Progress
from creatorcompass.events.types import (
    ACHIEVEMENT_UNLOCKED,
    DAILY_TASK_REMINDER,
    LEVEL_UP,
    MILESTONE_ACHIEVED,
    MILESTONE_UPCOMING,
    PAYMENT_FAILED,
    STREAK_ACHIEVED,
    STREAK_WARNING,
    SUBSCRIPTION_RENEWED,
    TRIAL_ENDING,
)
from creatorcompass.services.notification_service import NotificationService

# Streak lengths worth celebrating
STREAK_MILESTONES = (3, 7, 14, 30, 60, 90, 180, 365)


class NotificationTriggers:
    def __init__(self, notifications: NotificationService):
        self.notifications = notifications

    async def on_milestone_achieved(
        self, user_id: uuid.UUID, milestone_id: Any, title: str
    ) -> Optional[Notification]:
        return await self.notifications.create(
            user_id,
            MILESTONE_ACHIEVED,
            f"Milestone Achieved! {title}",
            f'Congratulations! You\'ve completed "{title}". Keep up the great work!',
            metadata={"milestone_id": str(milestone_id)},
        )

    async def on_milestone_upcoming(
        self, user_id: uuid.UUID, milestone_id: Any, title: str, days_until: int
    ) -> Optional[Notification]:
        return await self.notifications.create(
            user_id,
            MILESTONE_UPCOMING,
            "Upcoming Milestone",
            f'Your milestone "{title}" is coming up in {days_until} days!',
            metadata={"milestone_id": str(milestone_id), "days_until": days_until},
        )

    async def on_streak_achieved(
        self, user_id: uuid.UUID, streak_days: int
    ) -> Optional[Notification]:
        if streak_days not in STREAK_MILESTONES:
            return None
        return await self.notifications.create(
            user_id,
            STREAK_ACHIEVED,
            f"{streak_days}-Day Streak! 🔥",
            f"Amazing! You've maintained a {streak_days}-day streak. You're on fire!",
            metadata={"streak_days": streak_days},
        )

    async def on_streak_warning(
        self, user_id: uuid.UUID, hours_remaining: int
    ) -> Optional[Notification]:
        return await self.notifications.create(
            user_id,
            STREAK_WARNING,
            "Streak at Risk!",
            f"Your streak will end in {hours_remaining} hours. "
            "Complete a task to keep it going!",
            metadata={"hours_remaining": hours_remaining},
        )

    async def send_daily_reminder(self, user_id: uuid.UUID) -> Optional[Notification]:
        """Only creators with an active roadmap get the daily nudge."""
        active = await self.notifications.db.scalar(
            select(Progress.id)
            .where(Progress.user_id == user_id, Progress.is_active.is_(True))
            .limit(1)
        )
        if active is None:
            return None
        return await self.notifications.create(
            user_id,
            DAILY_TASK_REMINDER,
            "Daily Task Reminder",
            "Don't forget to complete your daily tasks and stay on track "
            "with your creator journey!",
        )

    async def on_achievement_unlocked(
        self,
        user_id: uuid.UUID,
        achievement_id: Any,
        name: str,
        description: str = "",
        icon: Optional[str] = None,
    ) -> Optional[Notification]:
        return await self.notifications.create(
            user_id,
            ACHIEVEMENT_UNLOCKED,
            "Achievement Unlocked!",
            f'You\'ve earned the "{name}" achievement! {description}'.strip(),
            icon=icon,
            metadata={"achievement_id": str(achievement_id)},
        )

    async def on_level_up(self, user_id: uuid.UUID, new_level: int) -> Optional[Notification]:
        return await self.notifications.create(
            user_id,
            LEVEL_UP,
            f"Level {new_level} Reached!",
            f"Congratulations! You've reached level {new_level}. "
            "New features and rewards await!",
            metadata={"level": new_level},
        )

    async def on_trial_ending(
        self, user_id: uuid.UUID, days_remaining: int
    ) -> Optional[Notification]:
        return await self.notifications.create(
            user_id,
            TRIAL_ENDING,
            "Trial Ending Soon",
            f"Your trial ends in {days_remaining} days. Upgrade now to keep "
            "all your progress and features!",
            metadata={"days_remaining": days_remaining},
        )

    async def on_subscription_renewed(
        self, user_id: uuid.UUID, plan: str
    ) -> Optional[Notification]:
        return await self.notifications.create(
            user_id,
            SUBSCRIPTION_RENEWED,
            "Subscription Renewed",
            f"Your {plan} subscription has been successfully renewed. "
            "Thank you for your continued support!",
            metadata={"plan": plan},
        )

    async def on_payment_failed(self, user_id: uuid.UUID) -> Optional[Notification]:
        return await self.notifications.create(
            user_id,
            PAYMENT_FAILED,
            "Payment Failed",
            "We couldn't process your payment. Please update your payment "
            "method to continue your subscription.",
        )

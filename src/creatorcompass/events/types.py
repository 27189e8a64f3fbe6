"""Event type constants.

Centralizing event types as constants prevents typos and makes it easy to
discover every frame and notification kind the backend emits.
"""

# ─── SSE frame types ─────────────────────────────────────

FRAME_CONNECTED = "connected"
FRAME_HEARTBEAT = "heartbeat"
FRAME_NOTIFICATION = "notification"
FRAME_ANALYTICS_UPDATE = "analytics-update"

# ─── Stream channels (one connection registry each) ──────

CHANNEL_NOTIFICATIONS = "notifications"
CHANNEL_ANALYTICS = "analytics"

# ─── Notification types ──────────────────────────────────

MILESTONE_ACHIEVED = "milestone_achieved"
MILESTONE_UPCOMING = "milestone_upcoming"
STREAK_ACHIEVED = "streak_achieved"
STREAK_WARNING = "streak_warning"
STREAK_LOST = "streak_lost"
DAILY_TASK_REMINDER = "daily_task_reminder"
CONTENT_SCHEDULE = "content_schedule"
FEATURE_ANNOUNCEMENT = "feature_announcement"
PLATFORM_UPDATE = "platform_update"
ACHIEVEMENT_UNLOCKED = "achievement_unlocked"
LEVEL_UP = "level_up"
TRIAL_ENDING = "trial_ending"
SUBSCRIPTION_RENEWED = "subscription_renewed"
PAYMENT_FAILED = "payment_failed"

# Preference key that can switch each notification type off
NOTIFICATION_CATEGORIES: dict[str, str] = {
    MILESTONE_ACHIEVED: "milestone_alerts",
    MILESTONE_UPCOMING: "milestone_alerts",
    ACHIEVEMENT_UNLOCKED: "milestone_alerts",
    LEVEL_UP: "milestone_alerts",
    STREAK_ACHIEVED: "streak_notifications",
    STREAK_WARNING: "streak_notifications",
    STREAK_LOST: "streak_notifications",
    DAILY_TASK_REMINDER: "daily_reminders",
    CONTENT_SCHEDULE: "daily_reminders",
    FEATURE_ANNOUNCEMENT: "feature_announcements",
    PLATFORM_UPDATE: "feature_announcements",
    TRIAL_ENDING: "subscription_alerts",
    SUBSCRIPTION_RENEWED: "subscription_alerts",
    PAYMENT_FAILED: "subscription_alerts",
}

NOTIFICATION_TYPES: tuple[str, ...] = tuple(NOTIFICATION_CATEGORIES)

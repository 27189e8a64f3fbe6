"""Pydantic schemas for notifications and notification preferences.

- NotificationCreate: what you POST to create a notification
- NotificationUpdate: what you PATCH on a single notification
- NotificationRead: what the API (and the SSE notification frame) returns
- NotificationPreferencesUpdate: partial preferences update (all optional)
"""

import uuid
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from creatorcompass.events.types import NOTIFICATION_TYPES

NotificationType = Literal[NOTIFICATION_TYPES]  # type: ignore[valid-type]

_HHMM = r"^([01]\d|2[0-3]):[0-5]\d$"


# ─── Notifications ───────────────────────────────────────

class NotificationCreate(BaseModel):
    type: NotificationType
    title: str = Field(..., min_length=1, max_length=100)
    message: str = Field(..., min_length=1, max_length=500)
    icon: Optional[str] = None
    color: Optional[str] = None
    animation: Optional[str] = None
    duration: Optional[int] = Field(None, gt=0)
    metadata: dict[str, Any] = Field(default_factory=dict)


class NotificationUpdate(BaseModel):
    is_read: bool


class NotificationRead(BaseModel):
    id: uuid.UUID
    type: str
    title: str
    message: str
    icon: str
    color: str
    animation: str
    duration: int
    metadata: dict[str, Any] = Field(validation_alias="meta")
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class NotificationPage(BaseModel):
    notifications: list[NotificationRead]
    pagination: Pagination


# ─── Preferences ─────────────────────────────────────────

class NotificationPreferences(BaseModel):
    """Effective preferences: stored values over these defaults."""
    daily_reminders: bool = True
    milestone_alerts: bool = True
    streak_notifications: bool = True
    feature_announcements: bool = True
    subscription_alerts: bool = True
    email_notifications: bool = True
    push_notifications: bool = False
    reminder_time: str = "09:00"
    quiet_hours_start: str = "22:00"
    quiet_hours_end: str = "08:00"


class NotificationPreferencesUpdate(BaseModel):
    """Partial update — only provided fields are stored."""
    daily_reminders: Optional[bool] = None
    milestone_alerts: Optional[bool] = None
    streak_notifications: Optional[bool] = None
    feature_announcements: Optional[bool] = None
    subscription_alerts: Optional[bool] = None
    email_notifications: Optional[bool] = None
    push_notifications: Optional[bool] = None
    reminder_time: Optional[str] = Field(None, pattern=_HHMM)
    quiet_hours_start: Optional[str] = Field(None, pattern=_HHMM)
    quiet_hours_end: Optional[str] = Field(None, pattern=_HHMM)

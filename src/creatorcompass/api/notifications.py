"""Notification API routes.

Routes translate HTTP to NotificationService calls and map domain errors
to status codes. Everything is scoped to the authenticated user.

- GET    /notifications/sse            → live notification stream
- GET    /notifications                → paginated list
- POST   /notifications                → create (internal use), pushed live
- GET    /notifications/unread-count
- POST   /notifications/mark-all-read
- GET    /notifications/preferences
- PATCH  /notifications/preferences
- PATCH  /notifications/{id}           → mark read/unread
- DELETE /notifications/{id}

Preferences routes are registered before the /{id} routes so the literal
path wins the match.
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from creatorcompass.auth.dependencies import CurrentIdentity, get_current_user
from creatorcompass.db.engine import get_db
from creatorcompass.db.models import User
from creatorcompass.realtime.connections import ConnectionManager
from creatorcompass.realtime.dependencies import (
    get_heartbeat_interval,
    get_notification_streams,
)
from creatorcompass.realtime.stream import sse_response, stream_events
from creatorcompass.schemas.notification import (
    NotificationCreate,
    NotificationPage,
    NotificationPreferences,
    NotificationPreferencesUpdate,
    NotificationRead,
    NotificationUpdate,
)
from creatorcompass.services.notification_service import (
    NotificationNotFoundError,
    NotificationService,
    UserNotFoundError,
)

router = APIRouter(prefix="/notifications")


def _svc(
    db: AsyncSession = Depends(get_db),
    streams: ConnectionManager = Depends(get_notification_streams),
) -> NotificationService:
    return NotificationService(db, streams)


# ═══════════════════════════════════════════════════════════
# Stream
# ═══════════════════════════════════════════════════════════


@router.get("/sse")
async def notification_stream(
    identity: CurrentIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    streams: ConnectionManager = Depends(get_notification_streams),
    heartbeat_interval: float = Depends(get_heartbeat_interval),
):
    """Server-sent events for this user's notifications.

    Frames: connected, heartbeat, notification. Connect with
    new EventSource('/api/notifications/sse?token=<access token>').
    """
    user = await db.get(User, identity.user_uuid)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    # The stream can stay open for hours; don't pin a pooled connection
    await db.close()

    return sse_response(
        stream_events(streams, identity.user_id, heartbeat_interval)
    )


# ═══════════════════════════════════════════════════════════
# Notifications
# ═══════════════════════════════════════════════════════════


@router.get("", response_model=NotificationPage)
async def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    unread_only: bool = Query(False),
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NotificationService = Depends(_svc),
):
    """List the caller's notifications, newest first."""
    return await svc.list_notifications(
        identity.user_uuid, page=page, limit=limit, unread_only=unread_only
    )


@router.post("", response_model=NotificationRead, status_code=201)
async def create_notification(
    body: NotificationCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NotificationService = Depends(_svc),
):
    """Create a notification for the caller and push it to their open stream.

    Explicit creation bypasses category and quiet-hours preferences.
    """
    try:
        return await svc.create(
            identity.user_uuid,
            body.type,
            body.title,
            body.message,
            icon=body.icon,
            color=body.color,
            animation=body.animation,
            duration=body.duration,
            metadata=body.metadata,
            respect_preferences=False,
        )
    except UserNotFoundError:
        raise HTTPException(status_code=404, detail="User not found")


@router.get("/unread-count")
async def unread_count(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NotificationService = Depends(_svc),
):
    return {"count": await svc.unread_count(identity.user_uuid)}


@router.post("/mark-all-read")
async def mark_all_read(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NotificationService = Depends(_svc),
):
    return {"updated": await svc.mark_all_read(identity.user_uuid)}


# ═══════════════════════════════════════════════════════════
# Preferences
# ═══════════════════════════════════════════════════════════


@router.get("/preferences", response_model=NotificationPreferences)
async def get_preferences(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NotificationService = Depends(_svc),
):
    """Effective preferences (defaults for anything the user never set)."""
    try:
        return await svc.get_preferences(identity.user_uuid)
    except UserNotFoundError:
        raise HTTPException(status_code=404, detail="User not found")


@router.patch("/preferences", response_model=NotificationPreferences)
async def update_preferences(
    body: NotificationPreferencesUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NotificationService = Depends(_svc),
):
    """Update preferences. Only provided fields are changed."""
    try:
        return await svc.update_preferences(
            identity.user_uuid, body.model_dump(exclude_none=True)
        )
    except UserNotFoundError:
        raise HTTPException(status_code=404, detail="User not found")


# ═══════════════════════════════════════════════════════════
# Single notification
# ═══════════════════════════════════════════════════════════


@router.patch("/{notification_id}", response_model=NotificationRead)
async def update_notification(
    notification_id: uuid.UUID,
    body: NotificationUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NotificationService = Depends(_svc),
):
    try:
        return await svc.set_read(identity.user_uuid, notification_id, body.is_read)
    except NotificationNotFoundError:
        raise HTTPException(status_code=404, detail="Notification not found")


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NotificationService = Depends(_svc),
):
    try:
        await svc.delete(identity.user_uuid, notification_id)
    except NotificationNotFoundError:
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"deleted": True}

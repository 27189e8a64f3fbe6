"""Scheduler trigger — called by an external cron service, not by users.

Guarded by a shared secret (CREATORCOMPASS_CRON_SECRET) sent as a bearer
token instead of user auth.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from creatorcompass.auth.dependencies import require_cron_secret
from creatorcompass.db.engine import get_db
from creatorcompass.realtime.connections import ConnectionManager
from creatorcompass.realtime.dependencies import get_notification_streams
from creatorcompass.services.scheduler import NotificationScheduler

router = APIRouter()


@router.get("/notifications/cron", dependencies=[Depends(require_cron_secret)])
async def run_notification_cron(
    db: AsyncSession = Depends(get_db),
    streams: ConnectionManager = Depends(get_notification_streams),
):
    """Run the daily reminder / streak / milestone / trial jobs once."""
    counts = await NotificationScheduler(db, streams).run()
    return {"success": True, "notifications": counts}

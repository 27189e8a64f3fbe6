"""Scheduled notification jobs and the cron trigger endpoint."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from conftest import TEST_USER_ID
from creatorcompass.config import settings
from creatorcompass.db.models import Milestone, Notification, Progress
from creatorcompass.services.scheduler import NotificationScheduler

USER_UUID = uuid.UUID(TEST_USER_ID)
NOW = datetime(2026, 3, 10, 15, 0, tzinfo=timezone.utc)


async def _notifications(db, notification_type: str) -> list[Notification]:
    result = await db.execute(
        select(Notification).where(Notification.type == notification_type)
    )
    return list(result.scalars().all())


# ═══════════════════════════════════════════════════════════
# Jobs
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_run_with_nothing_to_do(db_session):
    counts = await NotificationScheduler(db_session).run(now=NOW)
    assert counts == {
        "daily_reminders": 0,
        "streak_warnings": 0,
        "upcoming_milestones": 0,
        "trial_endings": 0,
    }


@pytest.mark.asyncio
async def test_daily_reminders_need_opt_in(db_session, user_factory):
    opted_in = "00000000-0000-0000-0000-000000000011"
    silent = "00000000-0000-0000-0000-000000000012"
    await user_factory(opted_in, email="in@example.com", preferences={"daily_reminders": True})
    await user_factory(silent, email="silent@example.com")
    db_session.add_all(
        [
            Progress(user_id=uuid.UUID(opted_in), is_active=True),
            Progress(user_id=uuid.UUID(silent), is_active=True),
        ]
    )
    await db_session.commit()

    count = await NotificationScheduler(db_session).send_daily_reminders()

    assert count == 1
    sent = await _notifications(db_session, "daily_task_reminder")
    assert [n.user_id for n in sent] == [uuid.UUID(opted_in)]


@pytest.mark.asyncio
async def test_streak_warning_for_stale_activity(db_session, user):
    db_session.add_all(
        [
            Progress(
                user_id=USER_UUID,
                is_active=True,
                streak_days=12,
                last_activity_date=NOW - timedelta(days=3),
            ),
        ]
    )
    await db_session.commit()

    count = await NotificationScheduler(db_session).send_streak_warnings(NOW)

    assert count == 1
    (warning,) = await _notifications(db_session, "streak_warning")
    assert warning.meta == {"hours_remaining": 24 - NOW.hour}


@pytest.mark.asyncio
async def test_no_streak_warning_for_recent_activity(db_session, user):
    db_session.add(
        Progress(user_id=USER_UUID, is_active=True, last_activity_date=NOW - timedelta(hours=2))
    )
    await db_session.commit()

    assert await NotificationScheduler(db_session).send_streak_warnings(NOW) == 0


@pytest.mark.asyncio
async def test_upcoming_milestones_within_three_days(db_session, user):
    db_session.add_all(
        [
            Milestone(user_id=USER_UUID, title="1k subs", target_date=NOW + timedelta(days=2)),
            Milestone(user_id=USER_UUID, title="Far off", target_date=NOW + timedelta(days=10)),
            Milestone(
                user_id=USER_UUID,
                title="Already done",
                target_date=NOW + timedelta(days=1),
                is_completed=True,
            ),
        ]
    )
    await db_session.commit()

    count = await NotificationScheduler(db_session).send_upcoming_milestones(NOW)

    assert count == 1
    (n,) = await _notifications(db_session, "milestone_upcoming")
    assert n.meta["days_until"] == 2
    assert "1k subs" in n.message


@pytest.mark.asyncio
async def test_trial_endings_within_a_week(db_session, user_factory):
    await user_factory(
        subscription_status="trialing", current_period_end=NOW + timedelta(days=5)
    )

    count = await NotificationScheduler(db_session).send_trial_endings(NOW)

    assert count == 1
    (n,) = await _notifications(db_session, "trial_ending")
    assert n.meta == {"days_remaining": 5}


@pytest.mark.asyncio
async def test_active_subscription_gets_no_trial_warning(db_session, user_factory):
    await user_factory(
        subscription_status="active", current_period_end=NOW + timedelta(days=5)
    )
    assert await NotificationScheduler(db_session).send_trial_endings(NOW) == 0


# ═══════════════════════════════════════════════════════════
# Cron endpoint
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_cron_disabled_without_secret(client, monkeypatch):
    monkeypatch.setattr(settings, "cron_secret", "")
    r = await client.get("/api/notifications/cron")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_cron_rejects_wrong_secret(client, monkeypatch):
    monkeypatch.setattr(settings, "cron_secret", "s3cret")
    r = await client.get(
        "/api/notifications/cron", headers={"Authorization": "Bearer nope"}
    )
    assert r.status_code == 401

    r = await client.get("/api/notifications/cron")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_cron_runs_jobs(client, user_factory, monkeypatch):
    monkeypatch.setattr(settings, "cron_secret", "s3cret")
    await user_factory(
        subscription_status="trialing",
        current_period_end=datetime.now(timezone.utc) + timedelta(days=2),
    )

    r = await client.get(
        "/api/notifications/cron", headers={"Authorization": "Bearer s3cret"}
    )

    assert r.status_code == 200
    data = r.json()
    assert data["success"] is True
    assert data["notifications"]["trial_endings"] == 1
    assert set(data["notifications"]) == {
        "daily_reminders",
        "streak_warnings",
        "upcoming_milestones",
        "trial_endings",
    }

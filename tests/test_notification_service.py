"""NotificationService and trigger tests — preferences, quiet hours, delivery."""

import json
import uuid
from datetime import datetime, timezone

import pytest

from conftest import TEST_USER_ID
from creatorcompass.db.models import Progress
from creatorcompass.realtime.connections import ConnectionManager, StreamHandle
from creatorcompass.services.notification_service import (
    FALLBACK_DEFAULTS,
    NotificationService,
    UserNotFoundError,
    is_in_quiet_hours,
    notification_defaults,
    should_send,
)
from creatorcompass.services.notification_triggers import NotificationTriggers

USER_UUID = uuid.UUID(TEST_USER_ID)
NOON = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def _at(hour: int, minute: int = 0) -> datetime:
    return NOON.replace(hour=hour, minute=minute)


# ═══════════════════════════════════════════════════════════
# Pure helpers
# ═══════════════════════════════════════════════════════════


def test_should_send_only_blocks_explicit_false():
    assert should_send("streak_warning", {})
    assert should_send("streak_warning", {"streak_notifications": True})
    assert not should_send("streak_warning", {"streak_notifications": False})
    # Other categories are unaffected
    assert should_send("level_up", {"streak_notifications": False})


def test_should_send_unknown_type():
    assert should_send("something_new", {"milestone_alerts": False})


def test_quiet_hours_spanning_midnight():
    prefs = {"quiet_hours_start": "22:00", "quiet_hours_end": "08:00"}
    assert is_in_quiet_hours(prefs, _at(23, 30))
    assert is_in_quiet_hours(prefs, _at(3))
    assert not is_in_quiet_hours(prefs, _at(12))


def test_quiet_hours_bounds_inclusive():
    prefs = {"quiet_hours_start": "22:00", "quiet_hours_end": "08:00"}
    assert is_in_quiet_hours(prefs, _at(22, 0))
    assert is_in_quiet_hours(prefs, _at(8, 0))
    assert not is_in_quiet_hours(prefs, _at(8, 1))
    assert not is_in_quiet_hours(prefs, _at(21, 59))


def test_quiet_hours_same_day_window():
    prefs = {"quiet_hours_start": "13:00", "quiet_hours_end": "15:00"}
    assert is_in_quiet_hours(prefs, _at(14))
    assert not is_in_quiet_hours(prefs, _at(12))
    assert not is_in_quiet_hours(prefs, _at(16))


def test_quiet_hours_need_stored_values():
    """Display defaults don't silence anyone who never set quiet hours."""
    assert not is_in_quiet_hours({}, _at(23))
    assert not is_in_quiet_hours({"quiet_hours_start": "22:00"}, _at(23))


def test_unknown_type_gets_fallback_style():
    assert notification_defaults("mystery") == FALLBACK_DEFAULTS


# ═══════════════════════════════════════════════════════════
# Service
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_persists_and_publishes(db_session, user):
    streams = ConnectionManager("notifications")
    handle = StreamHandle(TEST_USER_ID)
    streams.register(TEST_USER_ID, handle)

    svc = NotificationService(db_session, streams)
    n = await svc.create(USER_UUID, "milestone_achieved", "Done", "Well done", now=NOON)

    assert n is not None
    assert n.icon == "🎯"
    frame = json.loads(handle._queue.get_nowait()[len("data: "):])
    assert frame["type"] == "notification"
    assert frame["notification"]["id"] == str(n.id)
    assert frame["notification"]["title"] == "Done"


@pytest.mark.asyncio
async def test_create_explicit_style_overrides_defaults(db_session, user):
    svc = NotificationService(db_session)
    n = await svc.create(
        USER_UUID,
        "level_up",
        "Up",
        "Level up",
        icon="🚀",
        color="teal",
        duration=8000,
        now=NOON,
    )
    assert (n.icon, n.color, n.animation, n.duration) == ("🚀", "teal", "bounce", 8000)


@pytest.mark.asyncio
async def test_create_suppressed_by_category(db_session, user_factory):
    await user_factory(preferences={"streak_notifications": False})
    streams = ConnectionManager("notifications")
    handle = StreamHandle(TEST_USER_ID)
    streams.register(TEST_USER_ID, handle)

    svc = NotificationService(db_session, streams)
    n = await svc.create(USER_UUID, "streak_warning", "Careful", "Streak at risk", now=NOON)

    assert n is None
    assert handle._queue.empty()
    assert await svc.unread_count(USER_UUID) == 0


@pytest.mark.asyncio
async def test_create_suppressed_in_quiet_hours(db_session, user_factory):
    await user_factory(
        preferences={"quiet_hours_start": "22:00", "quiet_hours_end": "08:00"}
    )
    svc = NotificationService(db_session)

    assert await svc.create(USER_UUID, "level_up", "Up", "Up", now=_at(23)) is None
    assert await svc.create(USER_UUID, "level_up", "Up", "Up", now=_at(12)) is not None


@pytest.mark.asyncio
async def test_create_bypassing_preferences(db_session, user_factory):
    await user_factory(preferences={"milestone_alerts": False})
    svc = NotificationService(db_session)
    n = await svc.create(
        USER_UUID, "level_up", "Up", "Up", respect_preferences=False, now=NOON
    )
    assert n is not None


@pytest.mark.asyncio
async def test_create_unknown_user_raises(db_session):
    svc = NotificationService(db_session)
    with pytest.raises(UserNotFoundError):
        await svc.create(USER_UUID, "level_up", "Up", "Up")


@pytest.mark.asyncio
async def test_create_bulk_skips_suppressed(db_session, user_factory):
    other_id = "00000000-0000-0000-0000-000000000002"
    await user_factory()
    await user_factory(
        other_id, email="muted@example.com", preferences={"feature_announcements": False}
    )
    svc = NotificationService(db_session)

    created = await svc.create_bulk(
        [USER_UUID, uuid.UUID(other_id)],
        "feature_announcement",
        "New feature",
        "Try it out",
        now=NOON,
    )

    assert [n.user_id for n in created] == [USER_UUID]


@pytest.mark.asyncio
async def test_update_preferences_only_stores_given_fields(db_session, user):
    svc = NotificationService(db_session)
    await svc.update_preferences(USER_UUID, {"daily_reminders": False})

    assert user.notification_preferences == {"daily_reminders": False}
    prefs = await svc.get_preferences(USER_UUID)
    assert prefs["daily_reminders"] is False
    assert prefs["milestone_alerts"] is True


# ═══════════════════════════════════════════════════════════
# Triggers
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_streak_trigger_only_fires_on_milestone_lengths(db_session, user):
    triggers = NotificationTriggers(NotificationService(db_session))

    assert await triggers.on_streak_achieved(USER_UUID, 5) is None
    n = await triggers.on_streak_achieved(USER_UUID, 7)
    assert n.title == "7-Day Streak! 🔥"
    assert n.meta == {"streak_days": 7}


@pytest.mark.asyncio
async def test_daily_reminder_needs_active_progress(db_session, user):
    triggers = NotificationTriggers(NotificationService(db_session))
    assert await triggers.send_daily_reminder(USER_UUID) is None

    db_session.add(Progress(user_id=USER_UUID, is_active=True))
    await db_session.commit()

    n = await triggers.send_daily_reminder(USER_UUID)
    assert n is not None
    assert n.type == "daily_task_reminder"


@pytest.mark.asyncio
async def test_milestone_trigger_copy(db_session, user):
    triggers = NotificationTriggers(NotificationService(db_session))
    milestone_id = uuid.uuid4()

    n = await triggers.on_milestone_achieved(USER_UUID, milestone_id, "First 100 subs")

    assert n.title == "Milestone Achieved! First 100 subs"
    assert n.meta == {"milestone_id": str(milestone_id)}


@pytest.mark.asyncio
async def test_subscription_triggers_respect_category(db_session, user_factory):
    await user_factory(preferences={"subscription_alerts": False})
    triggers = NotificationTriggers(NotificationService(db_session))

    assert await triggers.on_payment_failed(USER_UUID) is None
    assert await triggers.on_trial_ending(USER_UUID, 3) is None


@pytest.mark.asyncio
async def test_achievement_unlocked_trigger(db_session, user):
    triggers = NotificationTriggers(NotificationService(db_session))
    achievement_id = uuid.uuid4()

    n = await triggers.on_achievement_unlocked(
        USER_UUID, achievement_id, "Night Owl", "Posted after midnight.", icon="🦉"
    )

    assert n.type == "achievement_unlocked"
    assert n.title == "Achievement Unlocked!"
    assert n.message == 'You\'ve earned the "Night Owl" achievement! Posted after midnight.'
    assert n.icon == "🦉"
    assert n.meta == {"achievement_id": str(achievement_id)}


@pytest.mark.asyncio
async def test_achievement_unlocked_default_icon(db_session, user):
    triggers = NotificationTriggers(NotificationService(db_session))
    n = await triggers.on_achievement_unlocked(USER_UUID, 1, "Starter")
    assert n.icon == "🏆"
    assert n.message == 'You\'ve earned the "Starter" achievement!'


@pytest.mark.asyncio
async def test_level_up_trigger(db_session, user):
    triggers = NotificationTriggers(NotificationService(db_session))

    n = await triggers.on_level_up(USER_UUID, 4)

    assert n.type == "level_up"
    assert n.title == "Level 4 Reached!"
    assert "reached level 4" in n.message
    assert n.meta == {"level": 4}


@pytest.mark.asyncio
async def test_subscription_renewed_trigger(db_session, user):
    triggers = NotificationTriggers(NotificationService(db_session))

    n = await triggers.on_subscription_renewed(USER_UUID, "pro")

    assert n.type == "subscription_renewed"
    assert n.title == "Subscription Renewed"
    assert n.message.startswith("Your pro subscription has been successfully renewed.")
    assert n.meta == {"plan": "pro"}


@pytest.mark.asyncio
async def test_milestone_category_silences_achievements_and_levels(db_session, user_factory):
    await user_factory(preferences={"milestone_alerts": False})
    triggers = NotificationTriggers(NotificationService(db_session))

    assert await triggers.on_achievement_unlocked(USER_UUID, 1, "Starter") is None
    assert await triggers.on_level_up(USER_UUID, 2) is None


@pytest.mark.asyncio
async def test_subscription_category_silences_renewal(db_session, user_factory):
    await user_factory(preferences={"subscription_alerts": False})
    triggers = NotificationTriggers(NotificationService(db_session))

    assert await triggers.on_subscription_renewed(USER_UUID, "pro") is None

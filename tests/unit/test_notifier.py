"""Notification subscriber tests — one level-up and one badge notification at most."""

from __future__ import annotations

import json
import uuid
from unittest.mock import AsyncMock

import pytest

from cosecha.gamification.badges import default_registry
from cosecha.gamification.schemas import AchievementUpdated
from cosecha.notifications.notifier import (
    AchievementNotifier,
    LocalNotification,
    RedisNotificationScheduler,
)


def make_event(**overrides) -> AchievementUpdated:
    values = {
        "user_id": uuid.uuid4(),
        "experience": 400,
        "level": 3,
        "leveled_up": False,
        "new_badges": [],
    }
    values.update(overrides)
    return AchievementUpdated(**values)


@pytest.fixture
def scheduler():
    mock = AsyncMock()
    mock.schedule = AsyncMock()
    return mock


class TestAchievementNotifier:
    @pytest.mark.asyncio
    async def test_level_up_schedules_one_notification(self, scheduler):
        notifier = AchievementNotifier(scheduler, default_registry())
        await notifier(make_event(leveled_up=True))

        assert scheduler.schedule.await_count == 1
        notification: LocalNotification = scheduler.schedule.await_args.args[0]
        assert notification.title_key == "notif_level_up_title"
        assert notification.body_key == "notif_level_up_body"
        assert notification.body_args == (3,)
        assert notification.identifier.startswith("ach_levelup_")

    @pytest.mark.asyncio
    async def test_badges_summarized_by_first_badge(self, scheduler):
        notifier = AchievementNotifier(scheduler, default_registry())
        await notifier(make_event(new_badges=["first_task", "explorer"]))

        assert scheduler.schedule.await_count == 1
        notification = scheduler.schedule.await_args.args[0]
        assert notification.title_key == "notif_badge_unlocked_title"
        assert notification.body_args == ("badge_first_task_title",)
        assert notification.identifier.startswith("ach_badge_")

    @pytest.mark.asyncio
    async def test_level_up_and_badge_both_notify(self, scheduler):
        notifier = AchievementNotifier(scheduler, default_registry())
        await notifier(make_event(leveled_up=True, new_badges=["level_milestone"]))

        keys = [call.args[0].title_key for call in scheduler.schedule.await_args_list]
        assert keys == ["notif_level_up_title", "notif_badge_unlocked_title"]

    @pytest.mark.asyncio
    async def test_nothing_to_announce(self, scheduler):
        notifier = AchievementNotifier(scheduler, default_registry())
        await notifier(make_event())
        scheduler.schedule.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unique_identifiers(self, scheduler):
        notifier = AchievementNotifier(scheduler, default_registry())
        await notifier(make_event(leveled_up=True))
        await notifier(make_event(leveled_up=True))
        ids = {call.args[0].identifier for call in scheduler.schedule.await_args_list}
        assert len(ids) == 2


class TestRedisNotificationScheduler:
    @pytest.mark.asyncio
    async def test_publishes_to_user_channel(self):
        redis = AsyncMock()
        scheduler = RedisNotificationScheduler(redis, "notifications:user")
        notification = LocalNotification(
            identifier="ach_levelup_1",
            user_id="abc",
            title_key="notif_level_up_title",
            body_key="notif_level_up_body",
            body_args=(4,),
        )

        await scheduler.schedule(notification)

        channel, payload = redis.publish.await_args.args
        assert channel == "notifications:user:abc"
        assert json.loads(payload) == {
            "identifier": "ach_levelup_1",
            "user_id": "abc",
            "title_key": "notif_level_up_title",
            "body_key": "notif_level_up_body",
            "body_args": [4],
        }

    @pytest.mark.asyncio
    async def test_publish_failure_is_swallowed(self):
        redis = AsyncMock()
        redis.publish.side_effect = ConnectionError("redis down")
        scheduler = RedisNotificationScheduler(redis, "notifications:user")

        await scheduler.schedule(
            LocalNotification("id", "abc", "t", "b")
        )
        redis.publish.assert_awaited_once()

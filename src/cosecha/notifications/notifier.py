"""Local notifications for level-ups and badge unlocks.

``AchievementNotifier`` subscribes to AchievementUpdated and turns it into
at most one level-up notification and at most one badge notification.
Delivery to the device is the scheduler's job.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import asdict, dataclass, field
from typing import Protocol

import redis.asyncio as aioredis
import structlog

from cosecha.gamification.badges import BadgeRegistry
from cosecha.gamification.schemas import AchievementUpdated

logger = structlog.get_logger()


@dataclass(frozen=True)
class LocalNotification:
    identifier: str
    user_id: str
    title_key: str
    body_key: str
    body_args: tuple = field(default_factory=tuple)


class NotificationScheduler(Protocol):
    async def schedule(self, notification: LocalNotification) -> None: ...


class RedisNotificationScheduler:
    """Hands notifications to the device push gateway via ``<prefix>:<user_id>``."""

    def __init__(self, redis_client: aioredis.Redis, channel_prefix: str) -> None:
        self.redis = redis_client
        self.channel_prefix = channel_prefix

    async def schedule(self, notification: LocalNotification) -> None:
        channel = f"{self.channel_prefix}:{notification.user_id}"
        payload = asdict(notification)
        payload["body_args"] = list(notification.body_args)
        try:
            await self.redis.publish(channel, json.dumps(payload))
        except Exception:
            logger.warning(
                "notification_push_failed",
                channel=channel,
                identifier=notification.identifier,
                exc_info=True,
            )


class AchievementNotifier:
    def __init__(self, scheduler: NotificationScheduler, registry: BadgeRegistry) -> None:
        self.scheduler = scheduler
        self.registry = registry

    async def __call__(self, event: AchievementUpdated) -> None:
        user_id = str(event.user_id)

        if event.leveled_up:
            await self.scheduler.schedule(
                LocalNotification(
                    identifier=f"ach_levelup_{uuid.uuid4()}",
                    user_id=user_id,
                    title_key="notif_level_up_title",
                    body_key="notif_level_up_body",
                    body_args=(event.level,),
                )
            )

        if event.new_badges:
            first = event.new_badges[0]
            await self.scheduler.schedule(
                LocalNotification(
                    identifier=f"ach_badge_{uuid.uuid4()}",
                    user_id=user_id,
                    title_key="notif_badge_unlocked_title",
                    body_key="notif_badge_unlocked_body",
                    body_args=(self.registry.title_key(first),),
                )
            )

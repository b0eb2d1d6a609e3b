"""Forwards AchievementUpdated events to Redis pub/sub for other processes."""

from __future__ import annotations

import redis.asyncio as aioredis
import structlog

from cosecha.gamification.schemas import AchievementUpdated

logger = structlog.get_logger()


class RedisEventPublisher:
    """Bus subscriber publishing each event as JSON on one channel."""

    def __init__(self, redis_client: aioredis.Redis | None, channel: str) -> None:
        self.redis = redis_client
        self.channel = channel

    async def __call__(self, event: AchievementUpdated) -> None:
        if self.redis is None:
            return
        try:
            await self.redis.publish(self.channel, event.model_dump_json())
        except Exception:
            logger.warning(
                "achievement_event_publish_failed",
                channel=self.channel,
                user_id=str(event.user_id),
                exc_info=True,
            )

"""Engine wiring: builds every component from settings and tears it down again."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import redis.asyncio as aioredis

from cosecha.config import Settings, get_settings
from cosecha.database import close_db, create_schema, get_session_factory, init_db
from cosecha.gamification.award_service import AwardService
from cosecha.gamification.badge_rules import BadgeRuleSet, default_rule_set
from cosecha.gamification.badges import BadgeRegistry, default_registry
from cosecha.gamification.collaborators import (
    CounterLookup,
    SqlCounterLookup,
    SqlUserDirectory,
    UserDirectory,
)
from cosecha.gamification.events import EventBus
from cosecha.gamification.redis_bridge import RedisEventPublisher
from cosecha.gamification.schemas import AchievementUpdated
from cosecha.logging_config import setup_logging
from cosecha.notifications.notifier import (
    AchievementNotifier,
    NotificationScheduler,
    RedisNotificationScheduler,
)
from cosecha.ui.celebration import CelebrationOverlay, SummaryBanner

logger = logging.getLogger(__name__)


@dataclass
class AchievementEngine:
    settings: Settings
    registry: BadgeRegistry
    rules: BadgeRuleSet
    bus: EventBus
    awards: AwardService
    overlay: CelebrationOverlay
    banner: SummaryBanner
    redis: aioredis.Redis | None = None


@asynccontextmanager
async def achievement_engine(
    settings: Settings | None = None,
    *,
    scheduler: NotificationScheduler | None = None,
    counters: CounterLookup | None = None,
    users: UserDirectory | None = None,
) -> AsyncIterator[AchievementEngine]:
    """Start the engine; drain pending deliveries and close connections on exit."""
    settings = settings or get_settings()
    setup_logging(settings)

    await init_db(settings.database_url)
    if settings.create_tables:
        await create_schema()
    session_factory = get_session_factory()

    redis_client: aioredis.Redis | None = None
    if settings.redis_url:
        redis_client = aioredis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=20,
        )
        if scheduler is None:
            scheduler = RedisNotificationScheduler(redis_client, settings.notification_channel_prefix)

    registry = default_registry()
    rules = default_rule_set(registry)
    bus = EventBus()
    awards = AwardService(
        session_factory=session_factory,
        users=users or SqlUserDirectory(session_factory),
        counters=counters or SqlCounterLookup(session_factory),
        rules=rules,
        bus=bus,
        max_attempts=settings.award_max_attempts,
    )

    overlay = CelebrationOverlay(registry, settings.overlay_display_seconds)
    banner = SummaryBanner(session_factory, registry)
    if scheduler is not None:
        bus.subscribe(AchievementUpdated, AchievementNotifier(scheduler, registry))
    bus.subscribe(AchievementUpdated, overlay)
    bus.subscribe(AchievementUpdated, banner)
    if redis_client is not None:
        bus.subscribe(AchievementUpdated, RedisEventPublisher(redis_client, settings.event_channel))

    logger.info("Achievement engine started (env=%s)", settings.environment)
    try:
        yield AchievementEngine(
            settings=settings,
            registry=registry,
            rules=rules,
            bus=bus,
            awards=awards,
            overlay=overlay,
            banner=banner,
            redis=redis_client,
        )
    finally:
        await bus.drain()
        overlay.dismiss()
        if redis_client is not None:
            await redis_client.aclose()
        await close_db()
        logger.info("Achievement engine shut down")

"""Read side of the engine: XP, level progress and unlocked badges for display."""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cosecha.db.models import BadgeUnlock, UserStats
from cosecha.gamification.badges import BadgeRegistry
from cosecha.gamification.progression import compute_level
from cosecha.gamification.schemas import AchievementSummary, EarnedBadge


async def get_stats(db: AsyncSession, user_id: uuid.UUID) -> UserStats | None:
    result = await db.execute(select(UserStats).where(UserStats.user_id == user_id))
    return result.scalar_one_or_none()


async def get_unlocked_badges(db: AsyncSession, user_id: uuid.UUID) -> list[BadgeUnlock]:
    """Badge unlocks for a user, oldest first."""
    result = await db.execute(
        select(BadgeUnlock)
        .where(BadgeUnlock.user_id == user_id)
        .order_by(BadgeUnlock.unlocked_at.asc(), BadgeUnlock.id.asc())
    )
    return list(result.scalars().all())


async def get_achievement_summary(
    db: AsyncSession,
    registry: BadgeRegistry,
    user_id: uuid.UUID,
) -> AchievementSummary:
    stats = await get_stats(db, user_id)
    experience = stats.experience if stats else 0
    info = compute_level(experience)

    badges = []
    for unlock in await get_unlocked_badges(db, user_id):
        definition = registry.get(unlock.badge_id)
        badges.append(
            EarnedBadge(
                badge_id=unlock.badge_id,
                unlocked_at=unlock.unlocked_at,
                title_key=registry.title_key(unlock.badge_id),
                description_key=definition.description_key if definition else "",
                icon=registry.icon(unlock.badge_id),
            )
        )

    return AchievementSummary(
        experience=experience,
        level=info["level"],
        xp_into_level=info["xp_into_level"],
        xp_for_level=info["xp_for_level"],
        next_level=info["next_level"],
        progress=info["progress"],
        badges=badges,
    )

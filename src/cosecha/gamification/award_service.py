"""Award service — grants XP for an action, detects level-ups and unlocks badges.

One ``award`` call is one transaction: the stats update and every new
badge row commit together or not at all. The AchievementUpdated event is
published only after a successful commit.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from cosecha.db.models import BadgeUnlock, UserStats
from cosecha.gamification.actions import AchievementAction
from cosecha.gamification.badge_rules import BadgeRuleSet
from cosecha.gamification.collaborators import CounterLookup, UserDirectory
from cosecha.gamification.errors import ConcurrentUpdateConflict, PersistenceFailure
from cosecha.gamification.events import EventBus
from cosecha.gamification.locks import UserLockRegistry
from cosecha.gamification.progression import level_for_xp
from cosecha.gamification.schemas import AchievementResult, AchievementUpdated

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


async def get_or_create_stats(db: AsyncSession, user_id: uuid.UUID) -> UserStats:
    """Get or create the stats row for a user (0 XP, level 1)."""
    result = await db.execute(select(UserStats).where(UserStats.user_id == user_id))
    stats = result.scalar_one_or_none()
    if stats is None:
        stats = UserStats(
            user_id=user_id,
            experience=0,
            level=1,
            updated_at=datetime.now(timezone.utc),
        )
        db.add(stats)
        await db.flush()
    return stats


async def unlock_badge(
    db: AsyncSession,
    user_id: uuid.UUID,
    badge_id: str,
    unlocked_at: datetime,
) -> bool:
    """Insert a badge unlock unless the (user, badge) pair already exists.

    Returns True only when this call created the row. The UNIQUE
    constraint decides races: the losing insert hits ON CONFLICT DO NOTHING.
    """
    dialect = db.get_bind().dialect.name
    insert = _DIALECT_INSERTS.get(dialect)
    if insert is None:
        msg = f"Unsupported database dialect for badge unlocks: {dialect}"
        raise RuntimeError(msg)

    table = BadgeUnlock.__table__
    stmt = (
        insert(table)
        .values(user_id=user_id, badge_id=badge_id, unlocked_at=unlocked_at)
        .on_conflict_do_nothing(index_elements=["user_id", "badge_id"])
        .returning(table.c.id)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none() is not None


class AwardService:
    """The engine's only mutating entry point."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        users: UserDirectory,
        counters: CounterLookup,
        rules: BadgeRuleSet,
        bus: EventBus,
        max_attempts: int = 3,
        locks: UserLockRegistry | None = None,
    ) -> None:
        if max_attempts < 1:
            msg = "max_attempts must be >= 1"
            raise ValueError(msg)
        self.session_factory = session_factory
        self.users = users
        self.counters = counters
        self.rules = rules
        self.bus = bus
        self.max_attempts = max_attempts
        self.locks = locks or UserLockRegistry()

    async def award(self, action: AchievementAction, user_id: uuid.UUID) -> AchievementResult:
        """Grant ``action``'s XP to the user and evaluate badges.

        Unknown users get the zero result with no side effects. Raises
        PersistenceFailure if the user lookup fails or nothing could be
        committed; in that case no event is published.
        """
        try:
            known = await self.users.exists(user_id)
        except Exception as exc:
            logger.error("User lookup failed for user %s", user_id, exc_info=True)
            raise PersistenceFailure(user_id, f"user lookup failed: {exc}") from exc

        if not known:
            logger.info("Award skipped for unknown user %s (action=%s)", user_id, action.analytics_key)
            return AchievementResult()

        async with self.locks.hold(user_id):
            result = await self._award_with_retry(action, user_id)

        self.bus.publish(AchievementUpdated.from_result(user_id, result))
        return result

    async def _award_with_retry(self, action: AchievementAction, user_id: uuid.UUID) -> AchievementResult:
        last_conflict: ConcurrentUpdateConflict | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await self._apply(action, user_id)
            except ConcurrentUpdateConflict as exc:
                last_conflict = exc
                logger.warning(
                    "Stats conflict for user %s (attempt %d/%d)",
                    user_id, attempt, self.max_attempts,
                )

        logger.error("Giving up award for user %s after %d attempts", user_id, self.max_attempts)
        raise PersistenceFailure(
            user_id, f"concurrent updates persisted after {self.max_attempts} attempts"
        ) from last_conflict

    async def _apply(self, action: AchievementAction, user_id: uuid.UUID) -> AchievementResult:
        async with self.session_factory() as db:
            try:
                stats = await get_or_create_stats(db, user_id)
                old_level = stats.level
                new_xp = stats.experience + action.xp_value
                new_level = level_for_xp(new_xp)
                leveled_up = new_level > old_level

                candidates = await self.rules.evaluate(
                    self.counters, user_id, action, new_level, leveled_up
                )

                now = datetime.now(timezone.utc)
                stats.experience = new_xp
                stats.level = new_level
                stats.updated_at = now
                await db.flush()

                new_badges = [
                    badge_id
                    for badge_id in candidates
                    if await unlock_badge(db, user_id, badge_id, now)
                ]

                await db.commit()
            except (StaleDataError, IntegrityError) as exc:
                await db.rollback()
                raise ConcurrentUpdateConflict(user_id) from exc
            except SQLAlchemyError as exc:
                await db.rollback()
                logger.error("Award commit failed for user %s", user_id, exc_info=True)
                raise PersistenceFailure(user_id, str(exc)) from exc

        for badge_id in new_badges:
            logger.info("Badge unlocked: %s (user=%s)", badge_id, user_id)

        return AchievementResult(
            experience=new_xp,
            level=new_level,
            leveled_up=leveled_up,
            new_badges=new_badges,
        )

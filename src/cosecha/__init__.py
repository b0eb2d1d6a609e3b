"""Cosecha achievement and progression engine."""

from cosecha.gamification.actions import AchievementAction
from cosecha.gamification.award_service import AwardService
from cosecha.gamification.errors import (
    AchievementError,
    ConcurrentUpdateConflict,
    CounterLookupError,
    PersistenceFailure,
)
from cosecha.gamification.events import EventBus
from cosecha.gamification.schemas import AchievementResult, AchievementUpdated
from cosecha.runtime import AchievementEngine, achievement_engine

__all__ = [
    "AchievementAction",
    "AchievementEngine",
    "AchievementError",
    "AchievementResult",
    "AchievementUpdated",
    "AwardService",
    "ConcurrentUpdateConflict",
    "CounterLookupError",
    "EventBus",
    "PersistenceFailure",
    "achievement_engine",
]

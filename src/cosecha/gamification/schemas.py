"""Pydantic models for award results, events and summaries."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class AchievementResult(BaseModel):
    """Outcome of one award call. The default instance is the zero result."""

    model_config = ConfigDict(frozen=True)

    experience: int = 0
    level: int = 1
    leveled_up: bool = False
    new_badges: list[str] = []


class AchievementUpdated(BaseModel):
    """Published once per committed award."""

    model_config = ConfigDict(frozen=True)

    user_id: uuid.UUID
    experience: int
    level: int
    leveled_up: bool
    new_badges: list[str] = []

    @classmethod
    def from_result(cls, user_id: uuid.UUID, result: AchievementResult) -> AchievementUpdated:
        return cls(
            user_id=user_id,
            experience=result.experience,
            level=result.level,
            leveled_up=result.leveled_up,
            new_badges=list(result.new_badges),
        )


class EarnedBadge(BaseModel):
    badge_id: str
    unlocked_at: datetime
    title_key: str
    description_key: str
    icon: str


class AchievementSummary(BaseModel):
    experience: int = 0
    level: int = 1
    xp_into_level: int = 0
    xp_for_level: int = 100
    next_level: int = 2
    progress: float = 0.0
    badges: list[EarnedBadge] = []

"""User actions that earn experience."""

from __future__ import annotations

from enum import Enum


class AchievementAction(str, Enum):
    CREATE_TASK = "create_task"
    ADD_PROGRESS_LOG = "add_progress_log"
    ACCEPT_RECOMMENDATION = "accept_recommendation"

    @property
    def xp_value(self) -> int:
        return ACTION_XP[self]

    @property
    def analytics_key(self) -> str:
        return self.value


ACTION_XP: dict[AchievementAction, int] = {
    AchievementAction.CREATE_TASK: 50,
    AchievementAction.ADD_PROGRESS_LOG: 30,
    AchievementAction.ACCEPT_RECOMMENDATION: 20,
}

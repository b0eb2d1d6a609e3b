"""Achievement engine error taxonomy."""

from __future__ import annotations

import uuid


class AchievementError(Exception):
    """Base class for achievement engine errors."""


class PersistenceFailure(AchievementError):
    """The award could not be committed; nothing was granted."""

    def __init__(self, user_id: uuid.UUID, reason: str) -> None:
        super().__init__(f"Award for user {user_id} not committed: {reason}")
        self.user_id = user_id
        self.reason = reason


class CounterLookupError(PersistenceFailure):
    """A task/progress-log counter could not be read."""


class ConcurrentUpdateConflict(AchievementError):
    """Another writer changed the user's stats between read and commit."""

    def __init__(self, user_id: uuid.UUID) -> None:
        super().__init__(f"Concurrent update of stats for user {user_id}")
        self.user_id = user_id

"""Presentation-side subscribers: celebratory overlay and summary banner.

Both only hold state for the UI layer to render. The overlay hides
itself after a fixed duration using the event loop's timer.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cosecha.gamification.badges import BadgeRegistry
from cosecha.gamification.schemas import AchievementSummary, AchievementUpdated
from cosecha.gamification.summary_service import get_achievement_summary

LEVEL_UP_MESSAGE_KEY = "level_up_message"


@dataclass(frozen=True)
class Celebration:
    kind: str  # "level" | "badge"
    user_id: uuid.UUID
    level: int
    badges: tuple[str, ...]
    banner_key: str
    confetti: bool


class CelebrationOverlay:
    """Confetti plus banner for the most recent level-up or badge unlock."""

    def __init__(self, registry: BadgeRegistry, display_seconds: float = 4.0) -> None:
        self.registry = registry
        self.display_seconds = display_seconds
        self.current: Celebration | None = None
        self._dismiss_handle: asyncio.TimerHandle | None = None

    def __call__(self, event: AchievementUpdated) -> None:
        if event.leveled_up:
            self.show(
                Celebration(
                    kind="level",
                    user_id=event.user_id,
                    level=event.level,
                    badges=tuple(event.new_badges),
                    banner_key=LEVEL_UP_MESSAGE_KEY,
                    confetti=True,
                )
            )
        elif event.new_badges:
            self.show(
                Celebration(
                    kind="badge",
                    user_id=event.user_id,
                    level=event.level,
                    badges=tuple(event.new_badges),
                    banner_key=self.registry.title_key(event.new_badges[0]),
                    confetti=False,
                )
            )

    def show(self, celebration: Celebration) -> None:
        """Display ``celebration``, replacing any visible one and restarting the timer."""
        if self._dismiss_handle is not None:
            self._dismiss_handle.cancel()
        self.current = celebration
        loop = asyncio.get_running_loop()
        self._dismiss_handle = loop.call_later(self.display_seconds, self.dismiss)

    def dismiss(self) -> None:
        self.current = None
        if self._dismiss_handle is not None:
            self._dismiss_handle.cancel()
            self._dismiss_handle = None


class SummaryBanner:
    """Keeps the latest achievement summary per user, refreshed on every award."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], registry: BadgeRegistry) -> None:
        self.session_factory = session_factory
        self.registry = registry
        self._latest: dict[uuid.UUID, AchievementSummary] = {}

    async def __call__(self, event: AchievementUpdated) -> None:
        await self.refresh(event.user_id)

    async def refresh(self, user_id: uuid.UUID) -> AchievementSummary:
        """Reload the user's summary; a read that finishes late never replaces a newer one."""
        async with self.session_factory() as db:
            summary = await get_achievement_summary(db, self.registry, user_id)
        current = self._latest.get(user_id)
        if current is not None and current.experience > summary.experience:
            return current
        self._latest[user_id] = summary
        return summary

    def latest(self, user_id: uuid.UUID) -> AchievementSummary | None:
        return self._latest.get(user_id)

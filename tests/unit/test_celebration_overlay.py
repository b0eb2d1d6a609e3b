"""Celebration overlay tests — what is shown and when it hides itself."""

from __future__ import annotations

import asyncio
import uuid

import pytest

from cosecha.gamification.badges import default_registry
from cosecha.gamification.schemas import AchievementUpdated
from cosecha.ui.celebration import LEVEL_UP_MESSAGE_KEY, CelebrationOverlay


def make_event(**overrides) -> AchievementUpdated:
    values = {
        "user_id": uuid.uuid4(),
        "experience": 100,
        "level": 2,
        "leveled_up": False,
        "new_badges": [],
    }
    values.update(overrides)
    return AchievementUpdated(**values)


class TestCelebrationOverlay:
    @pytest.mark.asyncio
    async def test_level_up_shows_confetti(self):
        overlay = CelebrationOverlay(default_registry(), display_seconds=10)
        overlay(make_event(leveled_up=True))

        assert overlay.current is not None
        assert overlay.current.kind == "level"
        assert overlay.current.level == 2
        assert overlay.current.confetti is True
        assert overlay.current.banner_key == LEVEL_UP_MESSAGE_KEY
        overlay.dismiss()

    @pytest.mark.asyncio
    async def test_badge_banner_uses_first_badge_title(self):
        overlay = CelebrationOverlay(default_registry(), display_seconds=10)
        overlay(make_event(new_badges=["explorer", "first_task"]))

        assert overlay.current.kind == "badge"
        assert overlay.current.banner_key == "badge_explorer_title"
        assert overlay.current.badges == ("explorer", "first_task")
        assert overlay.current.confetti is False
        overlay.dismiss()

    @pytest.mark.asyncio
    async def test_plain_xp_gain_shows_nothing(self):
        overlay = CelebrationOverlay(default_registry(), display_seconds=10)
        overlay(make_event())
        assert overlay.current is None

    @pytest.mark.asyncio
    async def test_auto_dismisses(self):
        overlay = CelebrationOverlay(default_registry(), display_seconds=0.01)
        overlay(make_event(leveled_up=True))
        assert overlay.current is not None

        await asyncio.sleep(0.05)
        assert overlay.current is None

    @pytest.mark.asyncio
    async def test_newer_celebration_restarts_timer(self):
        overlay = CelebrationOverlay(default_registry(), display_seconds=0.2)
        overlay(make_event(leveled_up=True))
        await asyncio.sleep(0.12)
        overlay(make_event(new_badges=["first_task"]))
        await asyncio.sleep(0.12)

        # The first timer would have fired by now; the second has not.
        assert overlay.current is not None
        assert overlay.current.kind == "badge"

        await asyncio.sleep(0.2)
        assert overlay.current is None

"""Shared test fixtures."""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from cosecha.db.base import Base
from cosecha.db.models import ProgressLog, Task, User, UserStats
from cosecha.gamification.award_service import AwardService
from cosecha.gamification.badge_rules import default_rule_set
from cosecha.gamification.badges import default_registry
from cosecha.gamification.collaborators import SqlUserDirectory
from cosecha.gamification.events import EventBus
from cosecha.gamification.schemas import AchievementUpdated


class FakeCounters:
    """In-memory counter lookup; tests bump counts as the CRUD layer would."""

    def __init__(self) -> None:
        self.tasks: dict[uuid.UUID, int] = {}
        self.logs: dict[uuid.UUID, int] = {}
        self.calls = 0

    async def count_tasks(self, user_id: uuid.UUID) -> int:
        self.calls += 1
        return self.tasks.get(user_id, 0)

    async def count_progress_logs(self, user_id: uuid.UUID) -> int:
        return self.logs.get(user_id, 0)


class RecordingSubscriber:
    def __init__(self) -> None:
        self.events: list[AchievementUpdated] = []

    def __call__(self, event: AchievementUpdated) -> None:
        self.events.append(event)


@pytest_asyncio.fixture
async def session_factory(tmp_path: Path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Fresh SQLite database file with all tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'cosecha_test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def user_id(session_factory: async_sessionmaker[AsyncSession]) -> uuid.UUID:
    """A registered user with no stats yet."""
    return await create_user(session_factory, "gardener")


async def create_user(session_factory: async_sessionmaker[AsyncSession], username: str) -> uuid.UUID:
    async with session_factory() as db:
        user = User(id=uuid.uuid4(), username=username)
        db.add(user)
        await db.commit()
        return user.id


async def add_tasks(session_factory: async_sessionmaker[AsyncSession], user_id: uuid.UUID, count: int) -> None:
    async with session_factory() as db:
        for i in range(count):
            db.add(Task(user_id=user_id, title=f"Water tomatoes #{i}"))
        await db.commit()


async def add_progress_logs(session_factory: async_sessionmaker[AsyncSession], user_id: uuid.UUID, count: int) -> None:
    async with session_factory() as db:
        for i in range(count):
            db.add(ProgressLog(user_id=user_id, note=f"Sprouted {i} cm"))
        await db.commit()


async def load_stats(session_factory: async_sessionmaker[AsyncSession], user_id: uuid.UUID) -> UserStats | None:
    async with session_factory() as db:
        return await db.get(UserStats, user_id)


@pytest.fixture
def counters() -> FakeCounters:
    return FakeCounters()


@pytest.fixture
def registry():
    return default_registry()


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def recorder(bus: EventBus) -> RecordingSubscriber:
    subscriber = RecordingSubscriber()
    bus.subscribe(AchievementUpdated, subscriber)
    return subscriber


@pytest.fixture
def award_service(session_factory, counters, registry, bus) -> AwardService:
    return AwardService(
        session_factory=session_factory,
        users=SqlUserDirectory(session_factory),
        counters=counters,
        rules=default_rule_set(registry),
        bus=bus,
        max_attempts=3,
    )

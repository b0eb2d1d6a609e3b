"""Narrow capabilities the award engine consumes from the app's object store."""

from __future__ import annotations

import uuid
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cosecha.db.models import ProgressLog, Task, User


class CounterLookup(Protocol):
    """Per-user counts used by badge rules. Must reflect committed state."""

    async def count_tasks(self, user_id: uuid.UUID) -> int: ...

    async def count_progress_logs(self, user_id: uuid.UUID) -> int: ...


class UserDirectory(Protocol):
    async def exists(self, user_id: uuid.UUID) -> bool: ...


class SqlCounterLookup:
    """Counts rows in ``tasks`` and ``progress_logs``, one short session per call."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def count_tasks(self, user_id: uuid.UUID) -> int:
        async with self.session_factory() as db:
            result = await db.execute(
                select(func.count(Task.id)).where(Task.user_id == user_id)
            )
            return result.scalar_one()

    async def count_progress_logs(self, user_id: uuid.UUID) -> int:
        async with self.session_factory() as db:
            result = await db.execute(
                select(func.count(ProgressLog.id)).where(ProgressLog.user_id == user_id)
            )
            return result.scalar_one()


class SqlUserDirectory:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def exists(self, user_id: uuid.UUID) -> bool:
        async with self.session_factory() as db:
            result = await db.execute(select(User.id).where(User.id == user_id))
            return result.scalar_one_or_none() is not None

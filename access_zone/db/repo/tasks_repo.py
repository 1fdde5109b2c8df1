from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from access_zone.db.models.tasks import Task


class TasksRepo:
    @staticmethod
    async def create(session: AsyncSession, *, task: Task) -> Task:
        session.add(task)
        await session.flush()
        return task

    @staticmethod
    async def count_for_user_since(
        session: AsyncSession,
        *,
        user_id: UUID,
        task_type: str,
        since_utc: datetime,
    ) -> int:
        stmt = select(func.count(Task.id)).where(
            Task.user_id == user_id,
            Task.task_type == task_type,
            Task.completed_at >= since_utc,
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def list_completed_at(
        session: AsyncSession,
        *,
        user_id: UUID,
        task_type: str,
        limit: int = 14,
    ) -> list[datetime]:
        stmt = (
            select(Task.completed_at)
            .where(Task.user_id == user_id, Task.task_type == task_type)
            .order_by(Task.completed_at.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

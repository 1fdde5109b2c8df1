from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from access_zone.db.models.profiles import Profile
from access_zone.db.models.tasks import Task
from access_zone.db.models.transactions import Transaction


class ProfilesRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, user_id: UUID) -> Profile | None:
        return await session.get(Profile, user_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, user_id: UUID) -> Profile | None:
        stmt = select(Profile).where(Profile.id == user_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, profile: Profile) -> Profile:
        session.add(profile)
        await session.flush()
        return profile

    @staticmethod
    async def list_all(session: AsyncSession) -> list[Profile]:
        stmt = select(Profile).order_by(Profile.created_at.asc(), Profile.id.asc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_ids(session: AsyncSession) -> list[UUID]:
        stmt = select(Profile.id).order_by(Profile.created_at.asc(), Profile.id.asc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_top_by_points(session: AsyncSession, *, limit: int) -> list[Profile]:
        stmt = (
            select(Profile)
            .order_by(Profile.points.desc(), Profile.created_at.asc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_with_activity_counts(
        session: AsyncSession,
        *,
        limit: int = 500,
    ) -> list[tuple[Profile, int, int]]:
        tx_count = (
            select(func.count(Transaction.id))
            .where(Transaction.user_id == Profile.id)
            .correlate(Profile)
            .scalar_subquery()
        )
        task_count = (
            select(func.count(Task.id))
            .where(Task.user_id == Profile.id)
            .correlate(Profile)
            .scalar_subquery()
        )
        stmt = (
            select(Profile, tx_count.label("transaction_count"), task_count.label("task_count"))
            .order_by(Profile.created_at.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return [(profile, int(txs or 0), int(tasks or 0)) for profile, txs, tasks in result.all()]

    @staticmethod
    async def set_status(
        session: AsyncSession,
        *,
        profile: Profile,
        status: str,
        suspended_until: datetime | None,
        now_utc: datetime,
    ) -> Profile:
        profile.status = status
        profile.suspended_until = suspended_until
        profile.updated_at = now_utc
        await session.flush()
        return profile

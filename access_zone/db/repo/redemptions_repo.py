from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from access_zone.db.models.profiles import Profile
from access_zone.db.models.redemption_requests import RedemptionRequest


class RedemptionsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, request: RedemptionRequest) -> RedemptionRequest:
        session.add(request)
        await session.flush()
        return request

    @staticmethod
    async def delete_by_id(session: AsyncSession, request_id: UUID) -> int:
        result = await session.execute(
            delete(RedemptionRequest).where(RedemptionRequest.id == request_id)
        )
        return int(result.rowcount or 0)

    @staticmethod
    async def get_by_id_for_update(
        session: AsyncSession, request_id: UUID
    ) -> RedemptionRequest | None:
        stmt = select(RedemptionRequest).where(RedemptionRequest.id == request_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_all_with_profiles(
        session: AsyncSession,
        *,
        status: str | None = None,
        limit: int = 500,
    ) -> list[tuple[RedemptionRequest, str, str | None]]:
        stmt = (
            select(RedemptionRequest, Profile.email, Profile.full_name)
            .join(Profile, Profile.id == RedemptionRequest.user_id)
            .order_by(RedemptionRequest.created_at.desc())
            .limit(limit)
        )
        if status is not None:
            stmt = stmt.where(RedemptionRequest.status == status)
        result = await session.execute(stmt)
        return [(request, str(email), full_name) for request, email, full_name in result.all()]

    @staticmethod
    async def list_recent(session: AsyncSession, *, limit: int = 10) -> list[RedemptionRequest]:
        stmt = select(RedemptionRequest).order_by(RedemptionRequest.created_at.desc()).limit(limit)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_for_user(
        session: AsyncSession,
        *,
        user_id: UUID,
        limit: int = 100,
    ) -> list[RedemptionRequest]:
        stmt = (
            select(RedemptionRequest)
            .where(RedemptionRequest.user_id == user_id)
            .order_by(RedemptionRequest.created_at.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from access_zone.db.models.points_audit_log import PointsAuditEntry


class PointsAuditRepo:
    @staticmethod
    async def create(session: AsyncSession, *, entry: PointsAuditEntry) -> PointsAuditEntry:
        session.add(entry)
        await session.flush()
        return entry

    @staticmethod
    async def list_for_user(
        session: AsyncSession,
        *,
        user_id: UUID,
        limit: int = 100,
    ) -> list[PointsAuditEntry]:
        stmt = (
            select(PointsAuditEntry)
            .where(PointsAuditEntry.user_id == user_id)
            .order_by(PointsAuditEntry.changed_at.desc(), PointsAuditEntry.id.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from access_zone.db.models.subscription_availability import SubscriptionAvailability


class SubscriptionsRepo:
    @staticmethod
    async def list_all(session: AsyncSession) -> list[SubscriptionAvailability]:
        stmt = select(SubscriptionAvailability).order_by(
            SubscriptionAvailability.category.asc(),
            SubscriptionAvailability.subscription_id.asc(),
            SubscriptionAvailability.duration.asc(),
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_by_id(session: AsyncSession, item_id: UUID) -> SubscriptionAvailability | None:
        return await session.get(SubscriptionAvailability, item_id)

    @staticmethod
    async def get_by_subscription(
        session: AsyncSession,
        *,
        subscription_id: str,
        duration: str,
    ) -> SubscriptionAvailability | None:
        stmt = select(SubscriptionAvailability).where(
            SubscriptionAvailability.subscription_id == subscription_id,
            SubscriptionAvailability.duration == duration,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        session: AsyncSession, *, item: SubscriptionAvailability
    ) -> SubscriptionAvailability:
        session.add(item)
        await session.flush()
        return item

    @staticmethod
    async def delete_by_id(session: AsyncSession, item_id: UUID) -> int:
        result = await session.execute(
            delete(SubscriptionAvailability).where(SubscriptionAvailability.id == item_id)
        )
        return int(result.rowcount or 0)

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID, uuid4

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from access_zone.db.models.subscription_availability import SubscriptionAvailability
from access_zone.db.repo.subscriptions_repo import SubscriptionsRepo
from access_zone.economy.catalog.errors import CatalogItemConflictError, CatalogItemNotFoundError

logger = structlog.get_logger(__name__)

DEFAULT_CATEGORY = "other"


def default_display_name(subscription_id: str) -> str:
    return subscription_id.replace("_", " ").strip()


class CatalogService:
    @staticmethod
    async def _get_item(session: AsyncSession, item_id: UUID) -> SubscriptionAvailability:
        item = await SubscriptionsRepo.get_by_id(session, item_id)
        if item is None:
            raise CatalogItemNotFoundError
        return item

    @staticmethod
    async def set_in_stock(
        session: AsyncSession,
        *,
        item_id: UUID,
        in_stock: bool,
        now_utc: datetime | None = None,
    ) -> SubscriptionAvailability:
        item = await CatalogService._get_item(session, item_id)
        item.in_stock = in_stock
        item.updated_at = now_utc or datetime.now(timezone.utc)
        logger.info("catalog_stock_updated", item_id=str(item_id), in_stock=in_stock)
        return item

    @staticmethod
    async def add_item(
        session: AsyncSession,
        *,
        subscription_id: str,
        duration: str,
        points_cost: int | None,
        display_name: str | None = None,
        description: str | None = None,
        category: str | None = None,
        now_utc: datetime | None = None,
    ) -> SubscriptionAvailability:
        now_utc = now_utc or datetime.now(timezone.utc)
        subscription_id = subscription_id.strip()
        duration = duration.strip()
        if not subscription_id or not duration:
            raise ValueError("subscription_id and duration are required")
        if points_cost is not None and points_cost <= 0:
            raise ValueError("points_cost must be positive")

        existing = await SubscriptionsRepo.get_by_subscription(
            session,
            subscription_id=subscription_id,
            duration=duration,
        )
        if existing is not None:
            raise CatalogItemConflictError

        try:
            async with session.begin_nested():
                item = await SubscriptionsRepo.create(
                    session,
                    item=SubscriptionAvailability(
                        id=uuid4(),
                        subscription_id=subscription_id,
                        duration=duration,
                        points_cost=points_cost,
                        in_stock=True,
                        display_name=(display_name or "").strip()
                        or default_display_name(subscription_id),
                        description=description,
                        category=(category or "").strip() or DEFAULT_CATEGORY,
                        created_at=now_utc,
                        updated_at=now_utc,
                    ),
                )
        except IntegrityError as exc:
            raise CatalogItemConflictError from exc

        logger.info("catalog_item_added", subscription_id=subscription_id, duration=duration)
        return item

    @staticmethod
    async def set_points_cost(
        session: AsyncSession,
        *,
        item_id: UUID,
        points_cost: int,
        now_utc: datetime | None = None,
    ) -> SubscriptionAvailability:
        if points_cost <= 0:
            raise ValueError("points_cost must be positive")
        item = await CatalogService._get_item(session, item_id)
        item.points_cost = points_cost
        item.updated_at = now_utc or datetime.now(timezone.utc)
        return item

    @staticmethod
    async def delete_item(session: AsyncSession, *, item_id: UUID) -> None:
        if await SubscriptionsRepo.delete_by_id(session, item_id) == 0:
            raise CatalogItemNotFoundError

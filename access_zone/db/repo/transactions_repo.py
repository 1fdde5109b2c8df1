from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import case, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from access_zone.db.models.profiles import Profile
from access_zone.db.models.transactions import Transaction


class TransactionsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, transaction: Transaction) -> Transaction:
        session.add(transaction)
        await session.flush()
        return transaction

    @staticmethod
    async def delete_by_id(session: AsyncSession, transaction_id: UUID) -> int:
        result = await session.execute(delete(Transaction).where(Transaction.id == transaction_id))
        return int(result.rowcount or 0)

    @staticmethod
    async def list_for_user(
        session: AsyncSession,
        *,
        user_id: UUID,
        limit: int | None = None,
    ) -> list[Transaction]:
        stmt = (
            select(Transaction)
            .where(Transaction.user_id == user_id)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def sum_by_type_for_user(session: AsyncSession, *, user_id: UUID) -> tuple[int, int]:
        stmt = select(
            func.coalesce(
                func.sum(case((Transaction.type == "earn", Transaction.points), else_=0)), 0
            ),
            func.coalesce(
                func.sum(case((Transaction.type == "redeem", Transaction.points), else_=0)), 0
            ),
        ).where(Transaction.user_id == user_id)
        result = await session.execute(stmt)
        earned, redeemed = result.one()
        return int(earned or 0), int(redeemed or 0)

    @staticmethod
    async def find_recent_duplicate(
        session: AsyncSession,
        *,
        user_id: UUID,
        type_: str,
        points: int,
        description: str,
        since_utc: datetime,
    ) -> Transaction | None:
        stmt = (
            select(Transaction)
            .where(
                Transaction.user_id == user_id,
                Transaction.type == type_,
                Transaction.points == points,
                Transaction.description == description,
                Transaction.created_at >= since_utc,
            )
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_recent_with_email(
        session: AsyncSession,
        *,
        limit: int = 10,
    ) -> list[tuple[Transaction, str]]:
        stmt = (
            select(Transaction, Profile.email)
            .join(Profile, Profile.id == Transaction.user_id)
            .order_by(Transaction.created_at.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return [(transaction, str(email)) for transaction, email in result.all()]

    @staticmethod
    async def ledger_totals_by_user(session: AsyncSession) -> dict[UUID, tuple[int, int]]:
        stmt = select(
            Transaction.user_id,
            func.coalesce(
                func.sum(case((Transaction.type == "earn", Transaction.points), else_=0)), 0
            ),
            func.coalesce(
                func.sum(case((Transaction.type == "redeem", Transaction.points), else_=0)), 0
            ),
        ).group_by(Transaction.user_id)
        result = await session.execute(stmt)
        return {
            user_id: (int(earned or 0), int(redeemed or 0))
            for user_id, earned, redeemed in result.all()
        }

    @staticmethod
    async def count_all(session: AsyncSession) -> int:
        result = await session.execute(select(func.count(Transaction.id)))
        return int(result.scalar_one() or 0)

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from access_zone.db.models.profiles import Profile
from access_zone.db.models.promo_code_redemptions import PromoCodeRedemption
from access_zone.db.models.promo_codes import PromoCode


class PromoRepo:
    @staticmethod
    async def get_code_by_code(session: AsyncSession, code: str) -> PromoCode | None:
        stmt = select(PromoCode).where(PromoCode.code == code)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_code_by_code_for_update(session: AsyncSession, code: str) -> PromoCode | None:
        stmt = select(PromoCode).where(PromoCode.code == code).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_code_by_id(session: AsyncSession, promo_code_id: UUID) -> PromoCode | None:
        return await session.get(PromoCode, promo_code_id)

    @staticmethod
    async def list_codes(session: AsyncSession, *, limit: int = 500) -> list[PromoCode]:
        stmt = select(PromoCode).order_by(PromoCode.created_at.desc()).limit(limit)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_existing_codes(session: AsyncSession, codes: list[str]) -> set[str]:
        if not codes:
            return set()
        stmt = select(PromoCode.code).where(PromoCode.code.in_(codes))
        result = await session.execute(stmt)
        return set(result.scalars().all())

    @staticmethod
    async def create_code(session: AsyncSession, *, promo_code: PromoCode) -> PromoCode:
        session.add(promo_code)
        await session.flush()
        return promo_code

    @staticmethod
    async def create_codes(session: AsyncSession, *, promo_codes: list[PromoCode]) -> list[PromoCode]:
        session.add_all(promo_codes)
        await session.flush()
        return promo_codes

    @staticmethod
    async def delete_code(session: AsyncSession, promo_code_id: UUID) -> int:
        result = await session.execute(delete(PromoCode).where(PromoCode.id == promo_code_id))
        return int(result.rowcount or 0)

    @staticmethod
    async def get_redemption_by_code_and_user(
        session: AsyncSession,
        *,
        promo_code_id: UUID,
        user_id: UUID,
    ) -> PromoCodeRedemption | None:
        stmt = select(PromoCodeRedemption).where(
            PromoCodeRedemption.promo_code_id == promo_code_id,
            PromoCodeRedemption.user_id == user_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create_redemption(
        session: AsyncSession, *, redemption: PromoCodeRedemption
    ) -> PromoCodeRedemption:
        session.add(redemption)
        await session.flush()
        return redemption

    @staticmethod
    async def list_redemptions_for_user(
        session: AsyncSession,
        *,
        user_id: UUID,
        limit: int = 20,
    ) -> list[tuple[PromoCodeRedemption, str]]:
        stmt = (
            select(PromoCodeRedemption, PromoCode.code)
            .join(PromoCode, PromoCode.id == PromoCodeRedemption.promo_code_id)
            .where(PromoCodeRedemption.user_id == user_id)
            .order_by(PromoCodeRedemption.created_at.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return [(redemption, str(code)) for redemption, code in result.all()]

    @staticmethod
    async def list_redemptions_for_code(
        session: AsyncSession,
        *,
        promo_code_id: UUID,
        limit: int = 100,
    ) -> list[tuple[PromoCodeRedemption, str]]:
        stmt = (
            select(PromoCodeRedemption, Profile.email)
            .join(Profile, Profile.id == PromoCodeRedemption.user_id)
            .where(PromoCodeRedemption.promo_code_id == promo_code_id)
            .order_by(PromoCodeRedemption.created_at.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return [(redemption, str(email)) for redemption, email in result.all()]

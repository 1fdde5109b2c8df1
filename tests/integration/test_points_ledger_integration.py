from __future__ import annotations

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from access_zone.db.repo.profiles_repo import ProfilesRepo
from access_zone.db.repo.transactions_repo import TransactionsRepo
from access_zone.db.session import SessionLocal
from access_zone.economy.ledger.service import LedgerService
from tests.integration.rewards_fixtures import NOW, create_profile


@pytest.mark.asyncio
async def test_recalculation_matches_stored_transactions() -> None:
    user_id = await create_profile("ledger-user")

    async with SessionLocal.begin() as session:
        profile = await ProfilesRepo.get_by_id_for_update(session, user_id)
        await LedgerService.append_entry(
            session,
            profile=profile,
            type_="earn",
            points=300,
            description="Seed earn",
            task_type=None,
            now_utc=NOW,
        )
        await LedgerService.debit_points(
            session,
            profile=profile,
            points=120,
            description="Redeemed: Netflix (1 month)",
            task_type=None,
            now_utc=NOW,
        )

    async with SessionLocal.begin() as session:
        await session.execute(
            text("UPDATE profiles SET points = 999 WHERE id = :user_id"),
            {"user_id": user_id},
        )

    async with SessionLocal.begin() as session:
        result = await LedgerService.recalculate_user_points(
            session,
            user_id=user_id,
            changed_by="integration",
            now_utc=NOW,
        )
        earned, redeemed = await TransactionsRepo.sum_by_type_for_user(session, user_id=user_id)

    assert (earned, redeemed) == (300, 120)
    assert result.old_points == 999
    assert result.new_points == 180
    assert result.fixed is True


@pytest.mark.asyncio
async def test_profile_points_cannot_go_negative() -> None:
    user_id = await create_profile("negative-guard", points=10)

    with pytest.raises(IntegrityError):
        async with SessionLocal.begin() as session:
            await session.execute(
                text("UPDATE profiles SET points = -1 WHERE id = :user_id"),
                {"user_id": user_id},
            )

from __future__ import annotations

import asyncio
from uuid import UUID

import pytest

from access_zone.db.repo.promo_repo import PromoRepo
from access_zone.db.session import SessionLocal
from access_zone.economy.promo.errors import PromoAlreadyRedeemedError, PromoExhaustedError
from access_zone.economy.promo.service import PromoService
from tests.integration.rewards_fixtures import NOW, create_profile, create_promo_code


async def _redeem(user_id: UUID, code: str):
    async with SessionLocal.begin() as session:
        return await PromoService.redeem(session, user_id=user_id, promo_code=code, now_utc=NOW)


@pytest.mark.asyncio
async def test_single_use_code_is_redeemed_once_under_concurrency() -> None:
    await create_promo_code("LASTONE", points=75, max_uses=1)
    users = [await create_profile(f"racer-{index}") for index in range(4)]

    results = await asyncio.gather(
        *(_redeem(user_id, "LASTONE") for user_id in users),
        return_exceptions=True,
    )

    successes = [item for item in results if not isinstance(item, Exception)]
    failures = [item for item in results if isinstance(item, Exception)]
    assert len(successes) == 1
    assert all(isinstance(item, PromoExhaustedError) for item in failures)

    async with SessionLocal.begin() as session:
        promo_code = await PromoRepo.get_code_by_code(session, "LASTONE")
    assert promo_code is not None
    assert promo_code.current_uses == 1


@pytest.mark.asyncio
async def test_same_user_cannot_redeem_twice_concurrently() -> None:
    await create_promo_code("DOUBLE", points=40)
    user_id = await create_profile("double-dipper")

    results = await asyncio.gather(
        _redeem(user_id, "DOUBLE"),
        _redeem(user_id, "DOUBLE"),
        return_exceptions=True,
    )

    assert sum(1 for item in results if not isinstance(item, Exception)) == 1
    assert any(isinstance(item, PromoAlreadyRedeemedError) for item in results)

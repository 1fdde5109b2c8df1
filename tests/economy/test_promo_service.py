from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

import pytest

from access_zone.economy.promo.errors import (
    PromoAlreadyRedeemedError,
    PromoCodeConflictError,
    PromoCodeNotFoundError,
    PromoExhaustedError,
    PromoExpiredError,
    PromoInactiveError,
    PromoInvalidError,
    PromoNotStartedError,
    PromoUserNotFoundError,
)
from access_zone.economy.promo.service import PromoService
from access_zone.economy.promo.types import PromoCodeDraft
from tests.helpers import NOW, make_profile, make_promo_code


@pytest.mark.asyncio
async def test_redeem_credits_points_and_records_everything(store, session) -> None:
    profile = store.add_profile(make_profile(points=5, total_earned=5))
    promo = store.add_promo_code(make_promo_code("WELCOME100", points=100, description="Launch"))

    result = await PromoService.redeem(
        session,
        user_id=profile.id,
        promo_code=" welcome-100 ",
        now_utc=NOW,
    )

    assert result.points_awarded == 100
    assert result.new_balance == 105
    assert result.message == "Successfully redeemed 100 points!"
    assert profile.points == 105
    assert profile.total_earned == 105
    assert promo.current_uses == 1
    [redemption] = store.promo_redemptions
    assert redemption.id == result.redemption_id
    [transaction] = store.transactions
    assert transaction.description == "Promo code: WELCOME100 - Launch"
    assert transaction.task_type == "promo_code"


@pytest.mark.asyncio
async def test_second_redemption_by_same_user_is_rejected(store, session) -> None:
    profile = store.add_profile(make_profile())
    store.add_promo_code(make_promo_code("ONCE", points=10))

    await PromoService.redeem(session, user_id=profile.id, promo_code="ONCE", now_utc=NOW)
    with pytest.raises(PromoAlreadyRedeemedError):
        await PromoService.redeem(session, user_id=profile.id, promo_code="once", now_utc=NOW)

    assert profile.points == 10
    assert len(store.transactions) == 1


@pytest.mark.asyncio
async def test_already_redeemed_wins_over_exhausted(store, session) -> None:
    profile = store.add_profile(make_profile())
    store.add_promo_code(make_promo_code("SINGLE", points=10, max_uses=1))

    await PromoService.redeem(session, user_id=profile.id, promo_code="SINGLE", now_utc=NOW)
    with pytest.raises(PromoAlreadyRedeemedError):
        await PromoService.redeem(session, user_id=profile.id, promo_code="SINGLE", now_utc=NOW)


@pytest.mark.parametrize(
    ("overrides", "error"),
    [
        ({"is_active": False}, PromoInactiveError),
        ({"starts_at": NOW + timedelta(days=1)}, PromoNotStartedError),
        ({"expires_at": NOW - timedelta(seconds=1)}, PromoExpiredError),
        ({"max_uses": 3, "current_uses": 3}, PromoExhaustedError),
    ],
)
@pytest.mark.asyncio
async def test_redeem_rejects_unusable_codes(store, session, overrides, error) -> None:
    profile = store.add_profile(make_profile())
    store.add_promo_code(make_promo_code("SPRING", **overrides))

    with pytest.raises(error):
        await PromoService.redeem(session, user_id=profile.id, promo_code="SPRING", now_utc=NOW)

    assert profile.points == 0
    assert store.promo_redemptions == []
    assert store.transactions == []


@pytest.mark.asyncio
async def test_redeem_rejects_unknown_or_blank_code_and_missing_profile(store, session) -> None:
    profile = store.add_profile(make_profile())
    store.add_promo_code(make_promo_code("KNOWN"))

    with pytest.raises(PromoInvalidError):
        await PromoService.redeem(session, user_id=profile.id, promo_code="   ", now_utc=NOW)
    with pytest.raises(PromoInvalidError):
        await PromoService.redeem(session, user_id=profile.id, promo_code="NOPE", now_utc=NOW)
    with pytest.raises(PromoUserNotFoundError):
        await PromoService.redeem(session, user_id=uuid4(), promo_code="KNOWN", now_utc=NOW)


@pytest.mark.asyncio
async def test_add_code_normalises_and_rejects_conflicts(store, session) -> None:
    draft = PromoCodeDraft(code="summer-sale", points=50, description="  Summer  ")

    promo_code = await PromoService.add_code(session, draft=draft, created_by=None, now_utc=NOW)

    assert promo_code.code == "SUMMERSALE"
    assert promo_code.description == "Summer"
    assert promo_code.current_uses == 0
    with pytest.raises(PromoCodeConflictError):
        await PromoService.add_code(session, draft=draft, created_by=None, now_utc=NOW)


@pytest.mark.asyncio
async def test_add_code_validates_draft(store, session) -> None:
    with pytest.raises(ValueError, match="points must be positive"):
        await PromoService.add_code(
            session, draft=PromoCodeDraft(code="X1", points=0), created_by=None
        )
    with pytest.raises(ValueError, match="starts_at must be before expires_at"):
        await PromoService.add_code(
            session,
            draft=PromoCodeDraft(code="X2", points=5, starts_at=NOW, expires_at=NOW),
            created_by=None,
        )


@pytest.mark.asyncio
async def test_generate_codes_uses_prefix_and_template(store, session) -> None:
    template = PromoCodeDraft(code="", points=25, max_uses=1)

    codes = await PromoService.generate_codes(
        session,
        count=5,
        prefix="vip",
        template=template,
        created_by=None,
        now_utc=NOW,
    )

    assert len(codes) == 5
    assert len({item.code for item in codes}) == 5
    assert all(item.code.startswith("VIP") for item in codes)
    assert all(item.points == 25 and item.max_uses == 1 for item in codes)
    assert len(store.promo_codes) == 5


@pytest.mark.asyncio
async def test_toggle_and_delete_code(store, session) -> None:
    promo = store.add_promo_code(make_promo_code("TOGGLE"))

    updated = await PromoService.set_active(session, promo_code_id=promo.id, is_active=False)
    assert updated.is_active is False

    await PromoService.delete_code(session, promo_code_id=promo.id)
    assert store.promo_codes == {}
    with pytest.raises(PromoCodeNotFoundError):
        await PromoService.delete_code(session, promo_code_id=promo.id)
    with pytest.raises(PromoCodeNotFoundError):
        await PromoService.set_active(session, promo_code_id=promo.id, is_active=True)

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID, uuid4

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from access_zone.db.models.promo_code_redemptions import PromoCodeRedemption
from access_zone.db.models.promo_codes import PromoCode
from access_zone.db.repo.profiles_repo import ProfilesRepo
from access_zone.db.repo.promo_repo import PromoRepo
from access_zone.economy.ledger.reconciliation import EARN
from access_zone.economy.ledger.service import LedgerService
from access_zone.economy.promo.batch import generate_raw_codes
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
from access_zone.economy.promo.types import PromoCodeDraft, PromoRedeemResult
from access_zone.services.promo_codes import (
    normalize_promo_code,
    promo_transaction_description,
)

logger = structlog.get_logger(__name__)

PROMO_TASK_TYPE = "promo_code"


def _validate_code_state(promo_code: PromoCode, *, now_utc: datetime) -> None:
    if not promo_code.is_active:
        raise PromoInactiveError
    if promo_code.starts_at is not None and promo_code.starts_at > now_utc:
        raise PromoNotStartedError
    if promo_code.expires_at is not None and promo_code.expires_at < now_utc:
        raise PromoExpiredError
    if promo_code.max_uses is not None and promo_code.current_uses >= promo_code.max_uses:
        raise PromoExhaustedError


def _validate_draft(draft: PromoCodeDraft) -> str:
    code = normalize_promo_code(draft.code)
    if not code:
        raise ValueError("code is required")
    if draft.points <= 0:
        raise ValueError("points must be positive")
    if draft.max_uses is not None and draft.max_uses <= 0:
        raise ValueError("max_uses must be positive")
    if (
        draft.starts_at is not None
        and draft.expires_at is not None
        and draft.starts_at >= draft.expires_at
    ):
        raise ValueError("starts_at must be before expires_at")
    return code


def _build_code(
    draft: PromoCodeDraft,
    *,
    code: str,
    created_by: UUID | None,
    now_utc: datetime,
) -> PromoCode:
    return PromoCode(
        id=uuid4(),
        code=code,
        points=draft.points,
        description=(draft.description or "").strip() or None,
        max_uses=draft.max_uses,
        current_uses=0,
        is_active=draft.is_active,
        starts_at=draft.starts_at,
        expires_at=draft.expires_at,
        created_by=created_by,
        created_at=now_utc,
    )


class PromoService:
    @staticmethod
    async def redeem(
        session: AsyncSession,
        *,
        user_id: UUID,
        promo_code: str,
        now_utc: datetime | None = None,
    ) -> PromoRedeemResult:
        now_utc = now_utc or datetime.now(timezone.utc)
        normalized_code = normalize_promo_code(promo_code)
        if not normalized_code:
            raise PromoInvalidError

        profile = await ProfilesRepo.get_by_id_for_update(session, user_id)
        if profile is None:
            raise PromoUserNotFoundError

        matched_code = await PromoRepo.get_code_by_code_for_update(session, normalized_code)
        if matched_code is None:
            raise PromoInvalidError

        existing = await PromoRepo.get_redemption_by_code_and_user(
            session,
            promo_code_id=matched_code.id,
            user_id=user_id,
        )
        if existing is not None:
            raise PromoAlreadyRedeemedError
        _validate_code_state(matched_code, now_utc=now_utc)

        try:
            async with session.begin_nested():
                redemption = await PromoRepo.create_redemption(
                    session,
                    redemption=PromoCodeRedemption(
                        id=uuid4(),
                        user_id=user_id,
                        promo_code_id=matched_code.id,
                        points_earned=matched_code.points,
                        created_at=now_utc,
                    ),
                )
        except IntegrityError as exc:
            raise PromoAlreadyRedeemedError from exc

        change = await LedgerService.append_entry(
            session,
            profile=profile,
            type_=EARN,
            points=matched_code.points,
            description=promo_transaction_description(
                matched_code.code, matched_code.description
            ),
            task_type=PROMO_TASK_TYPE,
            now_utc=now_utc,
        )
        matched_code.current_uses += 1

        logger.info(
            "promo_code_redeemed",
            user_id=str(user_id),
            promo_code_id=str(matched_code.id),
            points=matched_code.points,
        )
        return PromoRedeemResult(
            redemption_id=redemption.id,
            promo_code_id=matched_code.id,
            code=matched_code.code,
            points_awarded=matched_code.points,
            new_balance=change.new_points,
            message=f"Successfully redeemed {matched_code.points} points!",
        )

    @staticmethod
    async def add_code(
        session: AsyncSession,
        *,
        draft: PromoCodeDraft,
        created_by: UUID | None,
        now_utc: datetime | None = None,
    ) -> PromoCode:
        now_utc = now_utc or datetime.now(timezone.utc)
        code = _validate_draft(draft)
        if await PromoRepo.get_code_by_code(session, code) is not None:
            raise PromoCodeConflictError

        try:
            async with session.begin_nested():
                promo_code = await PromoRepo.create_code(
                    session,
                    promo_code=_build_code(
                        draft,
                        code=code,
                        created_by=created_by,
                        now_utc=now_utc,
                    ),
                )
        except IntegrityError as exc:
            raise PromoCodeConflictError from exc
        return promo_code

    @staticmethod
    async def generate_codes(
        session: AsyncSession,
        *,
        count: int,
        prefix: str,
        template: PromoCodeDraft,
        created_by: UUID | None,
        now_utc: datetime | None = None,
    ) -> list[PromoCode]:
        now_utc = now_utc or datetime.now(timezone.utc)
        candidates = generate_raw_codes(count=count, prefix=prefix)
        taken = await PromoRepo.list_existing_codes(session, candidates)
        if taken:
            # regenerate around collisions with stored codes
            fresh = generate_raw_codes(
                count=len(taken),
                prefix=prefix,
                existing_codes=set(candidates) | taken,
            )
            candidates = [code for code in candidates if code not in taken] + fresh

        promo_codes = []
        for code in candidates:
            draft = PromoCodeDraft(
                code=code,
                points=template.points,
                description=template.description,
                max_uses=template.max_uses,
                starts_at=template.starts_at,
                expires_at=template.expires_at,
                is_active=template.is_active,
            )
            _validate_draft(draft)
            promo_codes.append(
                _build_code(draft, code=code, created_by=created_by, now_utc=now_utc)
            )

        await PromoRepo.create_codes(session, promo_codes=promo_codes)
        logger.info("promo_codes_generated", count=len(promo_codes), prefix=prefix)
        return promo_codes

    @staticmethod
    async def set_active(
        session: AsyncSession,
        *,
        promo_code_id: UUID,
        is_active: bool,
    ) -> PromoCode:
        promo_code = await PromoRepo.get_code_by_id(session, promo_code_id)
        if promo_code is None:
            raise PromoCodeNotFoundError
        promo_code.is_active = is_active
        return promo_code

    @staticmethod
    async def delete_code(session: AsyncSession, *, promo_code_id: UUID) -> None:
        deleted = await PromoRepo.delete_code(session, promo_code_id)
        if deleted == 0:
            raise PromoCodeNotFoundError

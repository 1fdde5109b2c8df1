from __future__ import annotations

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from access_zone.api.deps import ensure_profile_active, get_identity
from access_zone.api.schemas import (
    BalanceCheckResponse,
    LeaderboardEntry,
    ProfileResponse,
    PromoRedeemRequest,
    PromoRedeemResponse,
    PromoRedemptionResponse,
    RecalculationResponse,
    RedemptionCreateRequest,
    RedemptionResponse,
    TransactionResponse,
)
from access_zone.core.config import get_settings
from access_zone.db.models.profiles import Profile
from access_zone.db.repo.profiles_repo import ProfilesRepo
from access_zone.db.repo.promo_repo import PromoRepo
from access_zone.db.repo.redemptions_repo import RedemptionsRepo
from access_zone.db.repo.transactions_repo import TransactionsRepo
from access_zone.db.session import SessionLocal
from access_zone.economy.ledger.service import LedgerService
from access_zone.economy.promo.service import PromoService
from access_zone.economy.redemptions.service import RedemptionService
from access_zone.economy.redemptions.types import RedemptionDraft
from access_zone.services.accounts import get_or_create_profile
from access_zone.services.auth import AuthIdentity
from access_zone.services.notifications import enqueue_operator_message
from access_zone.services.operator_messages import build_redemption_created_message, mask_email

router = APIRouter(prefix="/api", tags=["account"])
logger = structlog.get_logger(__name__)


async def _active_profile(session: AsyncSession, identity: AuthIdentity) -> Profile:
    profile = await get_or_create_profile(session, identity)
    ensure_profile_active(profile)
    return profile


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(identity: AuthIdentity = Depends(get_identity)) -> ProfileResponse:
    async with SessionLocal.begin() as session:
        profile = await get_or_create_profile(session, identity)
        return ProfileResponse.model_validate(profile)


@router.get("/transactions", response_model=list[TransactionResponse])
async def list_transactions(
    limit: int = Query(default=50, ge=1, le=500),
    identity: AuthIdentity = Depends(get_identity),
) -> list[TransactionResponse]:
    async with SessionLocal.begin() as session:
        await _active_profile(session, identity)
        transactions = await TransactionsRepo.list_for_user(
            session,
            user_id=identity.user_id,
            limit=limit,
        )
        return [TransactionResponse.model_validate(item) for item in transactions]


@router.get("/points/check", response_model=BalanceCheckResponse)
async def check_points(identity: AuthIdentity = Depends(get_identity)) -> BalanceCheckResponse:
    threshold = get_settings().points_discrepancy_threshold
    async with SessionLocal.begin() as session:
        await _active_profile(session, identity)
        check = await LedgerService.get_balance_check(
            session,
            user_id=identity.user_id,
            threshold=threshold,
        )
    if check.flagged:
        logger.warning(
            "points_discrepancy_detected",
            user_id=str(identity.user_id),
            cached=check.cached,
            expected=check.expected,
            difference=check.difference,
        )
    return BalanceCheckResponse(
        cached=check.cached,
        expected=check.expected,
        total_earned=check.total_earned,
        difference=check.difference,
        threshold=check.threshold,
        flagged=check.flagged,
    )


@router.post("/points/repair", response_model=RecalculationResponse)
async def repair_points(identity: AuthIdentity = Depends(get_identity)) -> RecalculationResponse:
    async with SessionLocal.begin() as session:
        await _active_profile(session, identity)
        result = await LedgerService.recalculate_user_points(
            session,
            user_id=identity.user_id,
            changed_by="user_repair",
        )
        profile = await ProfilesRepo.get_by_id(session, identity.user_id)
        return RecalculationResponse(
            user_id=result.user_id,
            old_points=result.old_points,
            new_points=result.new_points,
            fixed=result.fixed,
            profile=ProfileResponse.model_validate(profile),
        )


@router.post("/promo/redeem", response_model=PromoRedeemResponse)
async def redeem_promo(
    payload: PromoRedeemRequest,
    identity: AuthIdentity = Depends(get_identity),
) -> PromoRedeemResponse:
    async with SessionLocal.begin() as session:
        await _active_profile(session, identity)
        result = await PromoService.redeem(
            session,
            user_id=identity.user_id,
            promo_code=payload.code,
            now_utc=datetime.now(timezone.utc),
        )

    return PromoRedeemResponse(
        message=result.message,
        points=result.points_awarded,
        new_balance=result.new_balance,
        redemption_id=result.redemption_id,
    )


@router.get("/promo/redemptions", response_model=list[PromoRedemptionResponse])
async def list_promo_redemptions(
    limit: int = Query(default=20, ge=1, le=100),
    identity: AuthIdentity = Depends(get_identity),
) -> list[PromoRedemptionResponse]:
    async with SessionLocal.begin() as session:
        await _active_profile(session, identity)
        rows = await PromoRepo.list_redemptions_for_user(
            session,
            user_id=identity.user_id,
            limit=limit,
        )
    return [
        PromoRedemptionResponse(
            id=redemption.id,
            promo_code_id=redemption.promo_code_id,
            code=code,
            points_earned=redemption.points_earned,
            created_at=redemption.created_at,
        )
        for redemption, code in rows
    ]


async def create_redemption_for(
    identity: AuthIdentity,
    payload: RedemptionCreateRequest,
) -> RedemptionResponse:
    async with SessionLocal.begin() as session:
        await _active_profile(session, identity)
        created = await RedemptionService.create_request(
            session,
            user_id=identity.user_id,
            draft=RedemptionDraft(
                subscription_id=payload.subscription_id,
                subscription_name=payload.subscription_name,
                duration=payload.duration,
                points_cost=payload.points_cost,
                user_email=payload.user_email,
                user_country=payload.user_country,
                user_notes=payload.user_notes,
            ),
            now_utc=datetime.now(timezone.utc),
        )
        response = RedemptionResponse.model_validate(created.request)

    await enqueue_operator_message(
        text=build_redemption_created_message(
            created.request,
            account_email=created.account_email,
            full_name=created.user_full_name,
            site_url=get_settings().site_url,
        ),
        event="redemption_created",
    )
    return response


@router.post("/redemptions", response_model=RedemptionResponse)
async def create_redemption(
    payload: RedemptionCreateRequest,
    identity: AuthIdentity = Depends(get_identity),
) -> RedemptionResponse:
    return await create_redemption_for(identity, payload)


@router.get("/redemptions", response_model=list[RedemptionResponse])
async def list_redemptions(
    identity: AuthIdentity = Depends(get_identity),
) -> list[RedemptionResponse]:
    async with SessionLocal.begin() as session:
        await _active_profile(session, identity)
        requests = await RedemptionsRepo.list_for_user(session, user_id=identity.user_id)
        return [RedemptionResponse.model_validate(item) for item in requests]


@router.get(
    "/leaderboard",
    response_model=list[LeaderboardEntry],
    dependencies=[Depends(get_identity)],
)
async def leaderboard(limit: int = Query(default=10, ge=1, le=100)) -> list[LeaderboardEntry]:
    async with SessionLocal.begin() as session:
        profiles = await ProfilesRepo.list_top_by_points(session, limit=limit)
    return [
        LeaderboardEntry(
            rank=index,
            user_id=profile.id,
            display_name=profile.full_name or mask_email(profile.email),
            points=profile.points,
        )
        for index, profile in enumerate(profiles, start=1)
    ]

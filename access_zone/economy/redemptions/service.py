from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from access_zone.db.models.redemption_requests import RedemptionRequest
from access_zone.db.repo.profiles_repo import ProfilesRepo
from access_zone.db.repo.redemptions_repo import RedemptionsRepo
from access_zone.db.repo.subscriptions_repo import SubscriptionsRepo
from access_zone.economy.ledger.errors import InsufficientPointsError, ProfileNotFoundError
from access_zone.economy.ledger.service import LedgerService
from access_zone.economy.redemptions.errors import (
    PointsCostMismatchError,
    RedemptionNotFoundError,
    SubscriptionUnavailableError,
)
from access_zone.economy.redemptions.rules import (
    COMPLETED,
    PENDING,
    TERMINAL_STATUSES,
    activation_expiry,
    ensure_transition_allowed,
    redemption_description,
    require_activation_code,
    validate_draft,
)
from access_zone.economy.redemptions.types import (
    RedemptionCreated,
    RedemptionDraft,
    RedemptionTransitioned,
)

logger = structlog.get_logger(__name__)

REDEMPTION_TASK_TYPE = "redemption"


class RedemptionService:
    @staticmethod
    async def _check_catalog(session: AsyncSession, draft: RedemptionDraft) -> None:
        item = await SubscriptionsRepo.get_by_subscription(
            session,
            subscription_id=draft.subscription_id,
            duration=draft.duration,
        )
        if item is None:
            return
        if not item.in_stock:
            raise SubscriptionUnavailableError
        if item.points_cost is not None and item.points_cost != draft.points_cost:
            raise PointsCostMismatchError("points_cost does not match the catalog")

    @staticmethod
    async def create_request(
        session: AsyncSession,
        *,
        user_id: UUID,
        draft: RedemptionDraft,
        now_utc: datetime | None = None,
    ) -> RedemptionCreated:
        now_utc = now_utc or datetime.now(timezone.utc)
        draft = validate_draft(draft)
        await RedemptionService._check_catalog(session, draft)

        profile = await ProfilesRepo.get_by_id_for_update(session, user_id)
        if profile is None:
            raise ProfileNotFoundError
        if profile.points < draft.points_cost:
            raise InsufficientPointsError

        request = await RedemptionsRepo.create(
            session,
            request=RedemptionRequest(
                id=uuid4(),
                user_id=user_id,
                subscription_id=draft.subscription_id,
                subscription_name=draft.subscription_name,
                duration=draft.duration,
                points_cost=draft.points_cost,
                status=PENDING,
                user_email=draft.user_email,
                user_country=draft.user_country,
                user_notes=draft.user_notes,
                activation_code=None,
                instructions=None,
                expires_at=None,
                completed_at=None,
                created_at=now_utc,
                updated_at=now_utc,
            ),
        )

        try:
            async with session.begin_nested():
                change = await LedgerService.debit_points(
                    session,
                    profile=profile,
                    points=draft.points_cost,
                    description=redemption_description(draft.subscription_name, draft.duration),
                    task_type=REDEMPTION_TASK_TYPE,
                    now_utc=now_utc,
                )
        except Exception:
            await RedemptionsRepo.delete_by_id(session, request.id)
            logger.warning(
                "redemption_debit_failed_request_removed",
                request_id=str(request.id),
                user_id=str(user_id),
            )
            raise

        logger.info(
            "redemption_request_created",
            request_id=str(request.id),
            user_id=str(user_id),
            points_cost=draft.points_cost,
        )
        return RedemptionCreated(
            request=request,
            user_full_name=profile.full_name,
            account_email=profile.email,
            new_balance=change.new_points,
        )

    @staticmethod
    async def transition(
        session: AsyncSession,
        *,
        request_id: UUID,
        new_status: str,
        activation_code: str | None = None,
        instructions: str | None = None,
        activation_ttl_days: int = 30,
        now_utc: datetime | None = None,
    ) -> RedemptionTransitioned:
        now_utc = now_utc or datetime.now(timezone.utc)
        request = await RedemptionsRepo.get_by_id_for_update(session, request_id)
        if request is None:
            raise RedemptionNotFoundError

        previous_status = request.status
        ensure_transition_allowed(previous_status, new_status)
        code = require_activation_code(new_status, activation_code)

        request.status = new_status
        request.updated_at = now_utc
        if new_status in TERMINAL_STATUSES:
            request.completed_at = now_utc
        if new_status == COMPLETED:
            request.activation_code = code
            request.instructions = (instructions or "").strip() or None
            request.expires_at = activation_expiry(now_utc, ttl_days=activation_ttl_days)

        logger.info(
            "redemption_request_transitioned",
            request_id=str(request_id),
            previous_status=previous_status,
            new_status=new_status,
        )
        return RedemptionTransitioned(request=request, previous_status=previous_status)

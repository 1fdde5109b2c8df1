from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Query, Request

from access_zone.api.deps import require_admin
from access_zone.api.errors import api_error
from access_zone.api.routes.admin_common import ADMIN_METHODS, invalid_action, parse_body, resolve_action
from access_zone.api.schemas import (
    AdminPointsRequest,
    AdminPointsResponse,
    AdminStatusRequest,
    AdminStatusResponse,
    AdminUserResponse,
    EmergencyFixResponse,
    IntegrityResponse,
    InvestigationResponse,
    ProfileResponse,
    RecentActivityResponse,
    RedemptionResponse,
    TransactionWithEmailResponse,
)
from access_zone.core.config import get_settings
from access_zone.db.repo.profiles_repo import ProfilesRepo
from access_zone.db.repo.redemptions_repo import RedemptionsRepo
from access_zone.db.repo.transactions_repo import TransactionsRepo
from access_zone.db.session import SessionLocal
from access_zone.economy.ledger.service import LedgerService
from access_zone.services.accounts import UnknownStatusActionError, update_account_status
from access_zone.services.auth import AuthIdentity

router = APIRouter(tags=["admin", "users"])
logger = structlog.get_logger(__name__)

RECENT_ACTIVITY_LIMIT = 10


async def _list_users() -> list[AdminUserResponse]:
    async with SessionLocal.begin() as session:
        rows = await ProfilesRepo.list_with_activity_counts(session)
        return [
            AdminUserResponse(
                **ProfileResponse.model_validate(profile).model_dump(),
                transaction_count=transaction_count,
                task_count=task_count,
            )
            for profile, transaction_count, task_count in rows
        ]


async def _recent_activity() -> RecentActivityResponse:
    async with SessionLocal.begin() as session:
        transactions = await TransactionsRepo.list_recent_with_email(
            session,
            limit=RECENT_ACTIVITY_LIMIT,
        )
        redemptions = await RedemptionsRepo.list_recent(session, limit=RECENT_ACTIVITY_LIMIT)
        return RecentActivityResponse(
            transactions=[
                TransactionWithEmailResponse(
                    id=transaction.id,
                    user_id=transaction.user_id,
                    type=transaction.type,
                    points=transaction.points,
                    description=transaction.description,
                    task_type=transaction.task_type,
                    created_at=transaction.created_at,
                    user_email=email,
                )
                for transaction, email in transactions
            ],
            redemptions=[RedemptionResponse.model_validate(item) for item in redemptions],
        )


async def _update_points(payload: AdminPointsRequest, admin: AuthIdentity) -> AdminPointsResponse:
    async with SessionLocal.begin() as session:
        result = await LedgerService.admin_adjust_points(
            session,
            user_id=payload.user_id,
            points_change=payload.points_to_add,
            description=payload.description,
            changed_by=admin.email,
            now_utc=datetime.now(timezone.utc),
        )
    return AdminPointsResponse(
        user_id=result.user_id,
        old_points=result.old_points,
        new_points=result.new_points,
        points_change=payload.points_to_add,
    )


async def _update_status(payload: AdminStatusRequest, admin: AuthIdentity) -> AdminStatusResponse:
    action = payload.action.strip().lower()
    try:
        async with SessionLocal.begin() as session:
            profile = await update_account_status(
                session,
                user_id=payload.user_id,
                action=action,
                now_utc=datetime.now(timezone.utc),
            )
            response = AdminStatusResponse(
                message=f"User status updated to {profile.status}",
                profile=ProfileResponse.model_validate(profile),
            )
    except UnknownStatusActionError as exc:
        raise api_error(400, "E_INVALID_ACTION", "Invalid action") from exc

    logger.info(
        "admin_user_status_updated",
        user_id=str(payload.user_id),
        action=action,
        admin_email=admin.email,
    )
    return response


async def _investigate(user_id: UUID | None) -> InvestigationResponse:
    if user_id is None:
        raise api_error(400, "E_VALIDATION", "user_id is required")
    async with SessionLocal.begin() as session:
        report = await LedgerService.investigate_user(session, user_id=user_id)
    return InvestigationResponse(**asdict(report), has_issues=report.has_issues)


async def _integrity() -> IntegrityResponse:
    async with SessionLocal.begin() as session:
        summary = await LedgerService.integrity_summary(
            session,
            threshold=get_settings().points_discrepancy_threshold,
            now_utc=datetime.now(timezone.utc),
        )
    return IntegrityResponse.model_validate(asdict(summary))


async def _emergency_fix(admin: AuthIdentity) -> EmergencyFixResponse:
    async with SessionLocal.begin() as session:
        summary = await LedgerService.emergency_fix_all(
            session,
            changed_by=admin.email,
            now_utc=datetime.now(timezone.utc),
        )
    logger.warning(
        "admin_emergency_fix_applied",
        users_fixed=summary.users_fixed,
        admin_email=admin.email,
    )
    return EmergencyFixResponse.model_validate(asdict(summary))


@router.api_route("/functions/admin-users", methods=ADMIN_METHODS, response_model=None)
async def admin_users(
    request: Request,
    action: str | None = Query(default=None),
    user_id: UUID | None = Query(default=None),
    admin: AuthIdentity = Depends(require_admin),
) -> Any:
    resolved = resolve_action(request, action, default_get="list")
    if resolved == "list":
        return await _list_users()
    if resolved == "recent-activity":
        return await _recent_activity()
    if resolved == "investigate":
        return await _investigate(user_id)
    if resolved == "integrity":
        return await _integrity()

    if request.method != "POST":
        raise invalid_action(action)
    if resolved == "update-points":
        return await _update_points(await parse_body(request, AdminPointsRequest), admin)
    if resolved == "update-status":
        return await _update_status(await parse_body(request, AdminStatusRequest), admin)
    if resolved == "emergency-fix":
        return await _emergency_fix(admin)
    raise invalid_action(action)

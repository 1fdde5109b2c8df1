from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query, Request

from access_zone.api.deps import assert_admin, get_identity
from access_zone.api.routes.account import create_redemption_for
from access_zone.api.routes.admin_common import ADMIN_METHODS, invalid_action, parse_body, resolve_action
from access_zone.api.schemas import (
    AdminRedemptionResponse,
    RedemptionCreateRequest,
    RedemptionResponse,
    RedemptionUpdateRequest,
)
from access_zone.core.config import get_settings
from access_zone.db.repo.redemptions_repo import RedemptionsRepo
from access_zone.db.session import SessionLocal
from access_zone.economy.redemptions.service import RedemptionService
from access_zone.services.auth import AuthIdentity
from access_zone.services.notifications import enqueue_operator_message
from access_zone.services.operator_messages import build_redemption_status_message

router = APIRouter(tags=["admin", "redemptions"])
logger = structlog.get_logger(__name__)


async def _list_requests(status: str | None) -> list[AdminRedemptionResponse]:
    async with SessionLocal.begin() as session:
        rows = await RedemptionsRepo.list_all_with_profiles(session, status=status)
        return [
            AdminRedemptionResponse.model_validate(
                {
                    **RedemptionResponse.model_validate(request).model_dump(),
                    "account_email": email,
                    "account_full_name": full_name,
                }
            )
            for request, email, full_name in rows
        ]


async def _update_request(payload: RedemptionUpdateRequest, admin: AuthIdentity) -> RedemptionResponse:
    async with SessionLocal.begin() as session:
        result = await RedemptionService.transition(
            session,
            request_id=payload.request_id,
            new_status=payload.new_status,
            activation_code=payload.activation_code,
            instructions=payload.instructions,
            activation_ttl_days=get_settings().activation_code_ttl_days,
            now_utc=datetime.now(timezone.utc),
        )
        response = RedemptionResponse.model_validate(result.request)

    logger.info(
        "admin_redemption_updated",
        request_id=str(payload.request_id),
        previous_status=result.previous_status,
        new_status=payload.new_status,
        admin_email=admin.email,
    )
    await enqueue_operator_message(
        text=build_redemption_status_message(result.request, site_url=get_settings().site_url),
        event="redemption_status_changed",
    )
    return response


@router.api_route("/functions/admin-redemptions", methods=ADMIN_METHODS, response_model=None)
async def admin_redemptions(
    request: Request,
    action: str | None = Query(default=None),
    status: str | None = Query(default=None),
    identity: AuthIdentity = Depends(get_identity),
) -> Any:
    resolved = resolve_action(request, action, default_get="list")

    # any signed-in user may file a request through this function
    if resolved == "create" and request.method == "POST":
        payload = await parse_body(request, RedemptionCreateRequest)
        return await create_redemption_for(identity, payload)

    assert_admin(identity)
    if resolved == "list":
        return await _list_requests(status)
    if resolved == "update" and request.method == "POST":
        return await _update_request(await parse_body(request, RedemptionUpdateRequest), identity)
    raise invalid_action(action)

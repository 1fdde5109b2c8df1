from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Query, Request

from access_zone.api.deps import require_admin
from access_zone.api.errors import api_error
from access_zone.api.routes.admin_common import ADMIN_METHODS, invalid_action, parse_body, resolve_action
from access_zone.api.schemas import (
    CodeRedemptionResponse,
    IdRequest,
    PromoCodeCreateRequest,
    PromoCodeGenerateRequest,
    PromoCodeResponse,
    PromoCodeToggleRequest,
)
from access_zone.db.repo.promo_repo import PromoRepo
from access_zone.db.session import SessionLocal
from access_zone.economy.promo.service import PromoService
from access_zone.economy.promo.types import PromoCodeDraft
from access_zone.services.auth import AuthIdentity

router = APIRouter(tags=["admin", "promo"])
logger = structlog.get_logger(__name__)


async def _list_codes() -> list[PromoCodeResponse]:
    async with SessionLocal.begin() as session:
        codes = await PromoRepo.list_codes(session)
        return [PromoCodeResponse.model_validate(item) for item in codes]


async def _list_code_redemptions(code_id: UUID | None) -> list[CodeRedemptionResponse]:
    if code_id is None:
        raise api_error(400, "E_VALIDATION", "code_id is required")
    async with SessionLocal.begin() as session:
        rows = await PromoRepo.list_redemptions_for_code(session, promo_code_id=code_id)
    return [
        CodeRedemptionResponse(
            id=redemption.id,
            user_id=redemption.user_id,
            user_email=email,
            points_earned=redemption.points_earned,
            created_at=redemption.created_at,
        )
        for redemption, email in rows
    ]


async def _add_code(payload: PromoCodeCreateRequest, admin: AuthIdentity) -> PromoCodeResponse:
    draft = PromoCodeDraft(
        code=payload.code,
        points=payload.points,
        description=payload.description,
        max_uses=payload.max_uses,
        starts_at=payload.starts_at,
        expires_at=payload.expires_at,
        is_active=payload.is_active,
    )
    try:
        async with SessionLocal.begin() as session:
            promo_code = await PromoService.add_code(
                session,
                draft=draft,
                created_by=admin.user_id,
                now_utc=datetime.now(timezone.utc),
            )
            response = PromoCodeResponse.model_validate(promo_code)
    except ValueError as exc:
        raise api_error(400, "E_VALIDATION", str(exc)) from exc

    logger.info("admin_promo_code_added", code=response.code, admin_email=admin.email)
    return response


async def _generate_codes(
    payload: PromoCodeGenerateRequest, admin: AuthIdentity
) -> dict[str, Any]:
    template = PromoCodeDraft(
        code="",
        points=payload.points,
        description=payload.description,
        max_uses=payload.max_uses,
        starts_at=payload.starts_at,
        expires_at=payload.expires_at,
        is_active=payload.is_active,
    )
    try:
        async with SessionLocal.begin() as session:
            promo_codes = await PromoService.generate_codes(
                session,
                count=payload.count,
                prefix=payload.prefix,
                template=template,
                created_by=admin.user_id,
                now_utc=datetime.now(timezone.utc),
            )
            codes = [PromoCodeResponse.model_validate(item) for item in promo_codes]
    except ValueError as exc:
        raise api_error(400, "E_VALIDATION", str(exc)) from exc

    logger.info("admin_promo_codes_generated", count=len(codes), admin_email=admin.email)
    return {"success": True, "count": len(codes), "codes": codes}


async def _toggle_code(payload: PromoCodeToggleRequest) -> PromoCodeResponse:
    async with SessionLocal.begin() as session:
        promo_code = await PromoService.set_active(
            session,
            promo_code_id=payload.id,
            is_active=not payload.is_active,
        )
        return PromoCodeResponse.model_validate(promo_code)


async def _delete_code(payload: IdRequest, admin: AuthIdentity) -> dict[str, bool]:
    async with SessionLocal.begin() as session:
        await PromoService.delete_code(session, promo_code_id=payload.id)
    logger.info("admin_promo_code_deleted", promo_code_id=str(payload.id), admin_email=admin.email)
    return {"success": True}


@router.api_route("/functions/admin-promo-codes", methods=ADMIN_METHODS, response_model=None)
async def admin_promo_codes(
    request: Request,
    action: str | None = Query(default=None),
    code_id: UUID | None = Query(default=None),
    admin: AuthIdentity = Depends(require_admin),
) -> Any:
    resolved = resolve_action(request, action, default_get="list")
    if resolved == "list":
        return await _list_codes()
    if resolved == "redemptions":
        return await _list_code_redemptions(code_id)

    if request.method != "POST":
        raise invalid_action(action)
    if resolved == "add-single-code":
        return await _add_code(await parse_body(request, PromoCodeCreateRequest), admin)
    if resolved == "generate":
        return await _generate_codes(await parse_body(request, PromoCodeGenerateRequest), admin)
    if resolved == "toggle":
        return await _toggle_code(await parse_body(request, PromoCodeToggleRequest))
    if resolved == "delete":
        return await _delete_code(await parse_body(request, IdRequest), admin)
    raise invalid_action(action)

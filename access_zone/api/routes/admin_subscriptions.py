from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query, Request

from access_zone.api.deps import require_admin
from access_zone.api.errors import api_error
from access_zone.api.routes.admin_common import ADMIN_METHODS, invalid_action, parse_body, resolve_action
from access_zone.api.schemas import (
    IdRequest,
    SubscriptionAddRequest,
    SubscriptionPointsRequest,
    SubscriptionResponse,
    SubscriptionToggleRequest,
)
from access_zone.db.repo.subscriptions_repo import SubscriptionsRepo
from access_zone.db.session import SessionLocal
from access_zone.economy.catalog.service import CatalogService
from access_zone.services.auth import AuthIdentity

router = APIRouter(tags=["admin", "subscriptions"])
logger = structlog.get_logger(__name__)


async def _list_items() -> list[SubscriptionResponse]:
    async with SessionLocal.begin() as session:
        items = await SubscriptionsRepo.list_all(session)
        return [SubscriptionResponse.model_validate(item) for item in items]


async def _toggle_item(payload: SubscriptionToggleRequest) -> SubscriptionResponse:
    async with SessionLocal.begin() as session:
        item = await CatalogService.set_in_stock(
            session,
            item_id=payload.id,
            in_stock=not payload.current_status,
            now_utc=datetime.now(timezone.utc),
        )
        return SubscriptionResponse.model_validate(item)


async def _add_item(payload: SubscriptionAddRequest, admin: AuthIdentity) -> SubscriptionResponse:
    try:
        async with SessionLocal.begin() as session:
            item = await CatalogService.add_item(
                session,
                subscription_id=payload.subscription_id,
                duration=payload.duration,
                points_cost=payload.points_cost,
                display_name=payload.display_name,
                description=payload.description,
                category=payload.category,
                now_utc=datetime.now(timezone.utc),
            )
            response = SubscriptionResponse.model_validate(item)
    except ValueError as exc:
        raise api_error(400, "E_VALIDATION", str(exc)) from exc

    logger.info(
        "admin_subscription_added",
        subscription_id=response.subscription_id,
        duration=response.duration,
        admin_email=admin.email,
    )
    return response


async def _update_points(payload: SubscriptionPointsRequest) -> SubscriptionResponse:
    async with SessionLocal.begin() as session:
        item = await CatalogService.set_points_cost(
            session,
            item_id=payload.id,
            points_cost=payload.points_cost,
            now_utc=datetime.now(timezone.utc),
        )
        return SubscriptionResponse.model_validate(item)


async def _delete_item(payload: IdRequest, admin: AuthIdentity) -> dict[str, bool]:
    async with SessionLocal.begin() as session:
        await CatalogService.delete_item(session, item_id=payload.id)
    logger.info("admin_subscription_deleted", item_id=str(payload.id), admin_email=admin.email)
    return {"success": True}


@router.api_route("/functions/admin-subscriptions", methods=ADMIN_METHODS, response_model=None)
async def admin_subscriptions(
    request: Request,
    action: str | None = Query(default=None),
    admin: AuthIdentity = Depends(require_admin),
) -> Any:
    resolved = resolve_action(request, action, default_get="list")
    if resolved == "list":
        return await _list_items()

    if request.method != "POST":
        raise invalid_action(action)
    if resolved == "toggle":
        return await _toggle_item(await parse_body(request, SubscriptionToggleRequest))
    if resolved == "add":
        return await _add_item(await parse_body(request, SubscriptionAddRequest), admin)
    if resolved == "update-points":
        return await _update_points(await parse_body(request, SubscriptionPointsRequest))
    if resolved == "delete":
        return await _delete_item(await parse_body(request, IdRequest), admin)
    raise invalid_action(action)

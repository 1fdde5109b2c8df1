from __future__ import annotations

from typing import TypeVar

import structlog
from fastapi import HTTPException, Request
from pydantic import BaseModel, ValidationError

from access_zone.api.errors import api_error

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

ADMIN_METHODS = ["GET", "POST"]


def invalid_action(action: str | None) -> HTTPException:
    logger.info("admin_invalid_action", action=action)
    return api_error(400, "E_INVALID_ACTION", "Invalid action")


def missing_fields() -> HTTPException:
    return api_error(400, "E_VALIDATION", "Missing required fields")


async def parse_body(request: Request, model: type[ModelT]) -> ModelT:
    try:
        raw = await request.json()
    except ValueError as exc:
        raise missing_fields() from exc
    if not isinstance(raw, dict):
        raise missing_fields()
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise missing_fields() from exc


def resolve_action(request: Request, action: str | None, *, default_get: str) -> str:
    if action:
        return action.strip().lower()
    # bare GET on an admin function is the listing
    return default_get if request.method == "GET" else ""

from __future__ import annotations

from datetime import datetime, timezone

import structlog
from fastapi import Depends, Header

from access_zone.api.errors import api_error
from access_zone.core.config import get_settings
from access_zone.db.models.profiles import Profile
from access_zone.services.auth import (
    AuthError,
    AuthIdentity,
    decode_access_token,
    extract_bearer_token,
    is_admin,
)

logger = structlog.get_logger(__name__)


def get_identity(authorization: str | None = Header(default=None)) -> AuthIdentity:
    token = extract_bearer_token(authorization)
    if token is None:
        raise api_error(401, "E_UNAUTHORIZED", "Missing authorization header")

    settings = get_settings()
    try:
        return decode_access_token(
            token,
            secret=settings.auth_jwt_secret,
            audience=settings.auth_jwt_audience,
            algorithm=settings.auth_jwt_algorithm,
        )
    except AuthError as exc:
        logger.info("auth_token_rejected", reason=str(exc))
        raise api_error(401, "E_UNAUTHORIZED", "Invalid or expired token") from exc


def assert_admin(identity: AuthIdentity) -> None:
    if not is_admin(identity, get_settings().admin_email_set):
        logger.warning("admin_access_denied", user_id=str(identity.user_id))
        raise api_error(403, "E_FORBIDDEN", "Access denied - admin privileges required")


def require_admin(identity: AuthIdentity = Depends(get_identity)) -> AuthIdentity:
    assert_admin(identity)
    return identity


def ensure_profile_active(profile: Profile, *, now_utc: datetime | None = None) -> None:
    now_utc = now_utc or datetime.now(timezone.utc)
    if profile.status == "banned":
        raise api_error(403, "E_FORBIDDEN", "Account is banned")
    if profile.status == "suspended" and (
        profile.suspended_until is None or profile.suspended_until > now_utc
    ):
        raise api_error(403, "E_FORBIDDEN", "Account is suspended")

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from access_zone.db.models.profiles import Profile
from access_zone.db.repo.profiles_repo import ProfilesRepo
from access_zone.economy.ledger.errors import ProfileNotFoundError
from access_zone.services.auth import AuthIdentity

logger = structlog.get_logger(__name__)


async def get_or_create_profile(
    session: AsyncSession,
    identity: AuthIdentity,
    *,
    now_utc: datetime | None = None,
) -> Profile:
    profile = await ProfilesRepo.get_by_id(session, identity.user_id)
    if profile is not None:
        return profile

    now_utc = now_utc or datetime.now(timezone.utc)
    try:
        async with session.begin_nested():
            profile = await ProfilesRepo.create(
                session,
                profile=Profile(
                    id=identity.user_id,
                    email=identity.email,
                    full_name=None,
                    points=0,
                    total_earned=0,
                    status="active",
                    suspended_until=None,
                    created_at=now_utc,
                    updated_at=now_utc,
                ),
            )
    except IntegrityError:
        # created by a concurrent first request
        existing = await ProfilesRepo.get_by_id(session, identity.user_id)
        if existing is None:
            raise
        return existing
    logger.info("profile_created", user_id=str(identity.user_id))
    return profile


ACCOUNT_STATUS_ACTIONS = {
    "ban": "banned",
    "unban": "active",
    "suspend": "suspended",
    "activate": "active",
}
SUSPENSION_PERIOD = timedelta(hours=24)


class UnknownStatusActionError(ValueError):
    pass


async def update_account_status(
    session: AsyncSession,
    *,
    user_id: UUID,
    action: str,
    now_utc: datetime | None = None,
) -> Profile:
    new_status = ACCOUNT_STATUS_ACTIONS.get(action)
    if new_status is None:
        raise UnknownStatusActionError(action)

    now_utc = now_utc or datetime.now(timezone.utc)
    profile = await ProfilesRepo.get_by_id_for_update(session, user_id)
    if profile is None:
        raise ProfileNotFoundError

    suspended_until = now_utc + SUSPENSION_PERIOD if new_status == "suspended" else None
    await ProfilesRepo.set_status(
        session,
        profile=profile,
        status=new_status,
        suspended_until=suspended_until,
        now_utc=now_utc,
    )
    logger.info("account_status_updated", user_id=str(user_id), action=action)
    return profile

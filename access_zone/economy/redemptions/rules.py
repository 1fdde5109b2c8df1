from __future__ import annotations

from datetime import datetime, timedelta

from access_zone.economy.redemptions.errors import (
    ActivationCodeRequiredError,
    RedemptionTransitionError,
    RedemptionValidationError,
)
from access_zone.economy.redemptions.types import RedemptionDraft

PENDING = "pending"
COMPLETED = "completed"
FAILED = "failed"
CANCELLED = "cancelled"

REDEMPTION_STATUSES = frozenset({PENDING, COMPLETED, FAILED, CANCELLED})
TERMINAL_STATUSES = frozenset({COMPLETED, FAILED, CANCELLED})
ALLOWED_TRANSITIONS = {
    PENDING: TERMINAL_STATUSES,
    COMPLETED: frozenset(),
    FAILED: frozenset(),
    CANCELLED: frozenset(),
}


def validate_draft(draft: RedemptionDraft) -> RedemptionDraft:
    required = {
        "subscription_id": draft.subscription_id,
        "subscription_name": draft.subscription_name,
        "duration": draft.duration,
        "user_email": draft.user_email,
        "user_country": draft.user_country,
    }
    missing = [name for name, value in required.items() if not (value or "").strip()]
    if missing or not draft.points_cost:
        raise RedemptionValidationError("Missing required fields")
    if draft.points_cost <= 0:
        raise RedemptionValidationError("points_cost must be positive")
    return RedemptionDraft(
        subscription_id=draft.subscription_id.strip(),
        subscription_name=draft.subscription_name.strip(),
        duration=draft.duration.strip(),
        points_cost=draft.points_cost,
        user_email=draft.user_email.strip(),
        user_country=draft.user_country.strip(),
        user_notes=(draft.user_notes or "").strip() or None,
    )


def ensure_transition_allowed(current_status: str, new_status: str) -> None:
    if new_status not in REDEMPTION_STATUSES:
        raise RedemptionValidationError(f"unknown status: {new_status}")
    if new_status not in ALLOWED_TRANSITIONS.get(current_status, frozenset()):
        raise RedemptionTransitionError(f"{current_status} -> {new_status}")


def require_activation_code(new_status: str, activation_code: str | None) -> str | None:
    code = (activation_code or "").strip() or None
    if new_status == COMPLETED and code is None:
        raise ActivationCodeRequiredError("Activation code is required for completed status")
    return code


def activation_expiry(now_utc: datetime, *, ttl_days: int) -> datetime:
    return now_utc + timedelta(days=ttl_days)


def redemption_description(subscription_name: str, duration: str) -> str:
    return f"Redeemed: {subscription_name} ({duration})"

from datetime import datetime, timezone

import pytest

from access_zone.economy.redemptions.errors import (
    ActivationCodeRequiredError,
    RedemptionTransitionError,
    RedemptionValidationError,
)
from access_zone.economy.redemptions.rules import (
    activation_expiry,
    ensure_transition_allowed,
    redemption_description,
    require_activation_code,
    validate_draft,
)
from access_zone.economy.redemptions.types import RedemptionDraft


def _draft(**overrides) -> RedemptionDraft:
    values = {
        "subscription_id": "netflix",
        "subscription_name": "Netflix Premium",
        "duration": "1 month",
        "points_cost": 500,
        "user_email": "buyer@example.com",
        "user_country": "DE",
        "user_notes": None,
    }
    values.update(overrides)
    return RedemptionDraft(**values)


def test_validate_draft_trims_fields() -> None:
    draft = validate_draft(_draft(subscription_name=" Netflix Premium ", user_notes="   "))

    assert draft.subscription_name == "Netflix Premium"
    assert draft.user_notes is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"subscription_id": ""},
        {"duration": "  "},
        {"user_email": ""},
        {"user_country": ""},
        {"points_cost": 0},
    ],
)
def test_validate_draft_reports_missing_fields(overrides) -> None:
    with pytest.raises(RedemptionValidationError, match="Missing required fields"):
        validate_draft(_draft(**overrides))


def test_validate_draft_rejects_negative_cost() -> None:
    with pytest.raises(RedemptionValidationError):
        validate_draft(_draft(points_cost=-5))


@pytest.mark.parametrize("new_status", ["completed", "failed", "cancelled"])
def test_pending_can_move_to_any_terminal_status(new_status: str) -> None:
    ensure_transition_allowed("pending", new_status)


@pytest.mark.parametrize("current_status", ["completed", "failed", "cancelled"])
def test_terminal_statuses_are_final(current_status: str) -> None:
    with pytest.raises(RedemptionTransitionError):
        ensure_transition_allowed(current_status, "pending")
    with pytest.raises(RedemptionTransitionError):
        ensure_transition_allowed(current_status, "completed")


def test_unknown_status_is_a_validation_error() -> None:
    with pytest.raises(RedemptionValidationError):
        ensure_transition_allowed("pending", "shipped")


def test_completed_requires_activation_code() -> None:
    with pytest.raises(ActivationCodeRequiredError):
        require_activation_code("completed", "   ")
    assert require_activation_code("completed", " CODE-1 ") == "CODE-1"
    assert require_activation_code("failed", None) is None


def test_activation_expiry_and_description() -> None:
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)

    assert activation_expiry(now, ttl_days=30) == datetime(2026, 1, 31, tzinfo=timezone.utc)
    assert redemption_description("Spotify", "3 months") == "Redeemed: Spotify (3 months)"

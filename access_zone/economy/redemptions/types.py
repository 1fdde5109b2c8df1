from __future__ import annotations

from dataclasses import dataclass

from access_zone.db.models.redemption_requests import RedemptionRequest


@dataclass(slots=True)
class RedemptionDraft:
    subscription_id: str
    subscription_name: str
    duration: str
    points_cost: int
    user_email: str
    user_country: str
    user_notes: str | None = None


@dataclass(slots=True)
class RedemptionCreated:
    request: RedemptionRequest
    user_full_name: str | None
    account_email: str
    new_balance: int


@dataclass(slots=True)
class RedemptionTransitioned:
    request: RedemptionRequest
    previous_status: str

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class _OrmModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class _CamelRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ProfileResponse(_OrmModel):
    id: UUID
    email: str
    full_name: str | None = None
    points: int
    total_earned: int
    status: str
    suspended_until: datetime | None = None
    created_at: datetime
    updated_at: datetime


class TransactionResponse(_OrmModel):
    id: UUID
    user_id: UUID
    type: str
    points: int
    description: str
    task_type: str | None = None
    created_at: datetime


class TransactionWithEmailResponse(TransactionResponse):
    user_email: str


class BalanceCheckResponse(BaseModel):
    cached: int
    expected: int
    total_earned: int
    difference: int
    threshold: int
    flagged: bool


class RecalculationResponse(BaseModel):
    user_id: UUID
    old_points: int
    new_points: int
    fixed: bool
    profile: ProfileResponse


class PromoRedeemRequest(BaseModel):
    code: str = Field(min_length=1, max_length=64)


class PromoRedeemResponse(BaseModel):
    success: bool = True
    message: str
    points: int
    new_balance: int
    redemption_id: UUID


class PromoRedemptionResponse(BaseModel):
    id: UUID
    promo_code_id: UUID
    code: str
    points_earned: int
    created_at: datetime


class CodeRedemptionResponse(BaseModel):
    id: UUID
    user_id: UUID
    user_email: str
    points_earned: int
    created_at: datetime


class RedemptionCreateRequest(BaseModel):
    subscription_id: str = Field(min_length=1, max_length=64)
    subscription_name: str = Field(min_length=1, max_length=128)
    duration: str = Field(min_length=1, max_length=32)
    points_cost: int = Field(gt=0)
    user_email: str = Field(min_length=1, max_length=320)
    user_country: str = Field(min_length=1, max_length=64)
    user_notes: str | None = Field(default=None, max_length=2000)


class RedemptionUpdateRequest(_CamelRequest):
    request_id: UUID = Field(alias="requestId")
    new_status: str = Field(alias="newStatus", min_length=1, max_length=16)
    activation_code: str | None = Field(default=None, alias="activationCode", max_length=2000)
    instructions: str | None = Field(default=None, max_length=4000)


class RedemptionResponse(_OrmModel):
    id: UUID
    user_id: UUID
    subscription_id: str
    subscription_name: str
    duration: str
    points_cost: int
    status: str
    user_email: str
    user_country: str
    user_notes: str | None = None
    activation_code: str | None = None
    instructions: str | None = None
    expires_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class AdminRedemptionResponse(RedemptionResponse):
    account_email: str
    account_full_name: str | None = None


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: UUID
    display_name: str
    points: int


class QuizLimitResponse(BaseModel):
    used: int
    limit: int
    remaining: int
    can_play: bool
    resets_at: datetime


class QuizCompleteRequest(BaseModel):
    difficulty: str = Field(min_length=1, max_length=16)
    category: str = Field(default="General", max_length=64)
    correct_answers: int = Field(ge=0)
    total_questions: int = Field(gt=0)


class QuizCompleteResponse(BaseModel):
    points_earned: int
    correct_answers: int
    total_questions: int
    remaining: int
    new_balance: int


class CheckInResponse(BaseModel):
    day: int
    points_earned: int
    streak: int
    new_balance: int


class PromoCodeResponse(_OrmModel):
    id: UUID
    code: str
    points: int
    description: str | None = None
    max_uses: int | None = None
    current_uses: int
    is_active: bool
    starts_at: datetime | None = None
    expires_at: datetime | None = None
    created_by: UUID | None = None
    created_at: datetime


class PromoCodeCreateRequest(BaseModel):
    code: str = Field(min_length=1, max_length=64)
    points: int = Field(gt=0)
    description: str | None = Field(default=None, max_length=500)
    max_uses: int | None = Field(default=None, gt=0)
    starts_at: datetime | None = None
    expires_at: datetime | None = None
    is_active: bool = True


class PromoCodeGenerateRequest(BaseModel):
    count: int = Field(gt=0, le=1000)
    prefix: str = Field(default="", max_length=16)
    points: int = Field(gt=0)
    description: str | None = Field(default=None, max_length=500)
    max_uses: int | None = Field(default=1, gt=0)
    starts_at: datetime | None = None
    expires_at: datetime | None = None
    is_active: bool = True


class PromoCodeToggleRequest(BaseModel):
    id: UUID
    is_active: bool


class IdRequest(BaseModel):
    id: UUID


class SubscriptionResponse(_OrmModel):
    id: UUID
    subscription_id: str
    duration: str
    points_cost: int | None = None
    in_stock: bool
    display_name: str
    description: str | None = None
    category: str


class SubscriptionToggleRequest(_CamelRequest):
    id: UUID
    current_status: bool = Field(alias="currentStatus")


class SubscriptionAddRequest(BaseModel):
    subscription_id: str = Field(min_length=1, max_length=64)
    duration: str = Field(min_length=1, max_length=32)
    points_cost: int | None = Field(default=None, gt=0)
    display_name: str | None = Field(default=None, max_length=128)
    description: str | None = Field(default=None, max_length=1000)
    category: str | None = Field(default=None, max_length=32)


class SubscriptionPointsRequest(_CamelRequest):
    id: UUID
    points_cost: int = Field(alias="pointsCost", gt=0)


class AdminUserResponse(ProfileResponse):
    transaction_count: int
    task_count: int


class RecentActivityResponse(BaseModel):
    transactions: list[TransactionWithEmailResponse]
    redemptions: list[RedemptionResponse]


class AdminPointsRequest(_CamelRequest):
    user_id: UUID = Field(alias="userId")
    points_to_add: int = Field(alias="pointsToAdd")
    description: str | None = Field(default=None, max_length=500)


class AdminPointsResponse(BaseModel):
    success: bool = True
    user_id: UUID
    old_points: int
    new_points: int
    points_change: int


class AdminStatusRequest(_CamelRequest):
    user_id: UUID = Field(alias="userId")
    action: str = Field(min_length=1, max_length=16)


class AdminStatusResponse(BaseModel):
    success: bool = True
    message: str
    profile: ProfileResponse


class InvestigationResponse(BaseModel):
    user_id: UUID
    email: str
    current_points: int
    total_earned: int
    expected_points: int
    expected_total_earned: int
    transaction_count: int
    earned_from_transactions: int
    redeemed_from_transactions: int
    has_issues: bool
    possible_causes: list[str]
    recommendations: list[str]
    suspicious_transactions: list[dict[str, object]]
    unexpected_deductions: list[dict[str, object]]


class IntegrityIssueResponse(BaseModel):
    user_id: UUID
    email: str
    cached_points: int
    expected_points: int
    difference: int


class IntegrityResponse(BaseModel):
    checked_at: datetime
    total_users: int
    total_transactions: int
    users_with_issues: int
    threshold: int
    issues: list[IntegrityIssueResponse]


class EmergencyFixItem(BaseModel):
    user_id: UUID
    old_points: int
    new_points: int
    points_restored: int


class EmergencyFixResponse(BaseModel):
    users_checked: int
    users_fixed: int
    fixes: list[EmergencyFixItem]

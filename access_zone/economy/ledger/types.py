from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class LedgerLine:
    type: str
    points: int


@dataclass(frozen=True, slots=True)
class BalanceCheck:
    cached: int
    expected: int
    total_earned: int
    difference: int
    threshold: int
    flagged: bool


@dataclass(slots=True)
class RecalculationResult:
    user_id: UUID
    old_points: int
    new_points: int
    fixed: bool


@dataclass(slots=True)
class PointsChangeResult:
    user_id: UUID
    transaction_id: UUID
    old_points: int
    new_points: int
    total_earned: int


@dataclass(slots=True)
class EmergencyFixResult:
    user_id: UUID
    old_points: int
    new_points: int
    points_restored: int


@dataclass(slots=True)
class IntegrityIssue:
    user_id: UUID
    email: str
    cached_points: int
    expected_points: int
    difference: int


@dataclass(slots=True)
class IntegritySummary:
    checked_at: datetime
    total_users: int
    total_transactions: int
    users_with_issues: int
    threshold: int
    issues: list[IntegrityIssue] = field(default_factory=list)


@dataclass(slots=True)
class InvestigationReport:
    user_id: UUID
    email: str
    current_points: int
    total_earned: int
    expected_points: int
    expected_total_earned: int
    transaction_count: int
    earned_from_transactions: int
    redeemed_from_transactions: int
    possible_causes: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    suspicious_transactions: list[dict[str, object]] = field(default_factory=list)
    unexpected_deductions: list[dict[str, object]] = field(default_factory=list)

    @property
    def has_issues(self) -> bool:
        return bool(self.possible_causes)


@dataclass(slots=True)
class EmergencyFixSummary:
    users_checked: int
    users_fixed: int
    fixes: list[EmergencyFixResult] = field(default_factory=list)

from __future__ import annotations

from collections.abc import Sequence
from datetime import timedelta

from access_zone.db.models.points_audit_log import PointsAuditEntry
from access_zone.db.models.profiles import Profile
from access_zone.db.models.transactions import Transaction
from access_zone.economy.ledger.reconciliation import expected_from_totals, ledger_totals
from access_zone.economy.ledger.types import InvestigationReport

DUPLICATE_WINDOW = timedelta(seconds=60)
EXPECTED_DEDUCTION_MARKERS = ("redemption", "admin")


def _transaction_payload(transaction: Transaction) -> dict[str, object]:
    return {
        "id": str(transaction.id),
        "type": transaction.type,
        "points": transaction.points,
        "description": transaction.description,
        "created_at": transaction.created_at.isoformat(),
    }


def _audit_payload(entry: PointsAuditEntry) -> dict[str, object]:
    return {
        "id": entry.id,
        "old_points": entry.old_points,
        "new_points": entry.new_points,
        "reason": entry.reason,
        "changed_by": entry.changed_by,
        "changed_at": entry.changed_at.isoformat(),
    }


def find_unexpected_deductions(audit_entries: Sequence[PointsAuditEntry]) -> list[PointsAuditEntry]:
    unexpected: list[PointsAuditEntry] = []
    for entry in audit_entries:
        if entry.new_points - entry.old_points >= 0:
            continue
        reason = (entry.reason or "").lower()
        if any(marker in reason for marker in EXPECTED_DEDUCTION_MARKERS):
            continue
        unexpected.append(entry)
    return unexpected


def find_duplicate_transactions(transactions: Sequence[Transaction]) -> list[Transaction]:
    suspicious: list[Transaction] = []
    for transaction in transactions:
        for other in transactions:
            if other.id == transaction.id:
                continue
            if other.points != transaction.points or other.description != transaction.description:
                continue
            if abs(other.created_at - transaction.created_at) < DUPLICATE_WINDOW:
                suspicious.append(transaction)
                break
    return suspicious


def build_investigation_report(
    *,
    profile: Profile,
    transactions: Sequence[Transaction],
    audit_entries: Sequence[PointsAuditEntry],
) -> InvestigationReport:
    earned, redeemed = ledger_totals(transactions)
    expected = expected_from_totals(earned, redeemed)
    report = InvestigationReport(
        user_id=profile.id,
        email=profile.email,
        current_points=profile.points,
        total_earned=profile.total_earned,
        expected_points=expected,
        expected_total_earned=earned,
        transaction_count=len(transactions),
        earned_from_transactions=earned,
        redeemed_from_transactions=redeemed,
    )

    if profile.points != expected:
        report.possible_causes.append(
            f"Points mismatch: user has {profile.points} but the ledger gives {expected}"
        )
        report.recommendations.append(f"Fix points balance to {expected}")
    if profile.total_earned != earned:
        report.possible_causes.append(
            f"Total earned mismatch: user has {profile.total_earned} but the ledger gives {earned}"
        )
        report.recommendations.append(f"Fix total earned to {earned}")
    if profile.points < 0:
        report.possible_causes.append("User has a negative balance")
        report.recommendations.append("Set points to the ledger value")
    if profile.points > profile.total_earned:
        report.possible_causes.append("User has more points than total earned")
        report.recommendations.append("Recalculate both points and total earned")

    unexpected = find_unexpected_deductions(audit_entries)
    if unexpected:
        report.unexpected_deductions = [_audit_payload(entry) for entry in unexpected]
        report.possible_causes.append(f"Found {len(unexpected)} unexpected point deductions")
        report.recommendations.append("Investigate unauthorized point changes")

    duplicates = find_duplicate_transactions(transactions)
    if duplicates:
        report.suspicious_transactions = [_transaction_payload(item) for item in duplicates]
        report.possible_causes.append(
            f"Found {len(duplicates)} suspicious duplicate transactions"
        )
        report.recommendations.append("Review duplicate transactions")

    return report

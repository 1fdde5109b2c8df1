from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from access_zone.db.models.points_audit_log import PointsAuditEntry
from access_zone.db.models.profiles import Profile
from access_zone.db.models.transactions import Transaction
from access_zone.db.repo.points_audit_repo import PointsAuditRepo
from access_zone.db.repo.profiles_repo import ProfilesRepo
from access_zone.db.repo.transactions_repo import TransactionsRepo
from access_zone.economy.ledger.errors import (
    DuplicateTransactionError,
    EmptyDescriptionError,
    InsufficientPointsError,
    InvalidPointsError,
    NegativeBalanceError,
    ProfileNotFoundError,
)
from access_zone.economy.ledger.investigation import build_investigation_report
from access_zone.economy.ledger.reconciliation import (
    EARN,
    REDEEM,
    check_totals,
    expected_from_totals,
)
from access_zone.economy.ledger.types import (
    BalanceCheck,
    EmergencyFixResult,
    EmergencyFixSummary,
    IntegrityIssue,
    IntegritySummary,
    InvestigationReport,
    PointsChangeResult,
    RecalculationResult,
)

logger = structlog.get_logger(__name__)

DUPLICATE_TRANSACTION_WINDOW = timedelta(minutes=1)
ADMIN_ADJUSTMENT_TASK_TYPE = "admin_adjustment"


def _validate_change(points: int, description: str) -> str:
    if points <= 0:
        raise InvalidPointsError
    cleaned = (description or "").strip()
    if not cleaned:
        raise EmptyDescriptionError
    return cleaned


class LedgerService:
    @staticmethod
    async def _get_locked_profile(session: AsyncSession, user_id: UUID) -> Profile:
        profile = await ProfilesRepo.get_by_id_for_update(session, user_id)
        if profile is None:
            raise ProfileNotFoundError
        return profile

    @staticmethod
    async def _record_audit(
        session: AsyncSession,
        *,
        user_id: UUID,
        old_points: int,
        new_points: int,
        reason: str,
        changed_by: str,
        now_utc: datetime,
    ) -> None:
        await PointsAuditRepo.create(
            session,
            entry=PointsAuditEntry(
                user_id=user_id,
                old_points=old_points,
                new_points=new_points,
                reason=reason,
                changed_by=changed_by,
                changed_at=now_utc,
            ),
        )

    @staticmethod
    async def _reject_recent_duplicate(
        session: AsyncSession,
        *,
        user_id: UUID,
        type_: str,
        points: int,
        description: str,
        now_utc: datetime,
    ) -> None:
        duplicate = await TransactionsRepo.find_recent_duplicate(
            session,
            user_id=user_id,
            type_=type_,
            points=points,
            description=description,
            since_utc=now_utc - DUPLICATE_TRANSACTION_WINDOW,
        )
        if duplicate is not None:
            logger.warning(
                "ledger_duplicate_transaction_rejected",
                user_id=str(user_id),
                type=type_,
                points=points,
            )
            raise DuplicateTransactionError

    @staticmethod
    async def append_entry(
        session: AsyncSession,
        *,
        profile: Profile,
        type_: str,
        points: int,
        description: str,
        task_type: str | None,
        now_utc: datetime,
    ) -> PointsChangeResult:
        """Append one ledger row and move the cached balance with it.

        The caller must hold the profile row lock.
        """
        old_points = profile.points
        transaction = await TransactionsRepo.create(
            session,
            transaction=Transaction(
                id=uuid4(),
                user_id=profile.id,
                type=type_,
                points=points,
                description=description,
                task_type=task_type,
                created_at=now_utc,
            ),
        )
        if type_ == EARN:
            profile.points = old_points + points
            profile.total_earned = profile.total_earned + points
        else:
            profile.points = old_points - points
        profile.updated_at = now_utc
        return PointsChangeResult(
            user_id=profile.id,
            transaction_id=transaction.id,
            old_points=old_points,
            new_points=profile.points,
            total_earned=profile.total_earned,
        )

    @staticmethod
    async def earn_for_locked_profile(
        session: AsyncSession,
        *,
        profile: Profile,
        points: int,
        description: str,
        task_type: str | None,
        now_utc: datetime,
    ) -> PointsChangeResult:
        """Credit an earning once. The caller must hold the profile row lock."""
        description = _validate_change(points, description)
        await LedgerService._reject_recent_duplicate(
            session,
            user_id=profile.id,
            type_=EARN,
            points=points,
            description=description,
            now_utc=now_utc,
        )
        return await LedgerService.append_entry(
            session,
            profile=profile,
            type_=EARN,
            points=points,
            description=description,
            task_type=task_type,
            now_utc=now_utc,
        )

    @staticmethod
    async def award_points(
        session: AsyncSession,
        *,
        user_id: UUID,
        points: int,
        description: str,
        task_type: str | None = None,
        now_utc: datetime | None = None,
    ) -> PointsChangeResult:
        now_utc = now_utc or datetime.now(timezone.utc)
        _validate_change(points, description)
        profile = await LedgerService._get_locked_profile(session, user_id)
        return await LedgerService.earn_for_locked_profile(
            session,
            profile=profile,
            points=points,
            description=description,
            task_type=task_type,
            now_utc=now_utc,
        )

    @staticmethod
    async def debit_points(
        session: AsyncSession,
        *,
        profile: Profile,
        points: int,
        description: str,
        task_type: str | None,
        now_utc: datetime,
    ) -> PointsChangeResult:
        description = _validate_change(points, description)
        if profile.points < points:
            raise InsufficientPointsError
        return await LedgerService.append_entry(
            session,
            profile=profile,
            type_=REDEEM,
            points=points,
            description=description,
            task_type=task_type,
            now_utc=now_utc,
        )

    @staticmethod
    async def get_balance_check(
        session: AsyncSession,
        *,
        user_id: UUID,
        threshold: int,
    ) -> BalanceCheck:
        profile = await ProfilesRepo.get_by_id(session, user_id)
        if profile is None:
            raise ProfileNotFoundError
        earned, redeemed = await TransactionsRepo.sum_by_type_for_user(session, user_id=user_id)
        return check_totals(
            cached_points=profile.points,
            earned=earned,
            redeemed=redeemed,
            threshold=threshold,
        )

    @staticmethod
    async def recalculate_user_points(
        session: AsyncSession,
        *,
        user_id: UUID,
        changed_by: str = "system",
        now_utc: datetime | None = None,
    ) -> RecalculationResult:
        now_utc = now_utc or datetime.now(timezone.utc)
        profile = await LedgerService._get_locked_profile(session, user_id)
        earned, redeemed = await TransactionsRepo.sum_by_type_for_user(session, user_id=user_id)
        expected = expected_from_totals(earned, redeemed)

        old_points = profile.points
        if old_points == expected and profile.total_earned == earned:
            return RecalculationResult(
                user_id=user_id,
                old_points=old_points,
                new_points=old_points,
                fixed=False,
            )

        profile.points = expected
        profile.total_earned = earned
        profile.updated_at = now_utc
        await LedgerService._record_audit(
            session,
            user_id=user_id,
            old_points=old_points,
            new_points=expected,
            reason="Balance recalculated from transaction history",
            changed_by=changed_by,
            now_utc=now_utc,
        )
        logger.info(
            "ledger_balance_recalculated",
            user_id=str(user_id),
            old_points=old_points,
            new_points=expected,
            changed_by=changed_by,
        )
        return RecalculationResult(
            user_id=user_id,
            old_points=old_points,
            new_points=expected,
            fixed=True,
        )

    @staticmethod
    async def admin_adjust_points(
        session: AsyncSession,
        *,
        user_id: UUID,
        points_change: int,
        description: str | None,
        changed_by: str,
        now_utc: datetime | None = None,
    ) -> PointsChangeResult:
        now_utc = now_utc or datetime.now(timezone.utc)
        if points_change == 0:
            raise InvalidPointsError

        profile = await LedgerService._get_locked_profile(session, user_id)
        if profile.points + points_change < 0:
            raise NegativeBalanceError

        sign = "+" if points_change > 0 else ""
        text = (description or "").strip() or f"Admin adjustment: {sign}{points_change} points"
        result = await LedgerService.append_entry(
            session,
            profile=profile,
            type_=EARN if points_change > 0 else REDEEM,
            points=abs(points_change),
            description=text,
            task_type=ADMIN_ADJUSTMENT_TASK_TYPE,
            now_utc=now_utc,
        )
        await LedgerService._record_audit(
            session,
            user_id=user_id,
            old_points=result.old_points,
            new_points=result.new_points,
            reason=f"admin adjustment: {text}",
            changed_by=changed_by,
            now_utc=now_utc,
        )
        logger.info(
            "ledger_admin_adjustment_applied",
            user_id=str(user_id),
            points_change=points_change,
            changed_by=changed_by,
        )
        return result

    @staticmethod
    async def emergency_fix_all(
        session: AsyncSession,
        *,
        changed_by: str,
        now_utc: datetime | None = None,
    ) -> EmergencyFixSummary:
        """Raise every balance that sits below its ledger value. Never lowers one."""
        now_utc = now_utc or datetime.now(timezone.utc)
        totals = await TransactionsRepo.ledger_totals_by_user(session)
        summary = EmergencyFixSummary(users_checked=0, users_fixed=0)

        for user_id in await ProfilesRepo.list_ids(session):
            profile = await ProfilesRepo.get_by_id_for_update(session, user_id)
            if profile is None:
                continue
            summary.users_checked += 1
            earned, redeemed = totals.get(user_id, (0, 0))
            expected = expected_from_totals(earned, redeemed)
            if expected <= profile.points:
                continue

            old_points = profile.points
            profile.points = expected
            profile.total_earned = max(profile.total_earned, earned)
            profile.updated_at = now_utc
            await LedgerService._record_audit(
                session,
                user_id=user_id,
                old_points=old_points,
                new_points=expected,
                reason=f"Safe restore: {expected - old_points} points returned from ledger",
                changed_by=changed_by,
                now_utc=now_utc,
            )
            summary.users_fixed += 1
            summary.fixes.append(
                EmergencyFixResult(
                    user_id=user_id,
                    old_points=old_points,
                    new_points=expected,
                    points_restored=expected - old_points,
                )
            )

        logger.info(
            "ledger_emergency_fix_completed",
            users_checked=summary.users_checked,
            users_fixed=summary.users_fixed,
        )
        return summary

    @staticmethod
    async def integrity_summary(
        session: AsyncSession,
        *,
        threshold: int,
        now_utc: datetime | None = None,
    ) -> IntegritySummary:
        now_utc = now_utc or datetime.now(timezone.utc)
        totals = await TransactionsRepo.ledger_totals_by_user(session)
        profiles = await ProfilesRepo.list_all(session)
        summary = IntegritySummary(
            checked_at=now_utc,
            total_users=len(profiles),
            total_transactions=await TransactionsRepo.count_all(session),
            users_with_issues=0,
            threshold=threshold,
        )
        for profile in profiles:
            earned, redeemed = totals.get(profile.id, (0, 0))
            check = check_totals(
                cached_points=profile.points,
                earned=earned,
                redeemed=redeemed,
                threshold=threshold,
            )
            if not check.flagged:
                continue
            summary.issues.append(
                IntegrityIssue(
                    user_id=profile.id,
                    email=profile.email,
                    cached_points=check.cached,
                    expected_points=check.expected,
                    difference=check.difference,
                )
            )
        summary.users_with_issues = len(summary.issues)
        return summary

    @staticmethod
    async def investigate_user(session: AsyncSession, *, user_id: UUID) -> InvestigationReport:
        profile = await ProfilesRepo.get_by_id(session, user_id)
        if profile is None:
            raise ProfileNotFoundError
        transactions = await TransactionsRepo.list_for_user(session, user_id=user_id)
        audit_entries = await PointsAuditRepo.list_for_user(session, user_id=user_id)
        return build_investigation_report(
            profile=profile,
            transactions=transactions,
            audit_entries=audit_entries,
        )

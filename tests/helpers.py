from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from itertools import count
from typing import Any
from uuid import UUID, uuid4

from jose import jwt
from sqlalchemy.exc import IntegrityError

from access_zone.db.models.points_audit_log import PointsAuditEntry
from access_zone.db.models.profiles import Profile
from access_zone.db.models.promo_code_redemptions import PromoCodeRedemption
from access_zone.db.models.promo_codes import PromoCode
from access_zone.db.models.redemption_requests import RedemptionRequest
from access_zone.db.models.subscription_availability import SubscriptionAvailability
from access_zone.db.models.tasks import Task
from access_zone.db.models.transactions import Transaction
from access_zone.db.repo.points_audit_repo import PointsAuditRepo
from access_zone.db.repo.profiles_repo import ProfilesRepo
from access_zone.db.repo.promo_repo import PromoRepo
from access_zone.db.repo.redemptions_repo import RedemptionsRepo
from access_zone.db.repo.subscriptions_repo import SubscriptionsRepo
from access_zone.db.repo.tasks_repo import TasksRepo
from access_zone.db.repo.transactions_repo import TransactionsRepo

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


class DummyNested:
    async def __aenter__(self) -> DummyNested:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


class DummySession:
    def begin_nested(self) -> DummyNested:
        return DummyNested()


class DummySessionBegin:
    def __init__(self, session: DummySession) -> None:
        self._session = session

    async def __aenter__(self) -> DummySession:
        return self._session

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


class DummySessionLocal:
    def __init__(self) -> None:
        self.session = DummySession()

    def begin(self) -> DummySessionBegin:
        return DummySessionBegin(self.session)


def make_profile(
    *,
    user_id: UUID | None = None,
    email: str = "player@example.com",
    full_name: str | None = "Test Player",
    points: int = 0,
    total_earned: int = 0,
    status: str = "active",
    suspended_until: datetime | None = None,
) -> Profile:
    return Profile(
        id=user_id or uuid4(),
        email=email,
        full_name=full_name,
        points=points,
        total_earned=total_earned,
        status=status,
        suspended_until=suspended_until,
        created_at=NOW,
        updated_at=NOW,
    )


def make_transaction(
    user_id: UUID,
    *,
    type_: str,
    points: int,
    description: str = "Seed entry",
    created_at: datetime = NOW,
    task_type: str | None = None,
) -> Transaction:
    return Transaction(
        id=uuid4(),
        user_id=user_id,
        type=type_,
        points=points,
        description=description,
        task_type=task_type,
        created_at=created_at,
    )


def make_promo_code(
    code: str,
    *,
    points: int = 100,
    description: str | None = None,
    max_uses: int | None = None,
    current_uses: int = 0,
    is_active: bool = True,
    starts_at: datetime | None = None,
    expires_at: datetime | None = None,
) -> PromoCode:
    return PromoCode(
        id=uuid4(),
        code=code,
        points=points,
        description=description,
        max_uses=max_uses,
        current_uses=current_uses,
        is_active=is_active,
        starts_at=starts_at,
        expires_at=expires_at,
        created_by=None,
        created_at=NOW,
    )


def _duplicate_key_error() -> IntegrityError:
    return IntegrityError("INSERT", {}, Exception("duplicate key value violates unique constraint"))


@dataclass
class InMemoryStore:
    """Replaces the repo classes with dict/list backed fakes for unit tests."""

    profiles: dict[UUID, Profile] = field(default_factory=dict)
    transactions: list[Transaction] = field(default_factory=list)
    audit: list[PointsAuditEntry] = field(default_factory=list)
    tasks: list[Task] = field(default_factory=list)
    promo_codes: dict[UUID, PromoCode] = field(default_factory=dict)
    promo_redemptions: list[PromoCodeRedemption] = field(default_factory=list)
    redemptions: dict[UUID, RedemptionRequest] = field(default_factory=dict)
    catalog: dict[UUID, SubscriptionAvailability] = field(default_factory=dict)
    fail_next_transaction: Exception | None = None
    _audit_ids: Any = field(default_factory=lambda: count(1))

    def add_profile(self, profile: Profile) -> Profile:
        self.profiles[profile.id] = profile
        return profile

    def add_transaction(self, transaction: Transaction) -> Transaction:
        self.transactions.append(transaction)
        return transaction

    def add_promo_code(self, promo_code: PromoCode) -> PromoCode:
        self.promo_codes[promo_code.id] = promo_code
        return promo_code

    def user_transactions(self, user_id: UUID) -> list[Transaction]:
        return [item for item in self.transactions if item.user_id == user_id]

    def install(self, monkeypatch) -> InMemoryStore:
        store = self

        # profiles
        async def get_profile(session, user_id):
            return store.profiles.get(user_id)

        async def create_profile(session, *, profile):
            if profile.id in store.profiles:
                raise _duplicate_key_error()
            store.profiles[profile.id] = profile
            return profile

        async def list_profiles(session):
            return sorted(store.profiles.values(), key=lambda item: str(item.id))

        async def list_profile_ids(session):
            return [item.id for item in await list_profiles(session)]

        async def list_top(session, *, limit):
            ranked = sorted(store.profiles.values(), key=lambda item: -item.points)
            return ranked[:limit]

        async def list_with_counts(session, *, limit=500):
            return [
                (
                    profile,
                    len(store.user_transactions(profile.id)),
                    len([task for task in store.tasks if task.user_id == profile.id]),
                )
                for profile in list(store.profiles.values())[:limit]
            ]

        async def set_status(session, *, profile, status, suspended_until, now_utc):
            profile.status = status
            profile.suspended_until = suspended_until
            profile.updated_at = now_utc
            return profile

        for name, func in (
            ("get_by_id", get_profile),
            ("get_by_id_for_update", get_profile),
            ("create", create_profile),
            ("list_all", list_profiles),
            ("list_ids", list_profile_ids),
            ("list_top_by_points", list_top),
            ("list_with_activity_counts", list_with_counts),
            ("set_status", set_status),
        ):
            monkeypatch.setattr(ProfilesRepo, name, staticmethod(func))

        # transactions
        async def create_transaction(session, *, transaction):
            if store.fail_next_transaction is not None:
                error, store.fail_next_transaction = store.fail_next_transaction, None
                raise error
            store.transactions.append(transaction)
            return transaction

        async def delete_transaction(session, transaction_id):
            before = len(store.transactions)
            store.transactions = [item for item in store.transactions if item.id != transaction_id]
            return before - len(store.transactions)

        async def list_transactions(session, *, user_id, limit=None):
            rows = sorted(
                store.user_transactions(user_id),
                key=lambda item: item.created_at,
                reverse=True,
            )
            return rows if limit is None else rows[:limit]

        async def sum_by_type(session, *, user_id):
            earned = sum(t.points for t in store.user_transactions(user_id) if t.type == "earn")
            redeemed = sum(t.points for t in store.user_transactions(user_id) if t.type == "redeem")
            return earned, redeemed

        async def find_duplicate(session, *, user_id, type_, points, description, since_utc):
            for item in store.user_transactions(user_id):
                if (
                    item.type == type_
                    and item.points == points
                    and item.description == description
                    and item.created_at >= since_utc
                ):
                    return item
            return None

        async def recent_with_email(session, *, limit=10):
            rows = sorted(store.transactions, key=lambda item: item.created_at, reverse=True)
            return [(item, store.profiles[item.user_id].email) for item in rows[:limit]]

        async def totals_by_user(session):
            totals: dict[UUID, tuple[int, int]] = {}
            for user_id in {item.user_id for item in store.transactions}:
                totals[user_id] = await sum_by_type(session, user_id=user_id)
            return totals

        async def count_transactions(session):
            return len(store.transactions)

        for name, func in (
            ("create", create_transaction),
            ("delete_by_id", delete_transaction),
            ("list_for_user", list_transactions),
            ("sum_by_type_for_user", sum_by_type),
            ("find_recent_duplicate", find_duplicate),
            ("list_recent_with_email", recent_with_email),
            ("ledger_totals_by_user", totals_by_user),
            ("count_all", count_transactions),
        ):
            monkeypatch.setattr(TransactionsRepo, name, staticmethod(func))

        # audit
        async def create_audit(session, *, entry):
            entry.id = next(store._audit_ids)
            store.audit.append(entry)
            return entry

        async def list_audit(session, *, user_id, limit=100):
            rows = [item for item in store.audit if item.user_id == user_id]
            return sorted(rows, key=lambda item: (item.changed_at, item.id), reverse=True)[:limit]

        monkeypatch.setattr(PointsAuditRepo, "create", staticmethod(create_audit))
        monkeypatch.setattr(PointsAuditRepo, "list_for_user", staticmethod(list_audit))

        # tasks
        async def create_task(session, *, task):
            store.tasks.append(task)
            return task

        async def count_tasks_since(session, *, user_id, task_type, since_utc):
            return len(
                [
                    task
                    for task in store.tasks
                    if task.user_id == user_id
                    and task.task_type == task_type
                    and task.completed_at >= since_utc
                ]
            )

        async def list_completed(session, *, user_id, task_type, limit=14):
            rows = [
                task.completed_at
                for task in store.tasks
                if task.user_id == user_id and task.task_type == task_type
            ]
            return sorted(rows, reverse=True)[:limit]

        monkeypatch.setattr(TasksRepo, "create", staticmethod(create_task))
        monkeypatch.setattr(TasksRepo, "count_for_user_since", staticmethod(count_tasks_since))
        monkeypatch.setattr(TasksRepo, "list_completed_at", staticmethod(list_completed))

        # promo codes
        async def code_by_code(session, code):
            for item in store.promo_codes.values():
                if item.code == code:
                    return item
            return None

        async def code_by_id(session, promo_code_id):
            return store.promo_codes.get(promo_code_id)

        async def list_codes(session, *, limit=500):
            return list(store.promo_codes.values())[:limit]

        async def existing_codes(session, codes):
            known = {item.code for item in store.promo_codes.values()}
            return {code for code in codes if code in known}

        async def create_code(session, *, promo_code):
            if await code_by_code(session, promo_code.code) is not None:
                raise _duplicate_key_error()
            store.promo_codes[promo_code.id] = promo_code
            return promo_code

        async def create_codes(session, *, promo_codes):
            for promo_code in promo_codes:
                await create_code(session, promo_code=promo_code)
            return promo_codes

        async def delete_code(session, promo_code_id):
            return 1 if store.promo_codes.pop(promo_code_id, None) is not None else 0

        async def redemption_by_code_and_user(session, *, promo_code_id, user_id):
            for item in store.promo_redemptions:
                if item.promo_code_id == promo_code_id and item.user_id == user_id:
                    return item
            return None

        async def create_promo_redemption(session, *, redemption):
            existing = await redemption_by_code_and_user(
                session,
                promo_code_id=redemption.promo_code_id,
                user_id=redemption.user_id,
            )
            if existing is not None:
                raise _duplicate_key_error()
            store.promo_redemptions.append(redemption)
            return redemption

        async def redemptions_for_user(session, *, user_id, limit=20):
            return [
                (item, store.promo_codes[item.promo_code_id].code)
                for item in store.promo_redemptions
                if item.user_id == user_id
            ][:limit]

        async def redemptions_for_code(session, *, promo_code_id, limit=100):
            return [
                (item, store.profiles[item.user_id].email)
                for item in store.promo_redemptions
                if item.promo_code_id == promo_code_id
            ][:limit]

        for name, func in (
            ("get_code_by_code", code_by_code),
            ("get_code_by_code_for_update", code_by_code),
            ("get_code_by_id", code_by_id),
            ("list_codes", list_codes),
            ("list_existing_codes", existing_codes),
            ("create_code", create_code),
            ("create_codes", create_codes),
            ("delete_code", delete_code),
            ("get_redemption_by_code_and_user", redemption_by_code_and_user),
            ("create_redemption", create_promo_redemption),
            ("list_redemptions_for_user", redemptions_for_user),
            ("list_redemptions_for_code", redemptions_for_code),
        ):
            monkeypatch.setattr(PromoRepo, name, staticmethod(func))

        # redemption requests
        async def create_request(session, *, request):
            store.redemptions[request.id] = request
            return request

        async def delete_request(session, request_id):
            return 1 if store.redemptions.pop(request_id, None) is not None else 0

        async def request_for_update(session, request_id):
            return store.redemptions.get(request_id)

        async def requests_with_profiles(session, *, status=None, limit=500):
            rows = [
                item for item in store.redemptions.values() if status is None or item.status == status
            ]
            return [
                (item, store.profiles[item.user_id].email, store.profiles[item.user_id].full_name)
                for item in rows[:limit]
            ]

        async def recent_requests(session, *, limit=10):
            rows = sorted(store.redemptions.values(), key=lambda item: item.created_at, reverse=True)
            return rows[:limit]

        async def requests_for_user(session, *, user_id, limit=100):
            return [item for item in store.redemptions.values() if item.user_id == user_id][:limit]

        for name, func in (
            ("create", create_request),
            ("delete_by_id", delete_request),
            ("get_by_id_for_update", request_for_update),
            ("list_all_with_profiles", requests_with_profiles),
            ("list_recent", recent_requests),
            ("list_for_user", requests_for_user),
        ):
            monkeypatch.setattr(RedemptionsRepo, name, staticmethod(func))

        # subscription catalogue
        async def list_catalog(session):
            return list(store.catalog.values())

        async def catalog_item(session, item_id):
            return store.catalog.get(item_id)

        async def catalog_by_subscription(session, *, subscription_id, duration):
            for item in store.catalog.values():
                if item.subscription_id == subscription_id and item.duration == duration:
                    return item
            return None

        async def create_catalog_item(session, *, item):
            store.catalog[item.id] = item
            return item

        async def delete_catalog_item(session, item_id):
            return 1 if store.catalog.pop(item_id, None) is not None else 0

        for name, func in (
            ("list_all", list_catalog),
            ("get_by_id", catalog_item),
            ("get_by_subscription", catalog_by_subscription),
            ("create", create_catalog_item),
            ("delete_by_id", delete_catalog_item),
        ):
            monkeypatch.setattr(SubscriptionsRepo, name, staticmethod(func))

        return store


TEST_JWT_SECRET = "test-jwt-secret"
TEST_JWT_AUDIENCE = "authenticated"
ADMIN_EMAIL = "admin@example.com"


def auth_headers(user_id: UUID, email: str = "player@example.com") -> dict[str, str]:
    token = jwt.encode(
        {"sub": str(user_id), "email": email, "aud": TEST_JWT_AUDIENCE},
        TEST_JWT_SECRET,
        algorithm="HS256",
    )
    return {"Authorization": f"Bearer {token}"}

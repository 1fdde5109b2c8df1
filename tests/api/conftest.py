from __future__ import annotations

from dataclasses import dataclass, field
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from access_zone.api import deps
from access_zone.api.routes import (
    account,
    admin_promo_codes,
    admin_redemptions,
    admin_subscriptions,
    admin_users,
    tasks,
)
from access_zone.main import app
from tests.helpers import (
    ADMIN_EMAIL,
    TEST_JWT_AUDIENCE,
    TEST_JWT_SECRET,
    DummySessionLocal,
    InMemoryStore,
)


@dataclass
class ApiHarness:
    client: TestClient
    store: InMemoryStore
    operator_messages: list[dict[str, str]] = field(default_factory=list)


def _test_settings() -> SimpleNamespace:
    return SimpleNamespace(
        auth_jwt_secret=TEST_JWT_SECRET,
        auth_jwt_audience=TEST_JWT_AUDIENCE,
        auth_jwt_algorithm="HS256",
        admin_email_set=frozenset({ADMIN_EMAIL}),
        points_discrepancy_threshold=10,
        activation_code_ttl_days=30,
        daily_quiz_limit=3,
        site_url="https://access-zone.test",
    )


@pytest.fixture
def api(monkeypatch) -> ApiHarness:
    store = InMemoryStore().install(monkeypatch)
    harness = ApiHarness(client=TestClient(app), store=store)
    session_local = DummySessionLocal()
    settings = _test_settings()

    for module in (
        account,
        tasks,
        admin_redemptions,
        admin_promo_codes,
        admin_subscriptions,
        admin_users,
    ):
        monkeypatch.setattr(module, "SessionLocal", session_local)
    for module in (deps, account, tasks, admin_redemptions, admin_users):
        monkeypatch.setattr(module, "get_settings", lambda: settings)

    async def fake_enqueue(*, text: str, event: str) -> bool:
        harness.operator_messages.append({"text": text, "event": event})
        return True

    monkeypatch.setattr(account, "enqueue_operator_message", fake_enqueue)
    monkeypatch.setattr(admin_redemptions, "enqueue_operator_message", fake_enqueue)
    return harness

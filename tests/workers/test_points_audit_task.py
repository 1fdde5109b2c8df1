from __future__ import annotations

from types import SimpleNamespace
from uuid import uuid4

import pytest

from access_zone.workers.tasks import points_audit
from tests.helpers import DummySessionLocal, make_profile, make_transaction


def test_run_points_integrity_sweep_task_wrapper(monkeypatch) -> None:
    async def fake_async() -> dict[str, int]:
        return {"total_users": 5, "users_with_issues": 1, "threshold": 10}

    monkeypatch.setattr(points_audit, "run_points_integrity_sweep_async", fake_async)

    result = points_audit.run_points_integrity_sweep()
    assert result["users_with_issues"] == 1


@pytest.mark.asyncio
async def test_sweep_alerts_operators_when_balances_drift(store, monkeypatch) -> None:
    drifted = store.add_profile(make_profile(user_id=uuid4(), points=500, total_earned=100))
    store.add_transaction(make_transaction(drifted.id, type_="earn", points=100))
    healthy = store.add_profile(
        make_profile(user_id=uuid4(), email="ok@example.com", points=50, total_earned=50)
    )
    store.add_transaction(make_transaction(healthy.id, type_="earn", points=50))
    sent: list[dict[str, str]] = []

    async def fake_send(*, text: str, event: str) -> dict[str, object]:
        sent.append({"text": text, "event": event})
        return {"sent": True, "reason": "ok"}

    monkeypatch.setattr(points_audit, "SessionLocal", DummySessionLocal())
    monkeypatch.setattr(
        points_audit,
        "get_settings",
        lambda: SimpleNamespace(points_discrepancy_threshold=10),
    )
    monkeypatch.setattr(points_audit, "send_operator_message_async", fake_send)

    result = await points_audit.run_points_integrity_sweep_async()

    assert result == {"total_users": 2, "users_with_issues": 1, "threshold": 10}
    [message] = sent
    assert message["event"] == "points_integrity_alert"
    assert "1 of 2" in message["text"]


@pytest.mark.asyncio
async def test_sweep_is_quiet_when_balances_match(store, monkeypatch) -> None:
    profile = store.add_profile(make_profile(points=20, total_earned=20))
    store.add_transaction(make_transaction(profile.id, type_="earn", points=20))

    async def fail_send(*, text: str, event: str) -> dict[str, object]:
        raise AssertionError("no alert expected")

    monkeypatch.setattr(points_audit, "SessionLocal", DummySessionLocal())
    monkeypatch.setattr(
        points_audit,
        "get_settings",
        lambda: SimpleNamespace(points_discrepancy_threshold=10),
    )
    monkeypatch.setattr(points_audit, "send_operator_message_async", fail_send)

    result = await points_audit.run_points_integrity_sweep_async()

    assert result["users_with_issues"] == 0

from __future__ import annotations

import pytest

from tests.helpers import DummySession, InMemoryStore


@pytest.fixture
def store(monkeypatch) -> InMemoryStore:
    return InMemoryStore().install(monkeypatch)


@pytest.fixture
def session() -> DummySession:
    return DummySession()

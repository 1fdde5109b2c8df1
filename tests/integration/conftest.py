from __future__ import annotations

import pytest
from sqlalchemy import text

from access_zone.core.integration_db_safety import assert_safe_integration_db
from access_zone.db.models import Base
from access_zone.db.session import engine

TRUNCATE_TABLES = (
    "promo_code_redemptions",
    "redemption_requests",
    "points_audit_log",
    "transactions",
    "tasks",
    "promo_codes",
    "subscription_availability",
    "profiles",
)

TRUNCATE_SQL = f"TRUNCATE TABLE {', '.join(TRUNCATE_TABLES)} RESTART IDENTITY CASCADE"


@pytest.fixture(autouse=True)
async def cleanup_db() -> None:
    # Dispose pooled connections between tests to avoid cross-event-loop asyncpg reuse.
    await engine.dispose()

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:  # pragma: no cover - environment-dependent
        pytest.skip(f"Postgres is required for integration tests: {exc}")

    assert_safe_integration_db(str(engine.url))

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.execute(text(TRUNCATE_SQL))

    yield

    await engine.dispose()

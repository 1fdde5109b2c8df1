from __future__ import annotations

from datetime import datetime, timezone

import structlog

from access_zone.core.config import get_settings
from access_zone.db.session import SessionLocal
from access_zone.economy.ledger.service import LedgerService
from access_zone.services.operator_messages import build_points_integrity_message
from access_zone.workers.asyncio_runner import run_async_job
from access_zone.workers.celery_app import celery_app
from access_zone.workers.tasks.notifications import send_operator_message_async

logger = structlog.get_logger(__name__)


async def run_points_integrity_sweep_async() -> dict[str, int]:
    threshold = get_settings().points_discrepancy_threshold
    async with SessionLocal.begin() as session:
        summary = await LedgerService.integrity_summary(
            session,
            threshold=threshold,
            now_utc=datetime.now(timezone.utc),
        )

    result = {
        "total_users": summary.total_users,
        "users_with_issues": summary.users_with_issues,
        "threshold": threshold,
    }
    if summary.users_with_issues > 0:
        logger.warning("points_integrity_discrepancies_found", **result)
        await send_operator_message_async(
            text=build_points_integrity_message(
                users_with_issues=summary.users_with_issues,
                total_users=summary.total_users,
                threshold=threshold,
            ),
            event="points_integrity_alert",
        )
    else:
        logger.info("points_integrity_sweep_finished", **result)
    return result


@celery_app.task(name="access_zone.workers.tasks.points_audit.run_points_integrity_sweep")
def run_points_integrity_sweep() -> dict[str, int]:
    return run_async_job(run_points_integrity_sweep_async())


celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
celery_app.conf.beat_schedule.update(
    {
        "points-integrity-sweep-hourly": {
            "task": "access_zone.workers.tasks.points_audit.run_points_integrity_sweep",
            "schedule": 3600.0,
            "options": {"queue": "q_normal"},
        },
    }
)

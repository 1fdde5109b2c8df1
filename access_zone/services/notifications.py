from __future__ import annotations

import asyncio

import structlog

from access_zone.core.config import get_settings
from access_zone.workers.tasks.notifications import send_operator_message

logger = structlog.get_logger(__name__)


def _is_celery_task(task_obj: object) -> bool:
    return type(task_obj).__module__.startswith("celery.")


async def enqueue_operator_message(*, text: str, event: str) -> bool:
    """Queue an operator message. Failures are logged and reported as False."""
    timeout_seconds = get_settings().notification_enqueue_timeout_ms / 1000

    def enqueue_call() -> object:
        return send_operator_message.delay(text=text, event=event)

    try:
        if _is_celery_task(send_operator_message):
            await asyncio.wait_for(
                asyncio.to_thread(enqueue_call),
                timeout=timeout_seconds,
            )
        else:
            enqueue_call()
        return True
    except asyncio.TimeoutError:
        logger.warning(
            "operator_notification_enqueue_timeout",
            notification_event=event,
            enqueue_timeout_seconds=timeout_seconds,
        )
        return False
    except Exception as exc:
        logger.warning(
            "operator_notification_enqueue_failed",
            notification_event=event,
            error_type=type(exc).__name__,
        )
        return False

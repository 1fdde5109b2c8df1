from __future__ import annotations

import asyncio

import structlog

from access_zone.core.config import get_settings
from access_zone.services.telegram_bot import build_bot
from access_zone.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)


async def send_operator_message_async(*, text: str, event: str) -> dict[str, object]:
    settings = get_settings()
    if not settings.operator_chat_id or not settings.telegram_bot_token:
        logger.warning("operator_notification_skipped_not_configured", notification_event=event)
        return {"sent": False, "reason": "not_configured"}

    try:
        bot = build_bot()
    except Exception:
        logger.exception("operator_notification_bot_init_failed", notification_event=event)
        return {"sent": False, "reason": "bot_init_failed"}

    try:
        await bot.send_message(chat_id=settings.operator_chat_id, text=text)
    except Exception as exc:
        logger.warning(
            "operator_notification_delivery_failed",
            notification_event=event,
            error_type=type(exc).__name__,
        )
        return {"sent": False, "reason": "delivery_failed"}
    finally:
        await bot.session.close()

    logger.info("operator_notification_sent", notification_event=event)
    return {"sent": True, "reason": "ok"}


@celery_app.task(name="access_zone.workers.tasks.notifications.send_operator_message")
def send_operator_message(*, text: str, event: str) -> dict[str, object]:
    return asyncio.run(send_operator_message_async(text=text, event=event))

from __future__ import annotations

from aiogram import Bot
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from access_zone.core.config import get_settings


class OperatorChannelNotConfiguredError(Exception):
    pass


def build_bot() -> Bot:
    settings = get_settings()
    if not settings.telegram_bot_token:
        raise OperatorChannelNotConfiguredError("TELEGRAM_BOT_TOKEN is empty")
    return Bot(
        token=settings.telegram_bot_token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )

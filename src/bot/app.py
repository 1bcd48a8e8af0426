"""Telegram application factory."""

from __future__ import annotations

import logging

from telegram.ext import Application, CommandHandler, MessageHandler, filters

from src.bot.handlers import (
    ROUTER_KEY,
    handle_clear,
    handle_error,
    handle_help,
    handle_list,
    handle_message,
)
from src.bot.heartbeat import Heartbeat
from src.bot.router import MessageRouter
from src.config import settings
from src.llm.extraction import ExtractionClient
from src.reminders.store import ReminderStore

logger = logging.getLogger(__name__)

HEARTBEAT_KEY = "heartbeat"

# New private/group messages only; edits of an already handled message are ignored.
MESSAGE_FILTER = filters.UpdateType.MESSAGE & filters.TEXT & ~filters.COMMAND


async def _post_init(app: Application) -> None:
    """Called after the Application is fully initialized (event loop running)."""
    await app.bot_data[HEARTBEAT_KEY].start()


async def _post_shutdown(app: Application) -> None:
    """Called during graceful shutdown."""
    heartbeat: Heartbeat | None = app.bot_data.get(HEARTBEAT_KEY)
    if heartbeat is not None:
        await heartbeat.stop()


def create_app(store: ReminderStore | None = None) -> Application:
    """Build and configure the Telegram application.

    The ReminderStore lives as long as the Application; a fresh one is
    created unless the caller supplies it.
    """
    store = store if store is not None else ReminderStore()
    router = MessageRouter(store=store, extractor=ExtractionClient())

    app = Application.builder().token(settings.telegram_bot_token).concurrent_updates(True).build()
    app.bot_data[ROUTER_KEY] = router
    app.bot_data[HEARTBEAT_KEY] = Heartbeat(store)

    new_only = filters.UpdateType.MESSAGE
    app.add_handler(CommandHandler(["start", "help"], handle_help, filters=new_only))
    app.add_handler(CommandHandler("list", handle_list, filters=new_only))
    app.add_handler(CommandHandler("clear", handle_clear, filters=new_only))
    app.add_handler(MessageHandler(MESSAGE_FILTER, handle_message))
    app.add_error_handler(handle_error)

    app.post_init = _post_init
    app.post_shutdown = _post_shutdown

    logger.info("Telegram app created (extraction model %s)", settings.extraction_model)
    return app

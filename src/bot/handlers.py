"""Telegram handlers — adapt updates to InboundMessage and send replies."""

from __future__ import annotations

import logging

from telegram import Update
from telegram.constants import ChatType, MessageLimit, ParseMode
from telegram.error import BadRequest
from telegram.ext import ContextTypes

from src.bot import formatter
from src.bot.router import InboundMessage, MessageRouter

logger = logging.getLogger(__name__)

GROUP_CHAT_TYPES = (ChatType.GROUP, ChatType.SUPERGROUP, ChatType.CHANNEL)

ROUTER_KEY = "router"


def split_reply(text: str, limit: int = MessageLimit.MAX_TEXT_LENGTH) -> list[str]:
    """Split *text* into parts of at most *limit* characters, preferring line breaks."""
    parts = []
    while len(text) > limit:
        cut = text.rfind("\n", 0, limit)
        if cut <= 0:
            cut = limit
        parts.append(text[:cut])
        text = text[cut:].lstrip("\n")
    parts.append(text)
    return parts


def _get_router(context: ContextTypes.DEFAULT_TYPE) -> MessageRouter:
    return context.bot_data[ROUTER_KEY]


def to_inbound(update: Update, text: str) -> InboundMessage:
    """Build an InboundMessage from a Telegram update."""
    chat = update.effective_chat
    return InboundMessage(
        conversation_id=str(chat.id),
        is_group=chat.type in GROUP_CHAT_TYPES,
        text=text,
    )


async def _reply(update: Update, text: str) -> None:
    """Reply with Markdown, falling back to plain text if Telegram rejects the entities.

    Replies longer than one Telegram message are sent in several parts.
    """
    message = update.effective_message
    for chunk in split_reply(text):
        try:
            await message.reply_text(chunk, parse_mode=ParseMode.MARKDOWN)
        except BadRequest as exc:
            if "parse entities" not in str(exc).lower():
                raise
            logger.warning("Markdown reply rejected, resending as plain text")
            await message.reply_text(chunk)


async def _dispatch(update: Update, context: ContextTypes.DEFAULT_TYPE, text: str) -> None:
    inbound = to_inbound(update, text)
    try:
        reply = await _get_router(context).handle(inbound)
    except Exception:
        logger.exception("Error handling message from %s", inbound.conversation_id)
        reply = None if inbound.is_group else formatter.extraction_failed()

    if reply is None:
        return
    await _reply(update, reply)


async def handle_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle an incoming text message."""
    text = update.effective_message.text or ""
    logger.info("Message from %s: %s", update.effective_chat.id, text[:80])
    await _dispatch(update, context, text)


async def handle_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start and /help."""
    await _dispatch(update, context, "help")


async def handle_list(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /list."""
    await _dispatch(update, context, "list")


async def handle_clear(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /clear — delete every reminder."""
    await _dispatch(update, context, "clear")


async def handle_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Log errors raised while processing an update; the bot keeps running."""
    logger.error("Error while processing update %s", update, exc_info=context.error)

"""Message routing: classify inbound text and produce exactly one reply."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from src.bot import formatter
from src.llm.extraction import ExtractionError
from src.reminders.models import ReminderRecord, make_reminder_id

if TYPE_CHECKING:
    from src.llm.extraction import ExtractionClient
    from src.reminders.store import ReminderStore

logger = logging.getLogger(__name__)


class Intent(enum.Enum):
    IGNORED = "ignored"
    HELP = "help"
    LIST = "list"
    CLEAR = "clear"
    FREE_FORM = "free_form"


KEYWORDS: dict[str, Intent] = {
    "help": Intent.HELP,
    "hi": Intent.HELP,
    "hello": Intent.HELP,
    "list": Intent.LIST,
    "show": Intent.LIST,
    "clear": Intent.CLEAR,
    "delete all": Intent.CLEAR,
}


@dataclass(frozen=True)
class InboundMessage:
    """A text message as delivered by the transport."""

    conversation_id: str
    is_group: bool
    text: str


def classify(message: InboundMessage) -> Intent:
    """Pick the intent for a message. Group messages are always ignored."""
    if message.is_group:
        return Intent.IGNORED
    return KEYWORDS.get(message.text.strip().lower(), Intent.FREE_FORM)


class MessageRouter:
    """Dispatches inbound messages to the store or the extraction pipeline.

    Args:
        store: The process-wide ReminderStore.
        extractor: Client used for free-form messages.
    """

    def __init__(self, store: ReminderStore, extractor: ExtractionClient) -> None:
        self._store = store
        self._extractor = extractor

    async def handle(self, message: InboundMessage) -> str | None:
        """Return the reply for *message*, or None when it must be ignored.

        Extraction failures are logged and answered with a fixed apology;
        they are never raised to the caller.
        """
        intent = classify(message)
        if intent is Intent.IGNORED:
            return None

        logger.info("Intent %s from %s", intent.value, message.conversation_id)

        if intent is Intent.HELP:
            return formatter.help_text()

        if intent is Intent.LIST:
            # All conversations share one list; conversation_id is not a filter yet.
            records = await self._store.list()
            return formatter.list_of(records)

        if intent is Intent.CLEAR:
            await self._store.clear()
            return formatter.cleared()

        return await self._handle_free_form(message)

    async def _handle_free_form(self, message: InboundMessage) -> str:
        try:
            extracted = await self._extractor.extract(message.text)
        except ExtractionError as exc:
            logger.warning(
                "Extraction failed (%s) for %s: %s",
                exc.kind,
                message.conversation_id,
                exc,
            )
            if exc.raw is not None:
                logger.debug("Raw extraction response: %r", exc.raw[:500])
            return formatter.extraction_failed()

        record = ReminderRecord(
            id=make_reminder_id(),
            conversation_id=message.conversation_id,
            task=extracted.task,
            time=extracted.time,
            date=extracted.date,
            original_text=message.text,
        )
        await self._store.append(record)
        logger.info(
            "Saved reminder %s for %s: task=%r time=%r date=%r",
            record.id,
            record.conversation_id,
            record.task,
            record.time,
            record.date,
        )
        return formatter.confirmation(record.task, record.time, record.date)

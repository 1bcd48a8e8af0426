"""Reminder bot entry point."""

import logging
import sys

from src.config import settings

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, settings.log_level),
)
logger = logging.getLogger(__name__)


def main() -> None:
    """Start the bot on Telegram."""
    from src.bot.app import create_app

    missing = settings.missing_credentials()
    for name in missing:
        logger.warning("%s is not set", name)
    if "TELEGRAM_BOT_TOKEN" in missing:
        logger.error("Cannot start without TELEGRAM_BOT_TOKEN")
        sys.exit(1)

    logger.info("Starting reminder bot with extraction model %s...", settings.extraction_model)
    app = create_app()
    app.run_polling()


if __name__ == "__main__":
    main()

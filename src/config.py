"""Application settings loaded from environment variables."""

import logging
import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """Reminder bot configuration. All values come from environment variables."""

    # Telegram
    telegram_bot_token: str = Field(default="")

    # Anthropic (extraction backend)
    anthropic_api_key: str = Field(default="")
    extraction_model: str = Field(default="claude-haiku-4-5-20251001")
    extraction_max_tokens: int = Field(default=256)
    extraction_timeout_seconds: float = Field(default=30.0)
    extraction_max_retries: int = Field(default=0, ge=0)

    # Heartbeat
    heartbeat_interval_seconds: int = Field(default=60, gt=0)

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=_env_file(), env_file_encoding="utf-8")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value!r}")
        return level

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    def missing_credentials(self) -> list[str]:
        """Return the env var names of required credentials that are unset."""
        missing = []
        if not self.telegram_bot_token.strip():
            missing.append("TELEGRAM_BOT_TOKEN")
        if not self.anthropic_api_key.strip():
            missing.append("ANTHROPIC_API_KEY")
        return missing


settings = Settings()

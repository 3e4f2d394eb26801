"""Configuration management using Pydantic Settings."""

import logging
from functools import lru_cache
from typing import Literal, Optional

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Hosted model
    LLM_PROVIDER: Literal["gemini", "openai", "echo"] = "gemini"
    LLM_MODEL: str = "gemini-2.5-flash"
    GEMINI_API_KEY: SecretStr = SecretStr("")
    OPENAI_API_KEY: SecretStr = SecretStr("")

    # Document store
    STORE_BACKEND: Literal["firestore", "memory"] = "firestore"
    FIRESTORE_PROJECT: Optional[str] = None
    FIRESTORE_DATABASE: str = "(default)"

    # Conversations
    CONVERSATION_LIST_LIMIT: int = 20
    CONVERSATION_TITLE_LENGTH: int = 30
    PERSONA_GENDER: Optional[str] = "female"
    HISTORY_WINDOW: int = 200  # trailing messages sent to the model, 0 = all

    # Dashboard
    DASHBOARD_ANALYSIS_MIN_MESSAGES: int = 5

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator("CONVERSATION_LIST_LIMIT", "CONVERSATION_TITLE_LENGTH")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be a positive integer")
        return v

    @field_validator("HISTORY_WINDOW", "DASHBOARD_ANALYSIS_MIN_MESSAGES")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must not be negative")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {v}")
        return level

    @property
    def history_window(self) -> Optional[int]:
        """The history window as taken by ``render_history``."""
        return self.HISTORY_WINDOW or None


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(level: str = "INFO") -> None:
    """Installs a single stream handler on the root logger."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Remove existing handlers to avoid duplicate output
    root_logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)

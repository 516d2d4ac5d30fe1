"""
accessbot/core/config.py

Purpose: Application configuration

- Loads environment variables (and .env)
- Centralizes bot token, reviewer id, channel id and flow limits
- Validates configuration on startup
- Environment-specific settings
"""

import re
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Literal, Optional

from accessbot.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Required values are checked by validate_settings() on startup.
    """

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # Telegram
    BOT_TOKEN: str = Field(
        default="",
        description="Telegram bot authentication token"
    )
    ADMIN_CHAT_ID: str = Field(
        default="",
        description="Reviewer chat/user id (numeric string)"
    )
    CHANNEL_ID: str = Field(
        default="",
        description="Channel that invite links are created for"
    )
    TELEGRAM_API_URL: str = Field(
        default="https://api.telegram.org",
        description="Telegram Bot API base URL"
    )
    TELEGRAM_TIMEOUT: float = Field(
        default=30.0,
        description="Bot API request timeout in seconds"
    )

    # Transport
    WEBHOOK_URL: Optional[str] = Field(
        default=None,
        description="Public URL registered with setWebhook on startup (webhook mode)"
    )
    WEBHOOK_SECRET: Optional[str] = Field(
        default=None,
        description="Expected X-Telegram-Bot-Api-Secret-Token header value"
    )
    POLLING_TIMEOUT: int = Field(
        default=30,
        description="getUpdates long-poll timeout in seconds"
    )

    # Questionnaire
    TEXT_MIN_LENGTH: int = Field(
        default=10,
        description="Minimum length of the free-text answer (inclusive)"
    )
    TEXT_MAX_LENGTH: int = Field(
        default=500,
        description="Maximum length of the free-text answer (inclusive)"
    )
    POLL_QUESTION: str = Field(
        default="Which option do you prefer?",
        description="Question shown in the step 2 poll"
    )
    POLL_OPTIONS: List[str] = Field(
        default=["Option A", "Option B"],
        description="Ordered poll option labels"
    )

    # Invites
    INVITE_EXPIRE_SECONDS: int = Field(
        default=3600,
        description="Lifetime of an issued invite link"
    )
    INVITE_MEMBER_LIMIT: int = Field(
        default=1,
        description="How many users may join through one invite link"
    )

    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    API_PREFIX: str = Field(
        default="/api/v1",
        description="API route prefix"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("ADMIN_CHAT_ID")
    @classmethod
    def validate_admin_chat_id(cls, v: str) -> str:
        """Reviewer id must be a numeric string (negative for group chats)."""
        v = v.strip()
        if v and not re.fullmatch(r"-?[0-9]+", v):
            raise ValueError("ADMIN_CHAT_ID must be a numeric value")
        return v

    @field_validator("TEXT_MIN_LENGTH", "TEXT_MAX_LENGTH", "INVITE_EXPIRE_SECONDS", "INVITE_MEMBER_LIMIT")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be a positive integer")
        return v

    @field_validator("TEXT_MAX_LENGTH")
    @classmethod
    def validate_text_bounds(cls, v: int, info) -> int:
        """Ensure the text length range is not empty."""
        min_length = info.data.get("TEXT_MIN_LENGTH")
        if min_length is not None and v < min_length:
            raise ValueError("TEXT_MAX_LENGTH must be >= TEXT_MIN_LENGTH")
        return v

    @field_validator("POLL_OPTIONS")
    @classmethod
    def validate_poll_options(cls, v: List[str]) -> List[str]:
        # Telegram polls need 2-10 options
        if not 2 <= len(v) <= 10:
            raise ValueError("POLL_OPTIONS must contain between 2 and 10 labels")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


# Global settings instance
settings = Settings()


def validate_settings(config: Optional[Settings] = None) -> bool:
    """
    Validates critical settings on application startup.
    Raises ConfigurationError if any required setting is missing or invalid.
    """
    config = config or settings
    errors = []

    if not config.BOT_TOKEN:
        errors.append("BOT_TOKEN is required")

    if not config.ADMIN_CHAT_ID:
        errors.append("ADMIN_CHAT_ID is required")

    if not config.CHANNEL_ID:
        errors.append("CHANNEL_ID is required")

    # Production-specific validations
    if config.is_production and config.WEBHOOK_URL and not config.WEBHOOK_SECRET:
        errors.append("WEBHOOK_SECRET is required when WEBHOOK_URL is set in production")

    if errors:
        raise ConfigurationError(
            f"Configuration validation failed: {', '.join(errors)}",
            details=errors
        )

    return True

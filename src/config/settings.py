"""
Pipeline Configuration Management

Provides centralized configuration for the ingestion, classification,
notification and reply pipeline with environment-aware loading and
validation performed once at startup.

Design Considerations:
- Single settings object injected into every component
- Secrets held as SecretStr and never logged
- Optional sinks expressed as an explicit disabled state
- No built-in default endpoint for outbound webhooks
"""

from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings


class EnvironmentType(str, Enum):
    """Valid environment types for configuration context."""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class PipelineSettings(BaseSettings):
    """
    Pipeline configuration settings with validation.

    Loaded from the process environment and an optional ``.env`` file.
    The notification webhook URL is required; the chat webhook URL is
    optional and its absence disables the chat sink.
    """
    # Environment Configuration
    ENVIRONMENT: EnvironmentType = Field(
        default=EnvironmentType.DEVELOPMENT,
        description="Runtime environment context"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level"
    )
    LOG_FILE: Optional[str] = Field(
        default=None,
        description="Optional path of a log file in addition to the console"
    )

    # Persistence
    DATABASE_URL: str = Field(
        default="sqlite:///data/lead_inbox.db",
        description="SQLAlchemy database URL"
    )

    # Language model capability
    GROQ_API_KEY: Optional[SecretStr] = Field(
        default=None,
        description="API key for the Groq chat completion service"
    )
    CLASSIFICATION_MODEL: str = Field(
        default="llama-3.3-70b-versatile",
        description="Model used for intent classification"
    )
    REPLY_MODEL: str = Field(
        default="llama-3.3-70b-versatile",
        description="Model used for reply generation"
    )

    # Notification sinks
    SLACK_WEBHOOK_URL: Optional[str] = Field(
        default=None,
        description="Chat webhook URL; unset disables the chat sink"
    )
    NOTIFICATION_WEBHOOK_URL: str = Field(
        ...,
        description="Generic webhook URL receiving interested_email events"
    )

    # External call behaviour
    EXTERNAL_CALL_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        gt=0,
        description="Upper bound for any single external call"
    )

    # Reply generation
    CONTEXT_FACT_LIMIT: int = Field(
        default=5,
        ge=1,
        description="Maximum number of context facts used for one reply"
    )
    REPLY_CONFIDENCE_SCORE: float = Field(
        default=0.85,
        description="Confidence recorded by the fixed confidence scorer"
    )

    # Notification formatting
    CHAT_EXCERPT_LENGTH: int = Field(
        default=200,
        ge=0,
        description="Number of body characters included in chat notifications"
    )

    # Mailbox retrieval
    IMAP_FOLDER: str = Field(
        default="INBOX",
        description="Mailbox folder fetched during sync"
    )
    MAX_MESSAGES_PER_FETCH: int = Field(
        default=200,
        ge=1,
        description="Maximum number of messages fetched per account per sync"
    )

    @field_validator("SLACK_WEBHOOK_URL")
    @classmethod
    def blank_webhook_is_disabled(cls, value: Optional[str]) -> Optional[str]:
        """Treat an empty chat webhook value as unset."""
        if value is None or not value.strip():
            return None
        return value.strip()

    @field_validator("NOTIFICATION_WEBHOOK_URL")
    @classmethod
    def validate_notification_webhook(cls, value: str) -> str:
        """Require an absolute http(s) URL for the generic webhook."""
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError("NOTIFICATION_WEBHOOK_URL must be an http(s) URL")
        return value

    @field_validator("REPLY_CONFIDENCE_SCORE")
    @classmethod
    def validate_confidence(cls, value: float) -> float:
        """Confidence scores live in [0, 1]."""
        if not 0.0 <= value <= 1.0:
            raise ValueError("REPLY_CONFIDENCE_SCORE must be between 0 and 1")
        return value

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def chat_sink_enabled(self) -> bool:
        return self.SLACK_WEBHOOK_URL is not None

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore"
    }


@lru_cache()
def get_settings() -> PipelineSettings:
    """
    Retrieve validated pipeline settings.

    Settings are loaded and validated once per process; callers that need
    a different configuration (tests, tools) construct ``PipelineSettings``
    directly and inject it.

    Returns:
        Validated pipeline settings object

    Raises:
        ValidationError: If configuration fails validation
    """
    return PipelineSettings()

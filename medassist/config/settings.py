"""
Application settings and configuration.
"""

import logging
import sys
from typing import Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..llm.exceptions import ConfigurationError
from ..storage.database.message_service import MAX_HISTORY_LIMIT

SYSTEM_PREAMBLE = (
    "You are a medical assistant. Provide medical guidance based on the context "
    "below, but remind the user this is not medical advice and they should "
    "consult a doctor."
)
NO_CONTEXT_FALLBACK = "No specific medical information found."


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="MEDASSIST_", env_file=".env", extra="ignore"
    )

    # AI gateway
    ai_gateway_url: str = Field(
        default="https://ai.gateway.lovable.dev/v1",
        description="Base URL of the OpenAI-compatible AI gateway",
    )
    ai_api_key: Optional[SecretStr] = Field(
        default=None, description="Bearer token for the AI gateway"
    )
    completion_model: str = Field(
        default="google/gemini-2.5-flash", description="Chat completion model"
    )
    embedding_model: str = Field(
        default="text-embedding-3-small", description="Embedding model"
    )
    embedding_dimensions: int = Field(
        default=1536, description="Dimensionality of stored embeddings"
    )

    # Storage
    database_url: Optional[str] = Field(
        default=None, description="PostgreSQL DSN (pgvector enabled)"
    )
    db_pool_min_size: int = Field(default=2, description="Minimum pool connections")
    db_pool_max_size: int = Field(default=10, description="Maximum pool connections")
    auto_create_schema: bool = Field(
        default=False, description="Create tables on startup if missing"
    )

    # Retrieval
    similarity_threshold: float = Field(
        default=0.5, description="Minimum cosine similarity for a match"
    )
    match_count: int = Field(default=3, description="Documents injected per answer")
    history_limit: int = Field(
        default=10, description="Most recent turns sent with each request"
    )

    # Timeouts
    request_timeout_seconds: int = Field(
        default=120, description="Total timeout for non-streaming requests"
    )
    stream_read_timeout_seconds: int = Field(
        default=60, description="Maximum silence between two stream chunks"
    )

    # Server
    host: str = Field(default="localhost", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Log level")

    @field_validator("similarity_threshold")
    @classmethod
    def _threshold_in_range(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("similarity_threshold must be between 0 and 1")
        return value

    @field_validator("match_count", "embedding_dimensions")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value

    @field_validator("history_limit")
    @classmethod
    def _history_in_range(cls, value: int) -> int:
        if not 0 <= value <= MAX_HISTORY_LIMIT:
            raise ValueError(
                f"history_limit must be between 0 and {MAX_HISTORY_LIMIT}"
            )
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level '{value}'")
        return level

    def require(self, *fields: str) -> None:
        """
        Fail fast when required credentials are missing.

        Raises:
            ConfigurationError: Naming every missing field
        """
        missing = []
        for name in fields:
            value = getattr(self, name)
            if isinstance(value, SecretStr):
                value = value.get_secret_value()
            if not value:
                missing.append(name)

        if missing:
            env_names = ", ".join(f"MEDASSIST_{name.upper()}" for name in missing)
            raise ConfigurationError(
                f"Missing required configuration: {env_names}",
                config_fields=missing,
            )

    @property
    def api_key(self) -> str:
        return self.ai_api_key.get_secret_value() if self.ai_api_key else ""


def configure_logging(level: str = "INFO") -> None:
    """
    Configure logging with development-friendly structured output.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    from ..utils.logging.structured import LOGGER_NAME, create_development_formatter

    log_level = getattr(logging, level.upper())

    app_logger = logging.getLogger(LOGGER_NAME)
    app_logger.setLevel(log_level)

    for handler in app_logger.handlers[:]:
        app_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(create_development_formatter())
    app_logger.addHandler(console_handler)

    # Avoid duplicate lines through the root logger
    app_logger.propagate = False

    logging.getLogger().setLevel(log_level)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings

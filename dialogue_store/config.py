"""
Application Configuration

Pydantic-based settings management using environment variables.
Supports nested configuration, validation, and caching.

Usage:
    from dialogue_store.config import get_settings

    settings = get_settings()
    print(settings.storage.backend)
    print(settings.history.max_history_count)
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, PostgresDsn, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Key-value backend configuration."""

    backend: Literal["memory", "file", "postgres"] = Field(
        default="file",
        description="Key-value backend used for all persisted records",
    )
    file_path: Path = Field(
        default=Path.home() / ".dialogue_store" / "store.json",
        description="JSON document used by the file backend",
    )
    database_url: PostgresDsn | None = Field(
        None,
        description="PostgreSQL connection URL used by the postgres backend",
    )
    table_name: str = Field(
        default="dialogue_kv",
        pattern=r"^[A-Za-z_][A-Za-z0-9_]*$",
        description="Table holding key/value rows for the postgres backend",
    )

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def normalize_url(cls, v: str | PostgresDsn | None) -> str | PostgresDsn | None:
        """Treat empty strings as missing."""
        if v == "":
            return None
        return v

    @model_validator(mode="after")
    def validate_backend_requirements(self) -> "StorageSettings":
        """Ensure the postgres backend has a URL to connect to."""
        if self.backend == "postgres" and self.database_url is None:
            raise ValueError("STORAGE_DATABASE_URL must be set for the postgres backend.")
        return self


class HistoryDefaults(BaseSettings):
    """Defaults applied to history settings keys absent from storage."""

    max_history_count: int = Field(
        default=50,
        ge=1,
        description="Maximum number of history entries retained",
    )
    auto_save_enabled: bool = Field(
        default=True,
        description="Archive full session transcripts alongside history entries",
    )
    compression_enabled: bool = Field(
        default=True,
        description="Write history logs as compact JSON",
    )

    model_config = SettingsConfigDict(
        env_prefix="HISTORY_",
        env_file=".env",
        extra="ignore",
    )


class SummarizerSettings(BaseSettings):
    """External summarizer configuration."""

    enabled: bool = Field(default=False, description="Enable conversation summaries")
    provider: Literal["openai", "local"] = Field(
        default="openai", description="Summarizer provider"
    )

    # OpenAI configuration
    openai_api_key: str | None = Field(
        None,
        description="OpenAI API key",
        min_length=20,
    )
    openai_model: str = Field(default="gpt-4o-mini", description="OpenAI summary model")

    # Local model configuration
    local_base_url: str = Field(
        default="http://localhost:11434",
        description="Base URL for local model server (Ollama, vLLM, etc.)",
    )
    local_model: str = Field(default="llama3.1:8b", description="Local model name")

    temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=2.0,
        description="Temperature for summary generation",
    )
    max_tokens: int = Field(
        default=500,
        gt=0,
        le=4000,
        description="Maximum tokens per summary",
    )
    timeout: int = Field(
        default=30,
        gt=0,
        description="Request timeout in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="SUMMARIZER_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("openai_api_key")
    @classmethod
    def validate_openai_key(cls, v: str | None) -> str | None:
        """Validate OpenAI API key format."""
        if v and not v.startswith("sk-"):
            raise ValueError("OpenAI API key must start with 'sk-'")
        return v

    @model_validator(mode="after")
    def validate_provider_key(self) -> "SummarizerSettings":
        """Ensure an API key is present when the OpenAI summarizer is enabled."""
        if self.enabled and self.provider == "openai" and not self.openai_api_key:
            raise ValueError(
                "API key required for openai summarizer. Set SUMMARIZER_OPENAI_API_KEY"
            )
        return self


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Application log level",
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format",
    )
    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="Log timestamp format",
    )
    file: Path | None = Field(
        default=None,
        description="Optional log file path (None = stdout only)",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        extra="ignore",
    )

    def configure(self) -> None:
        """Configure Python logging with these settings."""
        handlers: list[logging.Handler] = [logging.StreamHandler()]

        if self.file:
            self.file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(self.file))

        logging.basicConfig(
            level=getattr(logging, self.level),
            format=self.format,
            datefmt=self.date_format,
            handlers=handlers,
            force=True,
        )


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    Settings are nested by domain (storage, history, summarizer, logging).

    Environment Variables:
        ENVIRONMENT: Deployment environment (development, staging, production)
        APP_NAME: Application name for logging
        DEBUG: Enable debug mode
        API_HOST: API server host
        API_PORT: API server port
        STORAGE_*: Key-value backend configuration (see StorageSettings)
        HISTORY_*: History settings defaults (see HistoryDefaults)
        SUMMARIZER_*: Summarizer configuration (see SummarizerSettings)
        LOG_*: Logging configuration (see LoggingSettings)

    Example:
        >>> settings = get_settings()
        >>> settings.storage.backend
        'file'
        >>> settings.history.max_history_count
        50
    """

    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    app_name: str = Field(
        default="DialogueStore",
        description="Application name",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    api_host: str = Field(
        default="127.0.0.1",
        description="API server host",
    )
    api_port: int = Field(
        default=8000,
        gt=0,
        le=65535,
        description="API server port",
    )

    storage: StorageSettings = Field(default_factory=StorageSettings)
    history: HistoryDefaults = Field(default_factory=HistoryDefaults)
    summarizer: SummarizerSettings = Field(default_factory=SummarizerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @model_validator(mode="after")
    def configure_logging(self) -> "Settings":
        """Configure logging when settings are loaded."""
        self.logging.configure()
        return self

    def model_post_init(self, __context) -> None:
        """Log configuration on initialization."""
        logger = logging.getLogger(__name__)
        logger.info(
            f"Settings loaded for {self.app_name} ({self.environment})",
            extra={
                "environment": self.environment,
                "storage_backend": self.storage.backend,
                "max_history_count": self.history.max_history_count,
                "summarizer_enabled": self.summarizer.enabled,
            },
        )


_DOTENV_PATH = Path(__file__).resolve().parents[1] / ".env"


def _apply_dotenv_precedence() -> None:
    env_source = os.getenv("DIALOGUE_STORE_ENV_SOURCE", "dotenv").lower()
    if env_source not in {"dotenv", "envfile", "file"}:
        return
    if _DOTENV_PATH.exists():
        load_dotenv(_DOTENV_PATH, override=True)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Singleton settings instance
    """
    _apply_dotenv_precedence()
    return Settings()


def clear_settings_cache() -> None:
    """
    Clear the settings cache.

    Useful for testing when you need to reload settings with different
    environment variables.
    """
    get_settings.cache_clear()

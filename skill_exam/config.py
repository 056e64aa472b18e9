"""
Configuration management for the Skill Exam system.

Uses Pydantic Settings for type-safe configuration loading from environment variables.
Provider API keys are optional: without one, generation still succeeds by serving
the fallback question bank.
"""

from datetime import timedelta
from enum import Enum
from functools import lru_cache
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AIProvider(str, Enum):
    """Completion providers the exam generator can be wired to."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"


# Accepted alternative spellings for the provider setting
_PROVIDER_ALIASES = {
    "claude": AIProvider.ANTHROPIC,
    "gemini": AIProvider.GOOGLE,
}


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings are validated at startup. The provider is selected once here
    and never re-dispatched per request.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Provider Selection
    # ==========================================================================
    exam_ai_provider: AIProvider = Field(
        default=AIProvider.OPENAI,
        description="Completion provider used for exam generation",
    )

    # ==========================================================================
    # OpenAI Configuration
    # ==========================================================================
    openai_api_key: str | None = Field(
        default=None,
        description="API key for OpenAI",
    )

    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL for the OpenAI-compatible API",
    )

    openai_model: str = Field(
        default="gpt-4o-mini",
        description="Default OpenAI model",
    )

    openai_project_id: str | None = Field(
        default=None,
        description="Optional OpenAI project identifier",
    )

    # ==========================================================================
    # Anthropic Configuration
    # ==========================================================================
    anthropic_api_key: str | None = Field(
        default=None,
        description="API key for Anthropic",
    )

    anthropic_model: str = Field(
        default="claude-3-5-sonnet-20241022",
        description="Default Anthropic model",
    )

    # ==========================================================================
    # Google Configuration
    # ==========================================================================
    google_api_key: str | None = Field(
        default=None,
        description="API key for Google Generative AI",
    )

    google_model: str = Field(
        default="gemini-2.0-flash-exp",
        description="Default Google model",
    )

    # ==========================================================================
    # Generation Configuration
    # ==========================================================================
    exam_ai_model: str | None = Field(
        default=None,
        description="Model override for exam generation (provider default if unset)",
    )

    exam_ai_temperature: float = Field(
        default=0.2,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for exam generation",
    )

    exam_ai_max_tokens: int = Field(
        default=2000,
        ge=256,
        le=32000,
        description="Maximum tokens in the generated exam response",
    )

    exam_ai_timeout_seconds: float = Field(
        default=60.0,
        gt=0.0,
        le=600.0,
        description="Upper bound on a single completion call",
    )

    gateway_max_retries: int = Field(
        default=0,
        ge=0,
        le=5,
        description="Retries performed by the gateway on transient failures",
    )

    # ==========================================================================
    # Session Configuration
    # ==========================================================================
    session_ttl_seconds: float = Field(
        default=3600.0,
        gt=0.0,
        description="How long a generated exam stays gradable",
    )

    # ==========================================================================
    # Logging Configuration
    # ==========================================================================
    log_level: str = Field(
        default="INFO",
        description="Root log level for the CLI",
    )

    @field_validator("exam_ai_provider", mode="before")
    @classmethod
    def resolve_provider_alias(cls, v: Any) -> Any:
        """Accept provider aliases and mixed case."""
        if isinstance(v, str):
            key = v.strip().lower()
            return _PROVIDER_ALIASES.get(key, key)
        return v

    @field_validator("openai_base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Ensure base URL doesn't have trailing slash."""
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level names."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def resolved_model(self) -> str:
        """Model used for exam generation on the selected provider."""
        if self.exam_ai_model:
            return self.exam_ai_model
        defaults = {
            AIProvider.OPENAI: self.openai_model,
            AIProvider.ANTHROPIC: self.anthropic_model,
            AIProvider.GOOGLE: self.google_model,
        }
        return defaults[self.exam_ai_provider]

    @property
    def session_ttl(self) -> timedelta:
        return timedelta(seconds=self.session_ttl_seconds)

    def api_key_for(self, provider: AIProvider) -> str | None:
        """Return the configured API key for a provider, if any."""
        keys = {
            AIProvider.OPENAI: self.openai_api_key,
            AIProvider.ANTHROPIC: self.anthropic_api_key,
            AIProvider.GOOGLE: self.google_api_key,
        }
        return keys[provider] or None


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are only loaded once.
    """
    return Settings()

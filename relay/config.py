"""
Provider Relay Configuration Module

This module manages application settings and environment variables using
pydantic-settings for type-safe configuration management.

Environment variables are loaded from .env file or system environment.
All provider credentials use SecretStr to prevent accidental logging, and
every credential is optional: a provider without a key is simply left out
of the fallback chain.
"""

from functools import lru_cache
from typing import Literal
import logging
import sys

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Pydantic Settings automatically reads from:
    1. Environment variables
    2. .env file in working directory
    3. Default values defined here

    API keys use SecretStr to prevent accidental exposure in logs.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown env vars
    )

    edenai_api_key: SecretStr | None = Field(
        default=None, description="EdenAI API key (chat fallback tier 1 and OCR)"
    )

    gemini_api_key: SecretStr | None = Field(
        default=None, description="Google Gemini API key (chat fallback tier 2)"
    )

    openrouter_api_key: SecretStr | None = Field(
        default=None, description="OpenRouter API key (chat fallback tier 3)"
    )

    github_api_token: SecretStr | None = Field(
        default=None, description="GitHub token for the /github pass-through"
    )

    attempt_timeout_ms: int = Field(
        default=15000,
        gt=0,
        description="Upper bound for a single provider attempt in milliseconds",
    )

    edenai_chat_provider: str = Field(
        default="openai",
        description="Sub-provider EdenAI routes chat requests to",
    )

    gemini_model: str = Field(
        default="gemini-1.5-flash", description="Gemini model for generateContent"
    )

    openrouter_default_model: str = Field(
        default="openai/gpt-4o-mini",
        description="First OpenRouter model when the caller supplies no preference",
    )

    openrouter_backup_models: list[str] = Field(
        default=[
            "google/gemini-2.0-flash-exp:free",
            "meta-llama/llama-3.1-8b-instruct:free",
        ],
        description="Free/backup OpenRouter models tried after the first one",
    )

    openrouter_referer: str = Field(
        default="https://primoboost.com",
        description="HTTP-Referer header sent to OpenRouter for attribution",
    )

    openrouter_title: str = Field(
        default="PrimoBoost AI", description="X-Title header sent to OpenRouter"
    )

    github_user_agent: str = Field(
        default="PrimoBoost-AI", description="User-Agent sent to the GitHub API"
    )

    ocr_confidence_placeholder: int = Field(
        default=85,
        ge=0,
        le=100,
        description="Confidence reported for synchronous OCR results",
    )

    cors_origins: list[str] = Field(
        default=["*"], description="Origins allowed by the CORS middleware"
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Application log level"
    )

    host: str = Field(default="0.0.0.0", description="Server bind host")

    port: int = Field(default=8000, description="Server bind port")

    debug: bool = Field(default=False, description="Enable debug mode")

    @field_validator("openrouter_backup_models")
    @classmethod
    def validate_backup_models(cls, v: list[str]) -> list[str]:
        """Drop blank entries so an empty env item never becomes a candidate."""
        return [model.strip() for model in v if model and model.strip()]


def has_secret(secret: SecretStr | None) -> bool:
    """True when a credential is present and non-empty."""
    return secret is not None and bool(secret.get_secret_value().strip())


@lru_cache
def get_settings() -> Settings:
    """
    Returns cached settings instance.

    Using lru_cache ensures settings are loaded once and reused,
    avoiding repeated file reads and environment parsing.

    Returns:
        Settings: The application settings singleton.
    """
    return Settings()


def configure_logging(settings: Settings) -> None:
    """
    Configure application logging based on settings.

    Sets up structured logging with timestamps and reduces noise
    from third-party HTTP libraries.

    Args:
        settings: The application settings instance.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)

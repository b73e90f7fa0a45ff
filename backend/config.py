"""
Component Studio configuration. All environment variables in one place.

Read from environment at runtime. Never hardcode secrets.
"""

from __future__ import annotations

import os

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-20250514"


class Settings:
    """Application settings from environment variables."""

    # Database
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "")

    # Auth
    JWT_SECRET: str = os.environ.get("JWT_SECRET", "")
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRY_HOURS: int = int(os.environ.get("JWT_EXPIRY_HOURS", "24"))

    # AI Providers
    # "openai" covers any OpenAI-compatible endpoint (OpenAI, OpenRouter)
    AI_PROVIDER: str = os.environ.get("AI_PROVIDER", "openai")
    OPENAI_API_KEY: str = os.environ.get("OPENAI_API_KEY", "")
    OPENROUTER_API_KEY: str = os.environ.get("OPENROUTER_API_KEY", "")
    ANTHROPIC_API_KEY: str = os.environ.get("ANTHROPIC_API_KEY", "")
    AI_MAX_TOKENS: int = int(os.environ.get("AI_MAX_TOKENS", "2000"))
    AI_TEMPERATURE: float = float(os.environ.get("AI_TEMPERATURE", "0.7"))
    OPENROUTER_REFERER: str = os.environ.get("OPENROUTER_REFERER", "http://localhost:3000")
    OPENROUTER_TITLE: str = "Component Generator"

    # Turn context
    HISTORY_CONTEXT_MESSAGES: int = 10  # handed to the generator per turn
    PROMPT_CONTEXT_MESSAGES: int = 5  # forwarded to the model out of those

    # Image input
    MAX_IMAGE_BYTES: int = int(os.environ.get("MAX_IMAGE_BYTES", str(5 * 1024 * 1024)))

    # Application
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    @property
    def AI_BASE_URL(self) -> str | None:
        url = os.environ.get("AI_BASE_URL")
        if url:
            return url
        return "https://openrouter.ai/api/v1" if self.OPENROUTER_API_KEY else None

    @property
    def AI_MODEL(self) -> str:
        """Model id, defaulting per backend when AI_MODEL is unset."""
        configured = os.environ.get("AI_MODEL")
        if configured:
            return configured
        if self.AI_PROVIDER == "anthropic":
            return DEFAULT_ANTHROPIC_MODEL
        # OpenRouter ids are vendor-prefixed
        return f"openai/{DEFAULT_OPENAI_MODEL}" if self.OPENROUTER_API_KEY else DEFAULT_OPENAI_MODEL

    @property
    def AI_API_KEY(self) -> str:
        """Key for the OpenAI-compatible client. OpenRouter wins when both are set."""
        return self.OPENROUTER_API_KEY or self.OPENAI_API_KEY

    @property
    def CORS_ORIGINS(self) -> list[str]:
        raw = os.environ.get("CORS_ORIGINS", "http://localhost:3000,http://localhost:3001")
        return [origin.strip() for origin in raw.split(",") if origin.strip()]


# Singleton instance
settings = Settings()

# Validate required settings (skip AI keys in test mode)
_testing = os.environ.get("TESTING", "").lower() == "true"

if not settings.DATABASE_URL:
    raise RuntimeError("DATABASE_URL environment variable is required")
if not settings.JWT_SECRET:
    raise RuntimeError("JWT_SECRET environment variable is required")

if not _testing:
    if settings.AI_PROVIDER not in ("openai", "anthropic"):
        raise RuntimeError(f"Unsupported AI_PROVIDER: {settings.AI_PROVIDER}")
    if settings.AI_PROVIDER == "openai" and not settings.AI_API_KEY:
        raise RuntimeError("OPENROUTER_API_KEY or OPENAI_API_KEY environment variable is required")
    if settings.AI_PROVIDER == "anthropic" and not settings.ANTHROPIC_API_KEY:
        raise RuntimeError("ANTHROPIC_API_KEY environment variable is required")

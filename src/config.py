"""Configuration management using Pydantic Settings."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Model Configuration
    # LiteLLM picks the provider from the model name; the intake assistant
    # is tuned for a small OpenAI chat model.
    litellm_model: str = "gpt-4o-mini"
    image_model: str = "dall-e-2"
    image_size: str = "1024x1024"

    # Prefer the OPENAI_API_KEY env var, it is re-read on every call
    openai_api_key: str = ""

    # Server-side upstream timeouts (seconds)
    evaluation_timeout_seconds: float = 20.0
    summary_timeout_seconds: float = 25.0
    follow_up_timeout_seconds: float = 20.0
    concept_timeout_seconds: float = 30.0
    mockup_timeout_seconds: float = 60.0
    diagnostic_timeout_seconds: float = 10.0

    # Output token budgets
    evaluation_max_tokens: int = 500
    summary_max_tokens: int = 800
    follow_up_max_tokens: int = 600
    concept_max_tokens: int = 1000

    # Wizard client-side timeouts (seconds); mockup is bounded by the gateway
    client_evaluation_timeout_seconds: float = 30.0
    client_follow_up_timeout_seconds: float = 25.0
    client_summary_timeout_seconds: float = 30.0
    client_concept_timeout_seconds: float = 35.0

    # Wizard sessions idle for longer than this are dropped
    wizard_session_idle_ttl_seconds: float = 3600.0

    # Observability
    log_level: str = "INFO"
    log_json: bool = False
    enable_tracing: bool = False
    cors_origins: str = ""


settings = Settings()


def get_api_key() -> str:
    """Return the model provider key, read from the environment at call time.

    A missing key is a recoverable condition: callers fall back to
    placeholder behaviour instead of failing.
    """
    return (os.environ.get("OPENAI_API_KEY") or settings.openai_api_key or "").strip()

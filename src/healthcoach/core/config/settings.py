"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Health coach server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default; the server has no auth layer of its own.
    host: str = "127.0.0.1"
    port: int = 5001
    log_level: str = "info"
    allow_insecure_bind: bool = False

    # Text generation
    llm_provider: Literal["openai", "anthropic", "mock"] = "openai"
    openai_api_key: str = ""
    openai_model: str = "gpt-4.1-mini"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-5-20250929"
    llm_max_output_tokens: int = 800
    llm_timeout_seconds: float = 30.0
    llm_max_retries: int = 1
    llm_breaker_threshold: int = 3
    llm_breaker_cooldown_seconds: float = 60.0

    # Storage
    db_path: str = "~/.healthcoach/health.db"
    encryption_key: str = ""

    # Demo / seed pathway (fixed identity). Never the default.
    enable_demo_tools: bool = False
    demo_subject_id: str = "demo"


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()

"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Scalp consultation server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default: customer records must not be reachable from the
    # shop network without an explicit opt-in.
    scalp_host: str = "127.0.0.1"
    scalp_port: int = 8001
    scalp_log_level: str = "info"
    # Non-loopback binds refuse to start unless this is true (no auth layer).
    scalp_allow_insecure_bind: bool = False

    # Report generator
    llm_provider: Literal["anthropic", "openai", "mock"] = "anthropic"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-5"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    generation_timeout_s: float = 60.0
    generation_max_tokens: int = 4096
    generation_temperature: float = 0.2
    clinic_name: str = ""

    # Storage (customer records and audit trail)
    db_path: str = "~/.scalpcare/clinic.db"

    # Encryption. Customer records are only persisted when a key is set.
    encryption_key: str = ""


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()

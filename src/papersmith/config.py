"""Application configuration.

Configuration is loaded from environment variables. For local development, you can provide a
`.env` file and set `PAPERSMITH_ENV_FILE` to point to it.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Papersmith settings.

    All fields are environment-configurable. Prefix is `PAPERSMITH_`.
    """

    model_config = SettingsConfigDict(
        env_prefix="PAPERSMITH_",
        env_file=None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Core
    app_env: Literal["dev", "prod"] = Field(default="dev")
    log_level: str = Field(default="INFO")

    # OpenAI-compatible backend
    openai_api_key: str | None = Field(default=None)
    openai_base_url: str | None = Field(default=None)
    openai_timeout_s: float = Field(default=120.0, ge=1.0, le=600.0)

    # Model selection: outline/content share one model, images use another
    research_model: str = Field(default="gpt-4.1-mini")
    image_model: str = Field(default="gpt-image-1")
    chat_model: str = Field(default="gpt-4.1")

    # Grounding
    web_search_enabled: bool = Field(default=True)
    search_context_size: Literal["low", "medium", "high"] = Field(default="medium")

    # Images
    image_size: Literal["1024x1024", "1536x1024", "1024x1536", "auto"] = Field(default="1536x1024")

    # Chat assistant
    chat_system_prompt: str = Field(
        default=(
            "You are a helpful, intelligent research assistant. Help users refine their "
            "research topics, explain complex concepts, or summarize findings."
        )
    )


def load_settings() -> Settings:
    """Load settings from env.

    Returns:
        Settings: Parsed settings.
    """

    env_file_override = os.getenv("PAPERSMITH_ENV_FILE")
    if env_file_override:
        env_path = Path(env_file_override)
        return Settings(_env_file=env_path)

    default_env = Path.cwd() / ".env"
    if default_env.exists():
        return Settings(_env_file=default_env)

    return Settings()

"""Configuration for codev.

Created: 2026-09-02

Settings come from environment variables (``CODEV_*``) and an optional
``.env`` file in the working directory. The OAuth client id also accepts
``GITHUB_CLIENT_ID`` and the model key ``ANTHROPIC_API_KEY`` so existing
environments keep working.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SERVER_URL = "http://localhost:3005"


class Settings(BaseSettings):
    """Runtime settings loaded from the environment."""

    model_config = SettingsConfigDict(
        env_prefix="CODEV_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Auth server
    server_url: str = DEFAULT_SERVER_URL
    client_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("CODEV_CLIENT_ID", "GITHUB_CLIENT_ID"),
    )
    scope: str = "openid profile email"
    http_timeout: float = 15.0
    # Credentials this close to expiry count as expired
    expiry_buffer_seconds: int = 300

    # Local state
    config_dir: Path = Field(default_factory=lambda: Path.home() / ".codev")

    # Model
    anthropic_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "CODEV_ANTHROPIC_API_KEY", "ANTHROPIC_API_KEY"
        ),
    )
    anthropic_model: str = "claude-sonnet-4-5-20250929"
    max_tokens: int = 4096

    log_level: str = "WARNING"


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings (cached)."""
    return Settings()


def get_config_dir() -> Path:
    """Get/create the per-user config directory."""
    d = get_settings().config_dir.expanduser()
    d.mkdir(parents=True, exist_ok=True)
    return d

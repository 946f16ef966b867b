"""Primitive values loaded from the process environment and .env files."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentVariables(BaseSettings):
    """Simple primitive values loaded from environment variables and .env files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )

    # Overrides the header read by the oauth2-proxy resolver
    oauth_user_header: str | None = Field(
        default=None, validation_alias="OAUTH_USER_HEADER"
    )


def load_environment() -> EnvironmentVariables:
    """Read the environment afresh; values are not cached between calls."""
    return EnvironmentVariables()

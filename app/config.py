# =============================================================================
# app/config.py - Client Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import settings
#   print(settings.API_BASE_URL)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
# =============================================================================

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Client settings loaded from environment variables.

    All settings are accessed via the global `settings` instance.
    """

    # -------------------------------------------------------------------------
    # Remote API
    # -------------------------------------------------------------------------

    API_BASE_URL: str = Field(
        default="http://localhost:3000",
        description="Base URL of the meme API (no trailing slash needed)"
    )

    # No timeout by default: a hung request keeps its in-flight guard
    HTTP_TIMEOUT_SECONDS: float | None = Field(
        default=None,
        gt=0,
        description="Per-request timeout in seconds (None = wait forever)"
    )

    # -------------------------------------------------------------------------
    # Session / Token Storage
    # -------------------------------------------------------------------------

    TOKEN_STORAGE_PATH: Path = Field(
        default=Path.home() / ".memefeed" / "storage.json",
        description="JSON file used as client-local persistent storage"
    )

    TOKEN_STORAGE_KEY: str = Field(
        default="authToken",
        min_length=1,
        description="Key under which the bearer token is persisted"
    )

    TOKEN_SUBJECT_CLAIM: str = Field(
        default="id",
        min_length=1,
        description="JWT claim holding the signed-in user's id"
    )

    LOGIN_PATH: str = Field(
        default="/login",
        description="Location the client is sent to when the session ends"
    )

    # -------------------------------------------------------------------------
    # Feed Behaviour
    # -------------------------------------------------------------------------

    SCROLL_VISIBILITY_THRESHOLD: float = Field(
        default=0.5,
        gt=0.0,
        le=1.0,
        description="Visible fraction of a sentinel item that triggers the next page"
    )

    COMMENT_RECONCILIATION: bool = Field(
        default=False,
        description=(
            "Swap optimistic comments for the server copy on success and drop "
            "them on failure (default keeps fire-and-forget display-only)"
        )
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging)"
    )

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def api_base_url(self) -> str:
        """API base URL without a trailing slash."""
        return self.API_BASE_URL.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once,
    not on every access.

    Returns:
        Settings: The client settings instance
    """
    return Settings()


# Global settings instance for easy importing
# Usage: from app.config import settings
settings = get_settings()

"""Application configuration using pydantic-settings."""
from functools import lru_cache
from pathlib import Path
from urllib.parse import urlparse

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Hosted backend - shared with the web frontend (NEXT_PUBLIC_ prefix for Next.js exposure)
    supabase_url: str = Field(
        validation_alias=AliasChoices("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL"),
    )
    supabase_anon_key: str = Field(
        validation_alias=AliasChoices("SUPABASE_ANON_KEY", "NEXT_PUBLIC_SUPABASE_ANON_KEY"),
    )
    bookmarks_table: str = Field(default="bookmarks", validation_alias="BOOKMARKS_TABLE")

    # OAuth sign-in
    oauth_provider: str = Field(default="google", validation_alias="OAUTH_PROVIDER")
    oauth_redirect_url: str | None = Field(default=None, validation_alias="OAUTH_REDIRECT_URL")

    # Where the session is persisted between runs; None keeps it in memory only
    session_file: Path | None = Field(default=None, validation_alias="SESSION_FILE")

    # Requests
    api_timeout: float = Field(default=30.0, validation_alias="API_TIMEOUT")
    list_retries: int = Field(default=3, ge=1, validation_alias="LIST_RETRIES")
    retry_delay: float = Field(default=0.5, ge=0, validation_alias="RETRY_DELAY")

    # Refresh the access token this many seconds before it expires
    token_refresh_leeway: int = Field(default=60, ge=0, validation_alias="TOKEN_REFRESH_LEEWAY")

    @field_validator("supabase_url")
    @classmethod
    def validate_supabase_url(cls, value: str) -> str:
        """Require an absolute http(s) URL and drop any trailing slash."""
        parsed = urlparse(value.strip())
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"SUPABASE_URL must be an http(s) URL, got '{value}'")
        return value.strip().rstrip("/")

    @property
    def auth_url(self) -> str:
        """Get the base URL of the auth (session) service."""
        return f"{self.supabase_url}/auth/v1"

    @property
    def rest_url(self) -> str:
        """Get the base URL of the table (REST) service."""
        return f"{self.supabase_url}/rest/v1"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

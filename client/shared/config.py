"""
Centralized configuration for the StudyCore client.

All settings are loaded from environment variables with sensible defaults.
Module-specific settings should be namespaced (e.g., SUPABASE_*, SIGNIN_*).
"""

from functools import lru_cache
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "StudyCore"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Supabase (anon key only: this is a client, RLS applies)
    supabase_url: str = ""
    supabase_anon_key: str = ""

    # Base URL for links embedded in verification and reset emails
    site_url: str = "http://localhost:5173"

    # Sign-in orchestration
    signin_timeout_seconds: float = 6.0
    max_failed_resolutions: int = 3

    # Local persistence
    local_storage_path: Path = Path(".studycore") / "local_storage.json"
    display_cache_ttl_seconds: int = 300  # 5 minutes

    def redirect_url(self, path: str) -> str:
        """Build an absolute redirect URL for email links."""
        return f"{self.site_url.rstrip('/')}{path}"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()

"""Application configuration using pydantic-settings.

All environment variables should be accessed through the settings object
rather than using os.getenv() directly.
"""

from functools import lru_cache
from typing import List, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars
    )

    # Database - defaults to relative path for Docker, override via env for local dev
    database_url: str = "sqlite:///./serviceqr.db"

    # CORS - comma-separated origins or "*" for development only
    cors_origins: str = "http://localhost:3000,http://localhost:8000"

    # Base URL printed into table QR codes
    public_base_url: str = "http://localhost:3000"

    # Timezone used for analytics day/hour buckets
    timezone: str = "Europe/Sofia"

    # Guest/staff flow timings (seconds)
    success_flash_seconds: int = 3
    new_request_highlight_seconds: int = 30

    # Server
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # API
    api_v1_prefix: str = "/api/v1"

    # Rate limiting
    rate_limit_enabled: bool = True
    guest_request_rate_limit: str = "30/minute"

    @field_validator("public_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into a list, filtering localhost in production."""
        if self.cors_origins == "*":
            return ["*"]

        origins = [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

        if not self.debug:
            localhost_patterns = ["localhost", "127.0.0.1", "0.0.0.0"]
            origins = [o for o in origins if not any(p in o for p in localhost_patterns)]

        return origins


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()

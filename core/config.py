"""
Application configuration using Pydantic settings.

Usage:
    from core.config import get_settings
    settings = get_settings()
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Unified application settings loaded from environment variables and .env file.

    The upstream catalogue is any service honouring the Punk API paging
    contract: ``GET /beers?page=N&per_page=M`` returning a JSON array,
    empty once the pages run out.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App settings
    app_name: str = "Beer Stream"
    api_prefix: str = "/api"
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    # Upstream catalogue
    punk_api_url: str = Field(default="https://api.punkapi.com/v2", validation_alias="PUNK_API_URL")
    punk_per_page: int = Field(default=25, ge=1, le=80, validation_alias="PUNK_PER_PAGE")
    punk_timeout_seconds: float = Field(default=30.0, gt=0, validation_alias="PUNK_TIMEOUT_SECONDS")

    # Pipeline
    default_min_abv: float = Field(default=15.0, validation_alias="DEFAULT_MIN_ABV")
    max_pages: Optional[int] = Field(default=None, ge=1, validation_alias="MAX_PAGES")

    # CORS
    cors_allowed_origins: str = Field(default="http://localhost:5173", validation_alias="CORS_ALLOWED_ORIGINS")

    @field_validator("punk_api_url")
    @classmethod
    def validate_punk_api_url(cls, v: str) -> str:
        """Require an absolute http(s) URL and drop any trailing slash."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"PUNK_API_URL must be an http(s) URL (got '{v}')")
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"LOG_LEVEL must be a standard logging level (got '{v}')")
        return level

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_allowed_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()


__all__ = ["Settings", "get_settings"]

"""Application configuration using pydantic-settings."""
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.versioning_limits import (
    ALLOWED_VERSION_INTERVALS_MS,
    DEFAULT_MAX_REGULAR_VERSIONS,
    DEFAULT_MIN_CHANGE_CHARS,
    DEFAULT_VERSION_INTERVAL_MS,
    MIN_MAX_REGULAR_VERSIONS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database
    database_url: str
    db_pool_size: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=10, validation_alias="DB_MAX_OVERFLOW")

    # CORS - comma-separated list of allowed origins (stored as string, parsed via property)
    cors_origins_str: str = Field(
        default="http://localhost:5173",
        validation_alias="CORS_ORIGINS",
    )

    # Version history
    auto_versioning_enabled: bool = Field(
        default=True, validation_alias="AUTO_VERSIONING_ENABLED",
    )
    version_interval_ms: int = Field(
        default=DEFAULT_VERSION_INTERVAL_MS, validation_alias="VERSION_INTERVAL_MS",
    )
    version_min_change_chars: int = Field(
        default=DEFAULT_MIN_CHANGE_CHARS, ge=0, validation_alias="VERSION_MIN_CHANGE_CHARS",
    )
    version_max_regular: int = Field(
        default=DEFAULT_MAX_REGULAR_VERSIONS,
        ge=MIN_MAX_REGULAR_VERSIONS,
        validation_alias="VERSION_MAX_REGULAR",
    )

    @field_validator("version_interval_ms")
    @classmethod
    def validate_version_interval(cls, value: int) -> int:
        """Only the intervals offered in the client settings are accepted."""
        if value not in ALLOWED_VERSION_INTERVALS_MS:
            allowed = ", ".join(str(v) for v in ALLOWED_VERSION_INTERVALS_MS)
            raise ValueError(f"VERSION_INTERVAL_MS must be one of: {allowed}")
        return value

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated CORS origins string into a list."""
        if not self.cors_origins_str:
            return []
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

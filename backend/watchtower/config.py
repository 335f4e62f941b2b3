"""Application configuration using Pydantic settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database (mirror of location report state)
    database_url: str = "postgresql+asyncpg://localhost:5432/watchtower"

    # Reporting windows
    decay_window_seconds: int = 300
    cooldown_window_seconds: int = 300
    sweep_interval_seconds: int = 60

    # Campus geofence (closed ranges) and map centre
    campus_min_latitude: float = 37.56967094514907
    campus_max_latitude: float = 37.58208122121385
    campus_min_longitude: float = -77.54736958443043
    campus_max_longitude: float = -77.53533183110247
    campus_center_latitude: float = 37.574865849768955
    campus_center_longitude: float = -77.5397224693662

    # API settings
    api_v1_prefix: str = "/api/v1"
    cors_origins: list[str] = ["*"]  # Restrict in production
    rate_limit_per_minute: int = 60

    # Environment
    debug: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

"""Application settings via pydantic-settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine configuration loaded from environment variables with COSECHA_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="COSECHA_",
        env_file=".env",
        case_sensitive=False,
    )

    # --- Core ---
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"
    database_url: str = "sqlite+aiosqlite:///./cosecha.db"
    create_tables: bool = True
    redis_url: str = ""  # empty disables Redis fan-out
    log_level: str = "INFO"
    log_format: str = "json"

    # --- Awards ---
    award_max_attempts: int = Field(default=3, ge=1)

    # --- Event fan-out ---
    event_channel: str = "pubsub:achievement_updated"
    notification_channel_prefix: str = "notifications:user"

    # --- Celebration presentation ---
    overlay_display_seconds: float = 4.0


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()

"""
Application settings using Pydantic.

Provides environment-based configuration loading with BURNWATCH_ prefix.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="BURNWATCH_",
        extra="ignore",
    )

    # Event history
    history_capacity: int = Field(default=3000, gt=0)

    # Demo time scale: seconds of simulated time that stand in for one hour
    demo_hour_seconds: float = Field(default=60.0, gt=0)

    # Rolling window for the non-burn comparison checks
    demo_window_seconds: float = Field(default=60.0, gt=0)

    # Minimum events per window before a burn-rate rule may fire
    min_window_samples: int = Field(default=20, ge=0)

    # Policy defaults
    default_tier: str = "Tier-1"
    bake_sli: bool = True
    auto_tier_presets: bool = True

    # Logging
    log_level: str = "INFO"
    log_json: bool = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

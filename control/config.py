"""
Runtime Configuration
Environment variables and settings for the scheduler process.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Map generation
    test_map_seed: str = ""          # Fixed seed; empty draws a random one per game
    generation_timeout_s: float = 60.0

    # Scheduling
    tick_interval_ms: int = 1000
    poll_interval_ms: int = 100
    e2e_test_mode: bool = False

    # Persistence
    repository_backend: Literal["supabase", "memory"] = "supabase"
    repository_timeout_s: float = 5.0
    supabase_url: str = "http://localhost:54321"
    supabase_key: str = ""

    # Control server
    control_host: str = "0.0.0.0"
    control_port: int = 3001

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

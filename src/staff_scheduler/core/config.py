from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_prefix="STAFF_SCHEDULER_", case_sensitive=False)

    environment: Literal["development", "staging", "production"] = "development"
    project_name: str = "Staff Scheduling API"
    version: str = "0.1.0"
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    slow_generation_ms: float = 100.0
    planning_cache_ttl_seconds: int = 86400


@lru_cache
def get_settings() -> Settings:
    return Settings()

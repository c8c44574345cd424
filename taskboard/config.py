"""Settings loaded from TASKBOARD_* environment variables (+ optional .env)."""

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TASKBOARD_",
        env_file=".env",
        extra="ignore",
    )

    app_name: str = "Taskboard"
    database_path: Path = Field(default=Path("tasks.db"))

    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False
    log_level: str = "INFO"

    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"])


@lru_cache
def get_settings() -> Settings:
    return Settings()

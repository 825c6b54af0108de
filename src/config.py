from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from models import LockedPolicy

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]


class EngineSettings(BaseSettings):
    # Pipeline settings
    worker_count: int = Field(default=8, gt=0)
    worker_queue_capacity: int = Field(default=100, gt=0)
    event_queue_capacity: int = Field(default=100, gt=0)
    chunk_size: int = Field(default=100, gt=0)

    # Business logic settings
    locked_policy: LockedPolicy = LockedPolicy.REJECT_ALL

    # Logging settings
    log_level: LogLevel = "WARNING"

    model_config = SettingsConfigDict(
        env_prefix="PAYMENTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_case_log_level(cls, value):
        return value.upper() if isinstance(value, str) else value


@lru_cache()
def get_settings() -> EngineSettings:
    """Get cached settings instance."""
    return EngineSettings()

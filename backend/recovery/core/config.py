"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Recovery Plan Service"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "sqlite:///./recovery.db"
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "recovery-plans"
    scheduler_enabled: bool = False
    scheduler_timezone: str = "UTC"
    reminder_tick_seconds: int = 60
    reminder_store_provider: str = "sql"
    default_reminder_time: str = "09:00"
    jobs_run_on_startup: bool = False
    notifications_enabled: bool = False
    notifications_provider: str = "noop"

    @field_validator("reminder_tick_seconds")
    @classmethod
    def tick_fits_in_a_minute(cls, value: int) -> int:
        # A slower cadence could skip the one minute whose label matches.
        if value < 1 or value > 60:
            raise ValueError("reminder_tick_seconds must be between 1 and 60")
        return value


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()

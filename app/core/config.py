# app/core/config.py
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Global application configuration.

    Values are loaded from environment variables (or a local `.env` file)
    at runtime.

    These settings drive:
    - DB connection
    - Internal API key
    - Lookahead window and concurrency of the materialization cycle
    - Trigger cadence of the background scheduler
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    APP_NAME: str = "Recurring Meeting Materializer"
    APP_ENV: str = Field("local", description="Environment name: local/test/dev/stage/prod")
    LOG_LEVEL: str = Field("INFO", description="Root log level for the service.")

    DB_URL: str = Field(
        "sqlite+aiosqlite:///./recurring_meetings.db",
        description="SQLAlchemy-compatible async database URL",
    )

    INTERNAL_API_KEY: str | None = Field(
        default=None,
        description="API key required for hitting /internal endpoints",
    )

    # --- Materialization ---
    MATERIALIZATION_LOOKAHEAD_DAYS: int = Field(
        default=14,
        ge=0,
        description="Number of days ahead of today for which instances are generated.",
    )
    MATERIALIZATION_CONCURRENCY: int = Field(
        default=1,
        ge=1,
        description=(
            "Maximum number of templates processed at the same time. "
            "1 means templates are processed one after another."
        ),
    )
    STORE_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        gt=0,
        description="Upper bound for a single store call made by the materializer.",
    )

    # --- Scheduler / trigger cadence ---
    SCHEDULER_ENABLED: bool = Field(
        default=True,
        description="Whether the background scheduler is started with the app.",
    )
    SCHEDULER_CRON_HOUR: int = Field(
        default=0,
        ge=0,
        le=23,
        description="Local hour at which the daily materialization cycle runs.",
    )
    SCHEDULER_CRON_MINUTE: int = Field(
        default=5,
        ge=0,
        le=59,
        description="Minute of SCHEDULER_CRON_HOUR at which the daily cycle runs.",
    )
    SCHEDULER_STARTUP_DELAY_SECONDS: float = Field(
        default=5.0,
        ge=0,
        description="Delay before the catch-up cycle that runs once at process start.",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Cached accessor for application settings.

    Using LRU cache ensures settings are read and validated only once,
    while still being easily importable across the app.
    """
    return Settings()

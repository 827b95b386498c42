import os
from pathlib import Path

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


def get_database_url() -> str:
    """Get database URL, using absolute path for SQLite to avoid path resolution issues."""
    db_url = os.getenv("MEND_DATABASE_URL", "")
    if db_url:
        logger.info(f"Using MEND_DATABASE_URL from environment: {db_url}")
        return db_url

    db_path = Path(__file__).parent.parent.parent / "mend.db"
    abs_path = db_path.resolve()
    db_url = f"sqlite:///{abs_path}"
    logger.debug(f"Using default database path: {db_url}")
    return db_url


class Settings(BaseSettings):
    database_url: str = Field(
        default_factory=get_database_url,
        validation_alias="MEND_DATABASE_URL",
    )

    # History windows (days)
    biometric_window_days: int = Field(default=7, validation_alias="MEND_BIOMETRIC_WINDOW_DAYS")
    history_days: int = Field(default=30, validation_alias="MEND_HISTORY_DAYS")
    load_window_days: int = Field(default=7, validation_alias="MEND_LOAD_WINDOW_DAYS")
    chronic_window_days: int = Field(default=28, validation_alias="MEND_CHRONIC_WINDOW_DAYS")
    recent_activity_days: int = Field(default=7, validation_alias="MEND_RECENT_ACTIVITY_DAYS")

    # Recomputation cadence
    refresh_interval_seconds: float = Field(default=60.0, validation_alias="MEND_REFRESH_INTERVAL_SECONDS")
    recovery_table_max_age_hours: float = Field(default=24.0, validation_alias="MEND_RECOVERY_TABLE_MAX_AGE_HOURS")

    log_level: str = Field(default="INFO", validation_alias="MEND_LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="MEND_LOG_FILE")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator(
        "biometric_window_days",
        "history_days",
        "load_window_days",
        "chronic_window_days",
        "recent_activity_days",
    )
    @classmethod
    def validate_window(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("History windows must be at least one day")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return value

    @field_validator("refresh_interval_seconds", "recovery_table_max_age_hours")
    @classmethod
    def validate_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Intervals must be positive")
        return value


settings = Settings()


def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return settings

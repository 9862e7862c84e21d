"""Configuration system using pydantic-settings with environment variable loading."""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Fee telemetry database settings.

    All fields configurable via DATABASE_ environment variable prefix.
    """

    model_config = SettingsConfigDict(env_prefix="DATABASE_")

    # sqlite://<path>, sqlite::memory:, or a bare file path
    url: str = "sqlite://data/stellar_fees.db"
    validate_values: bool = True  # reject negative fees / unparseable text before insert
    busy_timeout_ms: int = 5000


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"  # LOG_FORMAT
    database: DatabaseSettings = DatabaseSettings()

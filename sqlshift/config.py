"""
Configuration settings for sqlshift.

Uses Pydantic Settings to load environment variables for the database
connection, pool sizing, startup probe, migration checkpoints and logging.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("postgres", alias="DB_NAME")
    db_options: Optional[str] = Field(None, alias="DB_OPTIONS")

    # Pool
    pool_max_size: int = Field(8, alias="POOL_MAX_SIZE", ge=1)
    pool_min_idle: int = Field(1, alias="POOL_MIN_IDLE", ge=0)
    connection_timeout: float = Field(7.5, alias="CONNECTION_TIMEOUT", gt=0)

    # Startup probe
    probe_timeout: float = Field(15.0, alias="PROBE_TIMEOUT", gt=0)
    probe_attempts: int = Field(1, alias="PROBE_ATTEMPTS", ge=1)
    strict_startup: bool = Field(True, alias="STRICT_STARTUP")

    # Migrations
    migration_checkpoints: bool = Field(True, alias="MIGRATION_CHECKPOINTS")
    checkpoint_table: str = Field("sqlshift_migration_checkpoints", alias="CHECKPOINT_TABLE")

    # Application
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]

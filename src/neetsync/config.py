"""Configuration management for NeetSync."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Annotated
import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class NeetSyncSettings(BaseSettings):
    """Runtime configuration sourced from environment variables and optional .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    store_path: Path = Field(default=Path("./storage/chroma"), validation_alias="NEETSYNC_STORE_PATH")
    # Parsed by _parse_catalog_paths rather than as JSON.
    catalog_paths: Annotated[tuple[Path, ...], NoDecode] = Field(
        default=(Path("catalogs"),), validation_alias="NEETSYNC_CATALOG_PATHS"
    )
    log_level: str = Field(default="INFO", validation_alias="NEETSYNC_LOG_LEVEL")
    github_api_base: str = Field(default="https://api.github.com", validation_alias="GITHUB_API_BASE")
    request_timeout: float = Field(default=20.0, validation_alias="NEETSYNC_REQUEST_TIMEOUT")
    sync_interval_seconds: int = Field(default=60, validation_alias="NEETSYNC_SYNC_INTERVAL")
    max_retries: int = Field(default=5, validation_alias="NEETSYNC_MAX_RETRIES")
    retry_base_delay_ms: int = Field(default=1000, validation_alias="NEETSYNC_RETRY_BASE_DELAY_MS")
    retry_max_delay_ms: int = Field(default=60_000, validation_alias="NEETSYNC_RETRY_MAX_DELAY_MS")
    duplicate_window_seconds: int = Field(
        default=60, validation_alias="NEETSYNC_DUPLICATE_WINDOW_SECONDS"
    )
    log_capacity: int = Field(default=100, validation_alias="NEETSYNC_LOG_CAPACITY")
    progress_json_name: str = Field(default="PROGRESS.json", validation_alias="NEETSYNC_PROGRESS_JSON_NAME")
    progress_md_name: str = Field(default="PROGRESS.md", validation_alias="NEETSYNC_PROGRESS_MD_NAME")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(
                "NEETSYNC_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG"
            )
        return normalized

    @field_validator("catalog_paths", mode="before")
    @classmethod
    def _parse_catalog_paths(cls, value):
        if value is None or value == "":
            return (Path("catalogs"),)
        if isinstance(value, (list, tuple)):
            return tuple(Path(str(item)) for item in value)
        if isinstance(value, str):
            parts = [part.strip() for part in value.split(os.pathsep) if part.strip()]
            return tuple(Path(part) for part in parts) or (Path("catalogs"),)
        raise TypeError("NEETSYNC_CATALOG_PATHS must be a list of paths or a path-separated string")

    @field_validator("github_api_base")
    @classmethod
    def _strip_api_base(cls, value: str) -> str:
        return value.strip().rstrip("/")

    @field_validator("request_timeout")
    @classmethod
    def _validate_request_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("NEETSYNC_REQUEST_TIMEOUT must be > 0")
        return value

    @field_validator(
        "sync_interval_seconds",
        "max_retries",
        "retry_base_delay_ms",
        "retry_max_delay_ms",
        "log_capacity",
    )
    @classmethod
    def _validate_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("value must be >= 1")
        return value

    @field_validator("duplicate_window_seconds")
    @classmethod
    def _validate_window(cls, value: int) -> int:
        if value < 0:
            raise ValueError("NEETSYNC_DUPLICATE_WINDOW_SECONDS must be >= 0")
        return value


@lru_cache(maxsize=1)
def get_settings() -> NeetSyncSettings:
    """Return cached settings instance."""

    settings = NeetSyncSettings()
    settings.store_path = settings.store_path.expanduser().resolve()
    settings.catalog_paths = tuple(path.expanduser().resolve() for path in settings.catalog_paths)
    return settings


__all__ = ["NeetSyncSettings", "get_settings"]

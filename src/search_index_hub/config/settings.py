"""
Configuration management for SearchIndexHub.

This module provides environment-based configuration using Pydantic BaseSettings,
so the enrichment core can be tuned per deployment (worker counts, executor
policy, datasource configuration path) without code changes.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import List, Literal, Optional

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger(__name__)

# Determine project root for resolving .env by default
PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"
ENV_FILE_OVERRIDE = os.getenv("SIH_ENV_FILE")
if ENV_FILE_OVERRIDE:
    env_file_candidate = Path(ENV_FILE_OVERRIDE).expanduser()
    if not env_file_candidate.is_absolute():
        env_file_candidate = PROJECT_ROOT / env_file_candidate
    SETTINGS_ENV_FILE = env_file_candidate
else:
    SETTINGS_ENV_FILE = DEFAULT_ENV_FILE

ExecutorPolicy = Literal["thread", "process", "sequential"]


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Environment variables are automatically loaded with the SIH_ prefix.
    For example, SIH_EXECUTOR_POLICY=sequential switches provider fan-out to
    in-line execution.

    Unprefixed fields (uppercase names):
    - LOG_LEVEL: Logging level
    - MAX_WORKERS: Maximum concurrent provider tasks
    """

    LOG_LEVEL: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level (uppercase)",
    )
    MAX_WORKERS: int = Field(
        default=4,
        validation_alias="MAX_WORKERS",
        description="Maximum concurrent provider tasks per document",
    )

    executor_policy: ExecutorPolicy = Field(
        default="thread",
        description="Provider fan-out backend: thread pool, process pool or in-line",
    )
    default_entity_type: Optional[str] = Field(
        default=None,
        description="Entity type used when no indexer is active and none is passed",
    )
    datasources_config: str = Field(
        default=str(PROJECT_ROOT / "config" / "datasources.yml"),
        description="Path to the YAML file declaring providers per entity type",
    )
    index_batch_size: int = Field(
        default=500,
        description="Documents handed to the resolver per call during reindex",
    )
    store_ids: List[int] = Field(
        default_factory=lambda: [0],
        description="Store scopes rebuilt by a full reindex",
    )
    aggregation_range_step: float = Field(
        default=10.0,
        description="Default histogram bucket width for range aggregations",
    )

    @field_validator("MAX_WORKERS", "index_batch_size")
    @classmethod
    def _positive_int(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be >= 1")
        return value

    @field_validator("aggregation_range_step")
    @classmethod
    def _positive_step(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be > 0")
        return value

    @field_validator("LOG_LEVEL")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    model_config = SettingsConfigDict(
        env_prefix="SIH_",
        env_file=str(SETTINGS_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are loaded once and reused across
    the application lifecycle.

    Returns:
        Settings instance with loaded configuration
    """
    settings = Settings()
    logger.debug(
        "configuration.loaded",
        executor_policy=settings.executor_policy,
        max_workers=settings.MAX_WORKERS,
    )
    return settings


def validate_datasources_config(settings: Settings) -> bool:
    """
    Validate that the datasource configuration file exists and is readable.

    Args:
        settings: Settings instance to validate

    Returns:
        True if the config file is valid, False otherwise
    """
    try:
        config_path = Path(settings.datasources_config)
        return config_path.exists() and config_path.is_file()
    except OSError:
        return False

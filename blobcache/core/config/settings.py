"""
Centralized Configuration Module using Pydantic Settings

Process-level, environment-based configuration: logging, the base cache
directory, the defaults used to build a CacheConfig, the cleanup scheduler
retry policy, and the admin API.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Easy testing with reload_settings()

Per-cache behaviour is NOT configured here globally: Settings only produces
a CacheConfig (see to_cache_config()), which is then handed to an
independently owned CacheManager.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from blobcache.core.config.cache_config import CacheConfig
from blobcache.core.config.constants import (
    DEFAULT_CLEANUP_INTERVAL_MS,
    DEFAULT_EXPIRE_TIME_MS,
    DEFAULT_MAX_CACHE_SIZE,
    DEFAULT_MAX_MEMORY_ENTRIES,
    DEFAULT_ROOT_DIR_NAME,
    SCHEDULER_MAX_ATTEMPTS,
    SCHEDULER_RETRY_INITIAL_DELAY,
    SCHEDULER_RETRY_MAX_DELAY,
    SCHEDULER_SHUTDOWN_TIMEOUT,
)

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class CacheSettings(BaseSettings):
    """
    Defaults for the cache engine built by the application.

    STAGE-0: Cache configuration
    """

    CACHE_BASE_DIR: Path = Field(default=Path("~/.cache/blobcache"), description="Base cache directory")
    CACHE_ROOT_DIR_NAME: str = Field(default=DEFAULT_ROOT_DIR_NAME, description="Cache directory name")
    CACHE_CUSTOM_DIR: Path | None = Field(default=None, description="Absolute cache directory override")
    CACHE_DEFAULT_EXPIRE_MS: int = Field(default=DEFAULT_EXPIRE_TIME_MS, description="Default TTL (7 days)")
    CACHE_MAX_SIZE_BYTES: int = Field(default=DEFAULT_MAX_CACHE_SIZE, description="Advisory size cap")
    CACHE_MEMORY_ENABLED: bool = Field(default=True, description="Enable in-memory accelerator")
    CACHE_MEMORY_MAX_ENTRIES: int = Field(default=DEFAULT_MAX_MEMORY_ENTRIES, description="Accelerator capacity")
    CACHE_AUTO_CLEAN: bool = Field(default=True, description="Run the cleanup scheduler")
    CACHE_CLEANUP_INTERVAL_MS: int = Field(default=DEFAULT_CLEANUP_INTERVAL_MS, description="Sweep interval (1 hour)")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class SchedulerSettings(BaseSettings):
    """
    Cleanup scheduler retry policy.

    STAGE-S: Scheduler configuration

    Architectural Decision: tenacity with exponential backoff and jitter
    """

    SCHEDULER_MAX_ATTEMPTS: int = Field(default=SCHEDULER_MAX_ATTEMPTS, description="Attempts per sweep")
    SCHEDULER_RETRY_INITIAL_DELAY: float = Field(default=SCHEDULER_RETRY_INITIAL_DELAY, description="First backoff (s)")
    SCHEDULER_RETRY_MAX_DELAY: float = Field(default=SCHEDULER_RETRY_MAX_DELAY, description="Backoff cap (s)")
    SCHEDULER_SHUTDOWN_TIMEOUT: float = Field(default=SCHEDULER_SHUTDOWN_TIMEOUT, description="Graceful stop timeout (s)")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LoggingSettings(BaseSettings):
    """
    Logging configuration for structured logging.

    STAGE-L: Logging configuration
    """

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        if v.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {VALID_LOG_LEVELS}")
        return v.upper()

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ApplicationSettings(BaseSettings):
    """General application settings for the admin API."""

    APP_NAME: str = Field(default="blobcache", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_HOST: str = Field(default="127.0.0.1", description="API host")
    API_PORT: int = Field(default=8080, description="API port")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    Usage:
        from blobcache.core.config.settings import get_settings

        settings = get_settings()
        base_dir = settings.cache.CACHE_BASE_DIR
        config = settings.to_cache_config()
    """

    # Cache settings
    CACHE_BASE_DIR: Path = Field(default=Path("~/.cache/blobcache"), description="Base cache directory")
    CACHE_ROOT_DIR_NAME: str = Field(default=DEFAULT_ROOT_DIR_NAME, description="Cache directory name")
    CACHE_CUSTOM_DIR: Path | None = Field(default=None, description="Absolute cache directory override")
    CACHE_DEFAULT_EXPIRE_MS: int = Field(default=DEFAULT_EXPIRE_TIME_MS, description="Default TTL (7 days)")
    CACHE_MAX_SIZE_BYTES: int = Field(default=DEFAULT_MAX_CACHE_SIZE, description="Advisory size cap")
    CACHE_MEMORY_ENABLED: bool = Field(default=True, description="Enable in-memory accelerator")
    CACHE_MEMORY_MAX_ENTRIES: int = Field(default=DEFAULT_MAX_MEMORY_ENTRIES, description="Accelerator capacity")
    CACHE_AUTO_CLEAN: bool = Field(default=True, description="Run the cleanup scheduler")
    CACHE_CLEANUP_INTERVAL_MS: int = Field(default=DEFAULT_CLEANUP_INTERVAL_MS, description="Sweep interval (1 hour)")

    # Scheduler settings
    SCHEDULER_MAX_ATTEMPTS: int = Field(default=SCHEDULER_MAX_ATTEMPTS, description="Attempts per sweep")
    SCHEDULER_RETRY_INITIAL_DELAY: float = Field(default=SCHEDULER_RETRY_INITIAL_DELAY, description="First backoff (s)")
    SCHEDULER_RETRY_MAX_DELAY: float = Field(default=SCHEDULER_RETRY_MAX_DELAY, description="Backoff cap (s)")
    SCHEDULER_SHUTDOWN_TIMEOUT: float = Field(default=SCHEDULER_SHUTDOWN_TIMEOUT, description="Graceful stop timeout (s)")

    # Logging settings
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    # Application settings
    APP_NAME: str = Field(default="blobcache", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_HOST: str = Field(default="127.0.0.1", description="API host")
    API_PORT: int = Field(default=8080, description="API port")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        if v.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {VALID_LOG_LEVELS}")
        return v.upper()

    # Nested configuration views
    @property
    def cache(self) -> CacheSettings:
        """Get cache settings."""
        return CacheSettings(
            CACHE_BASE_DIR=self.CACHE_BASE_DIR,
            CACHE_ROOT_DIR_NAME=self.CACHE_ROOT_DIR_NAME,
            CACHE_CUSTOM_DIR=self.CACHE_CUSTOM_DIR,
            CACHE_DEFAULT_EXPIRE_MS=self.CACHE_DEFAULT_EXPIRE_MS,
            CACHE_MAX_SIZE_BYTES=self.CACHE_MAX_SIZE_BYTES,
            CACHE_MEMORY_ENABLED=self.CACHE_MEMORY_ENABLED,
            CACHE_MEMORY_MAX_ENTRIES=self.CACHE_MEMORY_MAX_ENTRIES,
            CACHE_AUTO_CLEAN=self.CACHE_AUTO_CLEAN,
            CACHE_CLEANUP_INTERVAL_MS=self.CACHE_CLEANUP_INTERVAL_MS,
        )

    @property
    def scheduler(self) -> SchedulerSettings:
        """Get scheduler settings."""
        return SchedulerSettings(
            SCHEDULER_MAX_ATTEMPTS=self.SCHEDULER_MAX_ATTEMPTS,
            SCHEDULER_RETRY_INITIAL_DELAY=self.SCHEDULER_RETRY_INITIAL_DELAY,
            SCHEDULER_RETRY_MAX_DELAY=self.SCHEDULER_RETRY_MAX_DELAY,
            SCHEDULER_SHUTDOWN_TIMEOUT=self.SCHEDULER_SHUTDOWN_TIMEOUT,
        )

    @property
    def logging(self) -> LoggingSettings:
        """Get logging settings."""
        return LoggingSettings(LOG_LEVEL=self.LOG_LEVEL, LOG_FORMAT=self.LOG_FORMAT)

    @property
    def app(self) -> ApplicationSettings:
        """Get application settings."""
        return ApplicationSettings(
            APP_NAME=self.APP_NAME,
            APP_VERSION=self.APP_VERSION,
            API_HOST=self.API_HOST,
            API_PORT=self.API_PORT,
        )

    def to_cache_config(self) -> CacheConfig:
        """
        Build the CacheConfig described by the CACHE_* variables.

        Returns:
            CacheConfig: Immutable engine configuration
        """
        return CacheConfig(
            root_dir_name=self.CACHE_ROOT_DIR_NAME,
            custom_cache_dir=self.CACHE_CUSTOM_DIR,
            default_expire_time_ms=self.CACHE_DEFAULT_EXPIRE_MS,
            max_cache_size=self.CACHE_MAX_SIZE_BYTES,
            enable_memory_cache=self.CACHE_MEMORY_ENABLED,
            max_memory_cache_entries=self.CACHE_MEMORY_MAX_ENTRIES,
            auto_clean_expired=self.CACHE_AUTO_CLEAN,
            cleanup_interval_ms=self.CACHE_CLEANUP_INTERVAL_MS,
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance (singleton).

    Returns:
        Settings: Global settings instance
    """
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings (useful for testing).

    Returns:
        Settings: New settings instance
    """
    global _settings
    _settings = Settings()
    return _settings

"""Application configuration module.

Reads settings from environment variables (and an optional ``.env`` file)
with defaults taken from :mod:`core.constants`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from core.constants import (
    CacheDefaults,
    ConnectionDefaults,
    DatabaseDefaults,
    DrawDefaults,
)
from core.exceptions import ConfigurationError


def _get_bool(name: str, default: bool = False) -> bool:
    """Get boolean from environment variable."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


def _get_int(name: str, default: int) -> int:
    """Get integer from environment variable with fallback."""
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float(name: str, default: float) -> float:
    """Get float from environment variable with fallback."""
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_str(name: str, default: str = "") -> str:
    """Get string from environment variable."""
    return os.getenv(name, default)


@dataclass(frozen=True)
class Config:
    environment: str
    debug: bool
    database_path: str
    db_busy_timeout: int
    cooldown_seconds: int
    cache_ttl: int
    max_reconnect_attempts: int
    reconnect_base_delay: float
    health_check_timeout: float
    log_level: str
    log_file: Optional[str]

    def __post_init__(self) -> None:
        if not self.database_path:
            raise ConfigurationError("DATABASE_PATH must not be empty")
        if self.db_busy_timeout <= 0:
            raise ConfigurationError("DB_BUSY_TIMEOUT must be positive")
        if self.cooldown_seconds < 0:
            raise ConfigurationError("COOLDOWN_SECONDS must not be negative")
        if self.cache_ttl <= 0:
            raise ConfigurationError("CACHE_TTL must be positive")
        if self.max_reconnect_attempts < 0:
            raise ConfigurationError("MAX_RECONNECT_ATTEMPTS must not be negative")
        if self.reconnect_base_delay < 0:
            raise ConfigurationError("RECONNECT_BASE_DELAY must not be negative")
        if self.health_check_timeout <= 0:
            raise ConfigurationError("HEALTH_CHECK_TIMEOUT must be positive")


def load_config(env_file: Optional[str] = None) -> Config:
    """Load application configuration from environment variables.

    Args:
        env_file: Optional explicit ``.env`` path; the default lookup is used otherwise

    Returns:
        Config: Application configuration with validated values

    Raises:
        ConfigurationError: If a value is out of range
    """
    load_dotenv(env_file)

    return Config(
        environment=_get_str("ENVIRONMENT", "development"),
        debug=_get_bool("DEBUG", False),
        database_path=_get_str("DATABASE_PATH", DatabaseDefaults.PATH),
        db_busy_timeout=_get_int("DB_BUSY_TIMEOUT", DatabaseDefaults.BUSY_TIMEOUT),
        cooldown_seconds=_get_int("COOLDOWN_SECONDS", DrawDefaults.COOLDOWN_SECONDS),
        cache_ttl=_get_int("CACHE_TTL", CacheDefaults.TTL),
        max_reconnect_attempts=_get_int(
            "MAX_RECONNECT_ATTEMPTS", ConnectionDefaults.MAX_RECONNECT_ATTEMPTS
        ),
        reconnect_base_delay=_get_float(
            "RECONNECT_BASE_DELAY", ConnectionDefaults.RECONNECT_BASE_DELAY
        ),
        health_check_timeout=_get_float(
            "HEALTH_CHECK_TIMEOUT", ConnectionDefaults.HEALTH_CHECK_TIMEOUT
        ),
        log_level=_get_str("LOG_LEVEL", "DEBUG" if _get_bool("DEBUG", False) else "INFO"),
        log_file=_get_str("LOG_FILE") or None,
    )

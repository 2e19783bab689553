"""Application-wide constants and configuration values."""

from __future__ import annotations

from enum import Enum


# Cache constants
class CacheDefaults:
    """Default catalog cache configuration."""
    TTL = 300  # seconds


# Database constants
class DatabaseDefaults:
    """Default database configuration."""
    PATH = "data/fortune.sqlite"
    BUSY_TIMEOUT = 30000  # milliseconds


# Connection lifecycle
class ConnectionDefaults:
    """Reconnect and health probe limits."""
    MAX_RECONNECT_ATTEMPTS = 3
    RECONNECT_BASE_DELAY = 1.0  # seconds, multiplied by attempt number
    HEALTH_CHECK_TIMEOUT = 5.0  # seconds


# Draw rules
class DrawDefaults:
    """Draw service configuration."""
    COOLDOWN_SECONDS = 10


class ConnectionState(str, Enum):
    """Lifecycle state of the storage connection."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


class FortuneCategory(str, Enum):
    """Fortune catalog categories."""
    WEALTH = "wealth"
    CAREER = "career"
    LOVE = "love"
    HEALTH = "health"
    STUDY = "study"
    GENERAL = "general"
    FAMILY = "family"
    SOCIAL = "social"

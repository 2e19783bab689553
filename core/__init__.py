"""Core application components."""

from core.logger import setup_logger, get_logger, resolve_level
from core.constants import (
    CacheDefaults,
    DatabaseDefaults,
    ConnectionDefaults,
    DrawDefaults,
    ConnectionState,
    FortuneCategory,
)
from core.exceptions import (
    ApplicationError,
    ConfigurationError,
    DatabaseError,
    StorageError,
    StorageErrorKind,
    StorageConnectionError,
    UniqueConstraintError,
    ForeignKeyError,
    ServiceError,
)

__all__ = [
    # Logging
    'setup_logger',
    'get_logger',
    'resolve_level',
    # Constants
    'CacheDefaults',
    'DatabaseDefaults',
    'ConnectionDefaults',
    'DrawDefaults',
    'ConnectionState',
    'FortuneCategory',
    # Exceptions
    'ApplicationError',
    'ConfigurationError',
    'DatabaseError',
    'StorageError',
    'StorageErrorKind',
    'StorageConnectionError',
    'UniqueConstraintError',
    'ForeignKeyError',
    'ServiceError',
]

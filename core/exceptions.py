"""Application-wide exception classes."""

from __future__ import annotations

from enum import Enum


class ApplicationError(Exception):
    """Base exception for all application errors."""
    pass


class ConfigurationError(ApplicationError):
    """Raised when configuration is invalid."""
    pass


class DatabaseError(ApplicationError):
    """Base exception for database-related errors."""
    pass


class StorageErrorKind(str, Enum):
    """Closed set of storage failure kinds the service layer switches on."""
    UNIQUE = "unique"
    FOREIGN_KEY = "foreign_key"
    CONNECTION_LOST = "connection_lost"
    OTHER = "other"


class StorageError(DatabaseError):
    """Storage failure tagged with its kind."""

    kind: StorageErrorKind = StorageErrorKind.OTHER

    def __init__(self, message: str, kind: StorageErrorKind | None = None) -> None:
        super().__init__(message)
        if kind is not None:
            self.kind = kind


class StorageConnectionError(StorageError):
    """Raised when the storage engine cannot be reached."""
    kind = StorageErrorKind.CONNECTION_LOST


class UniqueConstraintError(StorageError):
    """Raised when a user/fortune pair has already been recorded."""
    kind = StorageErrorKind.UNIQUE


class ForeignKeyError(StorageError):
    """Raised when a draw references a fortune that does not exist."""
    kind = StorageErrorKind.FOREIGN_KEY


class ServiceError(ApplicationError):
    """Base exception for service-level errors."""
    pass

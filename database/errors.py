"""Translation of raw sqlite3/aiosqlite failures into typed storage errors."""

from __future__ import annotations

import sqlite3

from core.exceptions import (
    ForeignKeyError,
    StorageConnectionError,
    StorageError,
    StorageErrorKind,
    UniqueConstraintError,
)

_UNIQUE_NAMES = frozenset({"SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY"})
_FOREIGN_KEY_NAMES = frozenset({"SQLITE_CONSTRAINT_FOREIGNKEY"})
_CONNECTION_PREFIXES = ("SQLITE_IOERR", "SQLITE_CANTOPEN", "SQLITE_NOTADB", "SQLITE_CORRUPT")

_ERROR_TYPES: dict[StorageErrorKind, type[StorageError]] = {
    StorageErrorKind.UNIQUE: UniqueConstraintError,
    StorageErrorKind.FOREIGN_KEY: ForeignKeyError,
    StorageErrorKind.CONNECTION_LOST: StorageConnectionError,
}


def classify_error(exc: BaseException) -> StorageErrorKind:
    """Return the storage error kind for ``exc``.

    Decisions use the exception type and sqlite's extended result code name,
    never the message text. A closed handle also raises
    ``ProgrammingError`` (or ``ValueError`` from aiosqlite), but so do bad
    bindings; telling them apart needs the handle, so the connection decides.
    """
    if isinstance(exc, StorageError):
        return exc.kind
    if isinstance(exc, sqlite3.IntegrityError):
        name = getattr(exc, "sqlite_errorname", "") or ""
        if name in _UNIQUE_NAMES:
            return StorageErrorKind.UNIQUE
        if name in _FOREIGN_KEY_NAMES:
            return StorageErrorKind.FOREIGN_KEY
        return StorageErrorKind.OTHER
    if isinstance(exc, sqlite3.OperationalError):
        name = getattr(exc, "sqlite_errorname", "") or ""
        if name.startswith(_CONNECTION_PREFIXES):
            return StorageErrorKind.CONNECTION_LOST
        return StorageErrorKind.OTHER
    return StorageErrorKind.OTHER


def translate_error(exc: BaseException) -> StorageError:
    """Wrap ``exc`` in the typed storage error matching its kind."""
    if isinstance(exc, StorageError):
        return exc
    kind = classify_error(exc)
    error_type = _ERROR_TYPES.get(kind, StorageError)
    return error_type(f"{kind.value} storage failure ({type(exc).__name__})", kind)


def is_storage_failure(exc: BaseException) -> bool:
    """True for exceptions raised by the storage engine or its driver."""
    return isinstance(exc, (sqlite3.Error, StorageError))

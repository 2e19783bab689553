"""Tests for storage error classification."""

import sqlite3

import pytest

from core.exceptions import (
    ForeignKeyError,
    StorageError,
    StorageErrorKind,
    UniqueConstraintError,
)
from database.errors import classify_error, is_storage_failure, translate_error


def engine_error(sql_setup, sql_fail):
    conn = sqlite3.connect(":memory:")
    try:
        conn.execute("PRAGMA foreign_keys=ON")
        conn.executescript(sql_setup)
        with pytest.raises(sqlite3.Error) as excinfo:
            conn.execute(sql_fail)
        return excinfo.value
    finally:
        conn.close()


SETUP = """
CREATE TABLE parent (id INTEGER PRIMARY KEY);
CREATE TABLE child (
    id INTEGER PRIMARY KEY,
    name TEXT UNIQUE,
    parent_id INTEGER REFERENCES parent(id),
    size INTEGER CHECK (size > 0)
);
INSERT INTO parent VALUES (1);
INSERT INTO child VALUES (1, 'a', 1, 1);
"""


def test_unique_violation():
    exc = engine_error(SETUP, "INSERT INTO child VALUES (2, 'a', 1, 1)")

    assert classify_error(exc) is StorageErrorKind.UNIQUE
    assert isinstance(translate_error(exc), UniqueConstraintError)


def test_primary_key_violation_counts_as_unique():
    exc = engine_error(SETUP, "INSERT INTO child VALUES (1, 'b', 1, 1)")

    assert classify_error(exc) is StorageErrorKind.UNIQUE


def test_foreign_key_violation():
    exc = engine_error(SETUP, "INSERT INTO child VALUES (2, 'b', 42, 1)")

    assert classify_error(exc) is StorageErrorKind.FOREIGN_KEY
    assert isinstance(translate_error(exc), ForeignKeyError)


def test_other_constraint_is_other():
    exc = engine_error(SETUP, "INSERT INTO child VALUES (2, 'b', 1, -1)")

    assert classify_error(exc) is StorageErrorKind.OTHER
    error = translate_error(exc)
    assert type(error) is StorageError
    assert error.kind is StorageErrorKind.OTHER


def test_syntax_error_is_other():
    exc = engine_error(SETUP, "SELEC nothing")

    assert classify_error(exc) is StorageErrorKind.OTHER


def test_programming_errors_are_other_without_a_handle():
    conn = sqlite3.connect(":memory:")
    conn.close()
    with pytest.raises(sqlite3.ProgrammingError) as excinfo:
        conn.execute("SELECT 1")

    assert classify_error(excinfo.value) is StorageErrorKind.OTHER


def test_binding_error_is_other():
    conn = sqlite3.connect(":memory:")
    try:
        with pytest.raises(sqlite3.ProgrammingError) as excinfo:
            conn.execute("SELECT ?", ())
    finally:
        conn.close()

    assert classify_error(excinfo.value) is StorageErrorKind.OTHER
    assert type(translate_error(excinfo.value)) is StorageError


def test_value_error_is_not_a_storage_failure():
    assert not is_storage_failure(ValueError("invalid literal"))


def test_message_text_is_ignored():
    exc = sqlite3.OperationalError("UNIQUE constraint failed: disk I/O error")

    assert classify_error(exc) is StorageErrorKind.OTHER


def test_typed_errors_pass_through():
    error = ForeignKeyError("missing")

    assert translate_error(error) is error
    assert classify_error(error) is StorageErrorKind.FOREIGN_KEY


def test_explicit_kind_overrides_class_default():
    error = StorageError("lost", StorageErrorKind.CONNECTION_LOST)

    assert error.kind is StorageErrorKind.CONNECTION_LOST
    assert StorageError("plain").kind is StorageErrorKind.OTHER


def test_is_storage_failure():
    assert is_storage_failure(sqlite3.OperationalError("locked"))
    assert is_storage_failure(UniqueConstraintError("dup"))
    assert not is_storage_failure(RuntimeError("bug"))

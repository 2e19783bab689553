"""Database package public API."""

from .connection import StorageConnection, open_sqlite
from .migrations import reset_catalog, run_migrations, seed_catalog
from .repositories import DrawRecordStore, FortuneRepository

__all__ = [
    "StorageConnection",
    "open_sqlite",
    "run_migrations",
    "seed_catalog",
    "reset_catalog",
    "FortuneRepository",
    "DrawRecordStore",
]

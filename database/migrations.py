"""Database schema migrations and catalog seeding."""

from __future__ import annotations

from typing import Iterable, Sequence, Tuple

import aiosqlite

from core import get_logger
from .connection import StorageConnection
from .seed_data import FORTUNE_SEED

logger = get_logger(__name__)


SCHEMA_SQL: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS fortunes (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        text TEXT NOT NULL UNIQUE CHECK (length(text) > 0),
        category TEXT NOT NULL DEFAULT 'general',
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS user_draws (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_token TEXT NOT NULL,
        fortune_id INTEGER NOT NULL,
        timestamp TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now')),
        FOREIGN KEY(fortune_id) REFERENCES fortunes(id) ON DELETE CASCADE,
        UNIQUE(user_token, fortune_id)
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_user_draws_user_token ON user_draws(user_token);",
    "CREATE INDEX IF NOT EXISTS idx_user_draws_timestamp ON user_draws(timestamp);",
    "CREATE INDEX IF NOT EXISTS idx_fortunes_category ON fortunes(category);",
)

SeedEntries = Sequence[Tuple[str, str]]


async def run_migrations(storage: StorageConnection) -> None:
    """Create tables and indexes if they are missing."""

    async def apply(conn: aiosqlite.Connection) -> None:
        for statement in SCHEMA_SQL:
            await conn.execute(statement)

    await storage.execute_transaction(apply)
    logger.info("Schema ready (%s statements)", len(SCHEMA_SQL))


async def insert_fortunes(conn: aiosqlite.Connection, entries: Iterable[Tuple[str, str]]) -> int:
    """Insert catalog rows on an open transaction; returns the row count."""
    rows = list(entries)
    cursor = await conn.executemany(
        "INSERT INTO fortunes (text, category) VALUES (?, ?)", rows
    )
    await cursor.close()
    return len(rows)


async def seed_catalog(storage: StorageConnection, entries: SeedEntries = FORTUNE_SEED) -> int:
    """Insert the static catalog unless fortunes already exist.

    Returns:
        Number of inserted rows, ``0`` when the catalog was already present
    """

    async def seed(conn: aiosqlite.Connection) -> int:
        async with conn.execute("SELECT COUNT(*) FROM fortunes") as cursor:
            row = await cursor.fetchone()
        existing = row[0] if row else 0
        if existing:
            logger.info("Catalog already holds %s fortunes, skipping seed", existing)
            return 0
        return await insert_fortunes(conn, entries)

    inserted = await storage.execute_transaction(seed)
    if inserted:
        logger.info("Seeded %s fortunes", inserted)
    return inserted


async def reset_catalog(storage: StorageConnection, entries: SeedEntries = FORTUNE_SEED) -> int:
    """Delete all draws and fortunes and reseed, in one transaction."""

    async def reset(conn: aiosqlite.Connection) -> int:
        await conn.execute("DELETE FROM user_draws")
        await conn.execute("DELETE FROM fortunes")
        await conn.execute(
            "DELETE FROM sqlite_sequence WHERE name IN ('user_draws', 'fortunes')"
        )
        return await insert_fortunes(conn, entries)

    inserted = await storage.execute_transaction(reset)
    logger.warning("Catalog reinitialized with %s fortunes; draw history cleared", inserted)
    return inserted

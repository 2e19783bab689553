"""Base repository pattern for database operations."""

from __future__ import annotations

from typing import Any, List, Optional, Sequence

import aiosqlite

from database.connection import StorageConnection


class BaseRepository:
    """Base repository with common database operations.

    Every helper runs on the injected :class:`StorageConnection`, so
    failures surface as typed storage errors.
    """

    def __init__(self, storage: StorageConnection) -> None:
        self.storage = storage

    async def fetch_one(self, query: str, params: Sequence[Any] = ()) -> Optional[aiosqlite.Row]:
        """Fetch a single row."""
        async with self.storage.session() as conn:
            async with conn.execute(query, params) as cursor:
                return await cursor.fetchone()

    async def fetch_all(self, query: str, params: Sequence[Any] = ()) -> List[aiosqlite.Row]:
        """Fetch all rows."""
        async with self.storage.session() as conn:
            async with conn.execute(query, params) as cursor:
                return list(await cursor.fetchall())

    async def fetch_value(self, query: str, params: Sequence[Any] = ()) -> Optional[Any]:
        """Fetch a single value from a single row."""
        row = await self.fetch_one(query, params)
        return row[0] if row else None

    async def fetch_column(self, query: str, params: Sequence[Any] = ()) -> List[Any]:
        """Fetch first column from all rows."""
        rows = await self.fetch_all(query, params)
        return [row[0] for row in rows]

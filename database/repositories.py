"""Database access layer helpers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Optional, Set

import aiosqlite

from core import get_logger
from database.base_repository import BaseRepository
from database.models import (
    DrawHistoryEntry,
    DrawRecord,
    Fortune,
    format_timestamp,
    parse_timestamp,
)

logger = get_logger(__name__)

_FORTUNE_COLUMNS = "id, text, category, created_at"


class FortuneRepository(BaseRepository):
    """Read-only queries over the fortune catalog."""

    async def get_all(self) -> List[Fortune]:
        rows = await self.fetch_all(f"SELECT {_FORTUNE_COLUMNS} FROM fortunes ORDER BY id")
        return [Fortune.from_row(row) for row in rows]

    async def get_by_id(self, fortune_id: int) -> Optional[Fortune]:
        row = await self.fetch_one(
            f"SELECT {_FORTUNE_COLUMNS} FROM fortunes WHERE id=?", (fortune_id,)
        )
        return Fortune.from_row(row) if row else None

    async def get_by_category(self, category: str) -> List[Fortune]:
        rows = await self.fetch_all(
            f"SELECT {_FORTUNE_COLUMNS} FROM fortunes WHERE category=? ORDER BY id",
            (category,),
        )
        return [Fortune.from_row(row) for row in rows]

    async def get_excluding(self, exclude_ids: Iterable[int]) -> List[Fortune]:
        """Get fortunes whose id is not in ``exclude_ids``."""
        ids = sorted(set(exclude_ids))
        if not ids:
            return await self.get_all()

        placeholders = ",".join(["?"] * len(ids))
        rows = await self.fetch_all(
            f"SELECT {_FORTUNE_COLUMNS} FROM fortunes "
            f"WHERE id NOT IN ({placeholders}) ORDER BY id",
            tuple(ids),
        )
        return [Fortune.from_row(row) for row in rows]

    async def get_count(self) -> int:
        value = await self.fetch_value("SELECT COUNT(*) FROM fortunes")
        return int(value or 0)


class DrawRecordStore(BaseRepository):
    """Transactional boundary for per-user draw facts.

    Uniqueness of ``(user_token, fortune_id)`` and the reference to an
    existing fortune are enforced by the schema, not checked here.
    """

    async def record_draw(
        self,
        user_token: str,
        fortune_id: int,
        timestamp: Optional[datetime] = None,
    ) -> DrawRecord:
        """Insert one draw record.

        Raises:
            UniqueConstraintError: The user already drew this fortune
            ForeignKeyError: ``fortune_id`` is not in the catalog
        """
        drawn_at = timestamp or datetime.now(timezone.utc)
        stored_at = format_timestamp(drawn_at)

        async def insert(conn: aiosqlite.Connection) -> int:
            cursor = await conn.execute(
                "INSERT INTO user_draws (user_token, fortune_id, timestamp) VALUES (?, ?, ?)",
                (user_token, fortune_id, stored_at),
            )
            try:
                return int(cursor.lastrowid)
            finally:
                await cursor.close()

        record_id = await self.storage.execute_transaction(insert)
        logger.debug("Recorded draw %s of fortune %s", record_id, fortune_id)
        return DrawRecord(
            id=record_id,
            user_token=user_token,
            fortune_id=fortune_id,
            timestamp=parse_timestamp(stored_at),  # type: ignore[arg-type]
        )

    async def get_drawn_ids(self, user_token: str) -> Set[int]:
        values = await self.fetch_column(
            "SELECT fortune_id FROM user_draws WHERE user_token=?", (user_token,)
        )
        return {int(value) for value in values}

    async def get_last_draw_time(self, user_token: str) -> Optional[datetime]:
        value = await self.fetch_value(
            "SELECT timestamp FROM user_draws WHERE user_token=? "
            "ORDER BY timestamp DESC, id DESC LIMIT 1",
            (user_token,),
        )
        return parse_timestamp(value)

    async def get_draw_history(self, user_token: str) -> List[DrawHistoryEntry]:
        """Draws of ``user_token`` joined with fortune details, newest first."""
        rows = await self.fetch_all(
            """
            SELECT ud.fortune_id, f.text, f.category, ud.timestamp
            FROM user_draws ud
            JOIN fortunes f ON ud.fortune_id = f.id
            WHERE ud.user_token=?
            ORDER BY ud.timestamp DESC, ud.id DESC
            """,
            (user_token,),
        )
        return [DrawHistoryEntry.from_row(row) for row in rows]

    async def get_user_draw_count(self, user_token: str) -> int:
        value = await self.fetch_value(
            "SELECT COUNT(*) FROM user_draws WHERE user_token=?", (user_token,)
        )
        return int(value or 0)

    async def get_total_count(self) -> int:
        value = await self.fetch_value("SELECT COUNT(*) FROM user_draws")
        return int(value or 0)

    async def get_unique_user_count(self) -> int:
        value = await self.fetch_value("SELECT COUNT(DISTINCT user_token) FROM user_draws")
        return int(value or 0)

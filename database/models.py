"""Data access layer models implemented with handcrafted queries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"


def format_timestamp(value: datetime) -> str:
    """Render ``value`` as the UTC text stored in the database."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a stored timestamp into an aware UTC datetime."""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(slots=True, frozen=True)
class Fortune:
    id: int
    text: str
    category: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Fortune":
        return cls(
            id=int(row["id"]),
            text=row["text"],
            category=row["category"],
            created_at=parse_timestamp(row["created_at"]),
        )

    def to_dict(self) -> dict:
        return {"id": self.id, "text": self.text, "category": self.category}


@dataclass(slots=True, frozen=True)
class DrawRecord:
    id: int
    user_token: str
    fortune_id: int
    timestamp: datetime


@dataclass(slots=True, frozen=True)
class DrawHistoryEntry:
    fortune_id: int
    text: str
    category: str
    timestamp: datetime

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "DrawHistoryEntry":
        return cls(
            fortune_id=int(row["fortune_id"]),
            text=row["text"],
            category=row["category"],
            timestamp=parse_timestamp(row["timestamp"]),  # type: ignore[arg-type]
        )


@dataclass(slots=True, frozen=True)
class UserStats:
    total_drawn: int
    total_available: int
    remaining_count: int
    last_draw_time: Optional[datetime]


@dataclass(slots=True, frozen=True)
class DatabaseStats:
    fortune_count: int
    user_draw_count: int
    unique_users: int


@dataclass(slots=True, frozen=True)
class CooldownStatus:
    in_cooldown: bool
    remaining_seconds: int
    next_draw_time: Optional[datetime]
    last_draw_time: Optional[datetime]


@dataclass(slots=True, frozen=True)
class CacheStats:
    total_fortunes: int
    categories: int
    cache_age: Optional[float]
    is_expired: bool

"""Single SQLite connection with lazy open, health probe and bounded reconnect."""

from __future__ import annotations

import asyncio
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, AsyncIterator, Awaitable, Callable, List, Optional, Set, TypeVar

import aiosqlite

from core import get_logger
from core.constants import ConnectionDefaults, ConnectionState, DatabaseDefaults
from core.exceptions import StorageConnectionError, StorageError, StorageErrorKind
from database.errors import classify_error, is_storage_failure, translate_error

if TYPE_CHECKING:
    from config import Config

logger = get_logger(__name__)

T = TypeVar("T")
Connector = Callable[[str], Awaitable[aiosqlite.Connection]]
StateListener = Callable[[ConnectionState], None]
Sleeper = Callable[[float], Awaitable[None]]


async def open_sqlite(path: str) -> aiosqlite.Connection:
    """Open an aiosqlite connection with explicit transaction control."""
    return await aiosqlite.connect(path, isolation_level=None)


class StorageConnection:
    """Owner of the one physical connection to the fortune database.

    The handle moves through ``disconnected -> connecting -> connected``.
    A connection-level failure that was not caused by :meth:`close` drops
    the handle and schedules up to ``max_reconnect_attempts`` background
    attempts, attempt ``n`` waiting ``n * reconnect_base_delay`` seconds.
    When they are exhausted the state becomes ``failed`` until the next
    explicit :meth:`get_connection`, which resets the counter.

    Statements are serialized per transaction or session because a single
    SQLite connection cannot interleave transactions.
    """

    def __init__(
        self,
        database_path: str,
        busy_timeout_ms: int = DatabaseDefaults.BUSY_TIMEOUT,
        max_reconnect_attempts: int = ConnectionDefaults.MAX_RECONNECT_ATTEMPTS,
        reconnect_base_delay: float = ConnectionDefaults.RECONNECT_BASE_DELAY,
        health_check_timeout: float = ConnectionDefaults.HEALTH_CHECK_TIMEOUT,
        connector: Optional[Connector] = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.database_path = Path(database_path)
        self.busy_timeout_ms = busy_timeout_ms
        self.max_reconnect_attempts = max_reconnect_attempts
        self.reconnect_base_delay = reconnect_base_delay
        self.health_check_timeout = health_check_timeout
        self._connector = connector or open_sqlite
        self._sleep = sleep

        self._conn: Optional[aiosqlite.Connection] = None
        self._state = ConnectionState.DISCONNECTED
        self._connect_task: Optional[asyncio.Task] = None
        self._reconnect_task: Optional[asyncio.Task] = None
        self._reconnect_attempts = 0
        self._closing = False
        self._listeners: List[StateListener] = []
        self._background: Set[asyncio.Task] = set()
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: "Config", **kwargs) -> "StorageConnection":
        return cls(
            database_path=config.database_path,
            busy_timeout_ms=config.db_busy_timeout,
            max_reconnect_attempts=config.max_reconnect_attempts,
            reconnect_base_delay=config.reconnect_base_delay,
            health_check_timeout=config.health_check_timeout,
            **kwargs,
        )

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED and self._conn is not None

    @property
    def reconnect_attempts(self) -> int:
        return self._reconnect_attempts

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_task is not None and not self._reconnect_task.done()

    # Listeners ---------------------------------------------------------

    def add_listener(self, listener: StateListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        previous, self._state = self._state, state
        logger.info("Storage connection %s -> %s", previous.value, state.value)
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Connection state listener %r failed", listener)

    # Connecting --------------------------------------------------------

    async def get_connection(self) -> aiosqlite.Connection:
        """Return the live handle, opening it if needed.

        Concurrent callers share one in-flight attempt. While a scheduled
        reconnect waits out its backoff, callers fail fast instead of
        opening the database themselves. After the sequence has given up,
        a call resets the attempt counter and tries once.

        Raises:
            StorageConnectionError: If the database cannot be opened
        """
        if self.is_connected:
            return self._conn  # type: ignore[return-value]

        if self._connect_task is None:
            if self.reconnect_pending:
                # Backoff in progress; the scheduled sequence owns the next attempt
                raise StorageConnectionError("Storage reconnect in progress")
            fallback = ConnectionState.DISCONNECTED
            if self._state is ConnectionState.FAILED:
                fallback = ConnectionState.FAILED
                self._reconnect_attempts = 0
            self._connect_task = asyncio.ensure_future(self._attempt(fallback))

        return await asyncio.shield(self._connect_task)

    async def _attempt(self, fallback: ConnectionState) -> aiosqlite.Connection:
        self._set_state(ConnectionState.CONNECTING)
        try:
            conn = await self._open()
        except Exception as exc:
            self._connect_task = None
            self._set_state(fallback)
            logger.warning("Could not open database %s: %s", self.database_path, exc)
            raise StorageConnectionError(
                f"Unable to open database at {self.database_path}"
            ) from exc

        self._connect_task = None
        if self._closing:
            await conn.close()
            raise StorageConnectionError("Connection closed while it was being opened")
        self._conn = conn
        self._set_state(ConnectionState.CONNECTED)
        return conn

    async def _open(self) -> aiosqlite.Connection:
        if not self.database_path.parent.is_dir():
            self.database_path.parent.mkdir(parents=True, exist_ok=True)

        conn = await self._connector(self.database_path.as_posix())
        try:
            await self._apply_pragma(conn)
        except Exception:
            await conn.close()
            raise
        return conn

    async def _apply_pragma(self, conn: aiosqlite.Connection) -> None:
        conn.row_factory = aiosqlite.Row
        await conn.execute("PRAGMA foreign_keys=ON")
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA synchronous=NORMAL")
        await conn.execute(f"PRAGMA busy_timeout={int(self.busy_timeout_ms)}")

    # Failure handling --------------------------------------------------

    def handle_connection_error(self, exc: BaseException) -> None:
        """React to a connection-level failure reported by the driver.

        Drops the handle, notifies listeners and schedules the bounded
        reconnect. Ignored while closing or when no handle is live.
        """
        if self._closing or self._conn is None:
            return
        logger.error("Storage connection lost: %s", exc)
        conn, self._conn = self._conn, None
        self._spawn(self._discard(conn))
        self._set_state(ConnectionState.DISCONNECTED)
        if not self.reconnect_pending:
            self._reconnect_task = asyncio.ensure_future(self._reconnect_loop())

    async def _reconnect_loop(self) -> None:
        while self._reconnect_attempts < self.max_reconnect_attempts:
            self._reconnect_attempts += 1
            attempt = self._reconnect_attempts
            delay = attempt * self.reconnect_base_delay
            logger.info(
                "Reconnect attempt %s/%s in %.2fs",
                attempt, self.max_reconnect_attempts, delay,
            )
            await self._sleep(delay)
            if self._connect_task is None:
                self._connect_task = asyncio.ensure_future(
                    self._attempt(ConnectionState.DISCONNECTED)
                )
            try:
                await asyncio.shield(self._connect_task)
            except StorageConnectionError:
                continue
            self._reconnect_attempts = 0
            return

        self._set_state(ConnectionState.FAILED)
        logger.error(
            "Giving up on storage after %s reconnect attempts", self.max_reconnect_attempts
        )

    async def wait_for_reconnect(self) -> ConnectionState:
        """Wait for a scheduled reconnect sequence to finish."""
        task = self._reconnect_task
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        return self._state

    async def _discard(self, conn: aiosqlite.Connection) -> None:
        try:
            await conn.close()
        except Exception as exc:
            logger.debug("Ignoring error while closing dead connection: %s", exc)

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _handle_alive(self, conn: aiosqlite.Connection) -> bool:
        try:
            async with conn.execute("SELECT 1") as cursor:
                await cursor.fetchone()
        except (sqlite3.Error, ValueError):
            return False
        return True

    async def _translate(self, conn: aiosqlite.Connection, exc: Exception) -> Exception:
        """Map ``exc`` to a typed storage error, reacting to a dead handle.

        ``ValueError`` and ``ProgrammingError`` also come from application
        bugs and bad bindings; they count as connection loss only when the
        handle no longer answers.
        """
        if isinstance(exc, StorageError):
            return exc
        kind = classify_error(exc) if is_storage_failure(exc) else None
        if kind is not StorageErrorKind.CONNECTION_LOST and isinstance(
            exc, (sqlite3.ProgrammingError, ValueError)
        ):
            if not await self._handle_alive(conn):
                kind = StorageErrorKind.CONNECTION_LOST

        if kind is None:
            return exc
        if kind is StorageErrorKind.CONNECTION_LOST:
            self.handle_connection_error(exc)
            return StorageConnectionError(
                f"{kind.value} storage failure ({type(exc).__name__})", kind
            )
        return translate_error(exc)

    # Statement scopes --------------------------------------------------

    async def execute_transaction(
        self, fn: Callable[[aiosqlite.Connection], Awaitable[T]]
    ) -> T:
        """Run ``fn`` inside ``BEGIN``/``COMMIT``.

        Any error from ``fn`` or from the commit rolls the transaction back
        and is re-raised, storage failures as typed :class:`StorageError`.
        A failing rollback is logged; the original error still propagates.
        ``fn`` must use the handle it receives, not other storage methods.
        """
        async with self._lock:
            conn = await self.get_connection()
            try:
                await conn.execute("BEGIN")
                result = await fn(conn)
                await conn.commit()
            except Exception as exc:
                await self._rollback(conn)
                error = await self._translate(conn, exc)
                if error is exc:
                    raise
                raise error from exc
            return result

    async def _rollback(self, conn: aiosqlite.Connection) -> None:
        try:
            await conn.rollback()
        except Exception as rollback_exc:
            logger.error("Rollback failed: %s", rollback_exc)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield the handle for non-transactional statements."""
        async with self._lock:
            conn = await self.get_connection()
            try:
                yield conn
            except Exception as exc:
                error = await self._translate(conn, exc)
                if error is exc:
                    raise
                raise error from exc

    # Probing and shutdown ----------------------------------------------

    async def health_check(self) -> bool:
        """Run ``SELECT 1``; never raises.

        Returns ``False`` without a new attempt while a reconnect sequence
        is pending or after it has given up.
        """
        if self._state is ConnectionState.FAILED or self.reconnect_pending:
            return False
        try:
            return await asyncio.wait_for(self._probe(), timeout=self.health_check_timeout)
        except Exception as exc:
            conn = self._conn
            if conn is not None:
                await self._translate(conn, exc)
            logger.debug("Health check failed: %s", exc)
            return False

    async def _probe(self) -> bool:
        conn = await self.get_connection()
        async with conn.execute("SELECT 1") as cursor:
            row = await cursor.fetchone()
        return row is not None

    async def close(self) -> None:
        """Close the handle and reset reconnect state; idempotent."""
        pending = [
            task for task in (self._reconnect_task, self._connect_task)
            if task is not None and not task.done()
        ]
        if self._conn is None and self._state is ConnectionState.DISCONNECTED and not pending:
            return

        self._closing = True
        try:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            self._reconnect_task = None
            self._connect_task = None

            conn, self._conn = self._conn, None
            if conn is not None:
                try:
                    await conn.close()
                except Exception as exc:
                    logger.error("Failed to close database connection: %s", exc)
            self._reconnect_attempts = 0
            self._set_state(ConnectionState.DISCONNECTED)
            logger.info("Storage connection closed")
        finally:
            self._closing = False

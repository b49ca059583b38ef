"""
SqlitePool - ConnectionPool over aiosqlite for an embedded database file.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

import aiosqlite

from pglevel.interfaces.connection_pool import Connection, ConnectionPool
from pglevel.models.dialect import SQLITE
from pglevel.models.exceptions import PoolExhaustedError

logger = logging.getLogger(__name__)


class SqliteConnection(Connection):
    """Checked-out aiosqlite connection in autocommit mode."""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def execute(self, query: str, params: Sequence[Any] = ()) -> list[tuple]:
        rows = await self._conn.execute_fetchall(query, tuple(params))
        return [tuple(row) for row in rows]

    async def begin(self) -> None:
        # Take the write lock up front so the transaction never has to upgrade
        await self._conn.execute("BEGIN IMMEDIATE")

    async def commit(self) -> None:
        await self._conn.execute("COMMIT")

    async def rollback(self) -> None:
        await self._conn.execute("ROLLBACK")


class SqlitePool(ConnectionPool):
    """
    Bounded pool of connections to one SQLite database file.

    Connections are created on demand up to max_size and reused after
    release. Each connection runs in WAL mode so readers keep going while a
    batch holds the write lock.
    """

    dialect = SQLITE

    def __init__(
        self,
        path: str,
        max_size: int = 5,
        acquire_timeout: float = 30.0,
        busy_timeout: float = 5.0,
    ) -> None:
        """
        Initialize the pool without connecting.

        Args:
            path: Database file path. In-memory databases are rejected since
                  every connection would see a different database.
            max_size: Upper bound on open connections.
            acquire_timeout: Seconds to wait for a free connection.
            busy_timeout: Seconds SQLite waits on a locked database.
        """
        super().__init__()
        if not path or path == ":memory:":
            raise ValueError("SqlitePool needs a database file path")
        if max_size <= 0:
            raise ValueError(f"max_size must be positive, got {max_size}")

        self._path = path
        self._max_size = max_size
        self._acquire_timeout = acquire_timeout
        self._busy_timeout = busy_timeout
        self._slots = asyncio.Semaphore(max_size)
        self._idle: list[aiosqlite.Connection] = []
        self._connections: list[aiosqlite.Connection] = []
        self._closed = True

    @property
    def path(self) -> str:
        return self._path

    @property
    def closed(self) -> bool:
        return self._closed

    async def open(self) -> None:
        self._closed = False
        logger.info("SQLite pool opened on %s (max %d connections)", self._path, self._max_size)

    async def close(self) -> None:
        self._closed = True
        connections, self._connections, self._idle = self._connections, [], []
        for conn in connections:
            await conn.close()
        logger.info("SQLite pool closed on %s", self._path)

    async def _connect(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(
            self._path, isolation_level=None, timeout=self._busy_timeout
        )
        await conn.execute("PRAGMA journal_mode=WAL;")
        await conn.execute("PRAGMA synchronous=NORMAL;")
        return conn

    async def _checkout(self) -> aiosqlite.Connection:
        try:
            await asyncio.wait_for(self._slots.acquire(), timeout=self._acquire_timeout)
        except asyncio.TimeoutError:
            raise PoolExhaustedError(self._acquire_timeout, self._max_size) from None

        try:
            if self._idle:
                return self._idle.pop()
            conn = await self._connect()
            self._connections.append(conn)
            return conn
        except BaseException:
            self._slots.release()
            raise

    async def _checkin(self, conn: aiosqlite.Connection) -> None:
        try:
            if self._closed or conn not in self._connections:
                return
            if conn.in_transaction:
                try:
                    await conn.execute("ROLLBACK")
                except aiosqlite.Error as e:
                    logger.warning(f"Dropping SQLite connection after failed rollback: {e}")
                    self._connections.remove(conn)
                    await conn.close()
                    return
            self._idle.append(conn)
        finally:
            self._slots.release()

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[SqliteConnection]:
        if self._closed:
            raise RuntimeError("SQLite pool is closed. Call acquire() first.")
        conn = await self._checkout()
        try:
            yield SqliteConnection(conn)
        finally:
            await self._checkin(conn)

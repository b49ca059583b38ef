"""
PostgresPool - ConnectionPool over psycopg 3 and psycopg_pool.
"""

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

import psycopg
from psycopg_pool import AsyncConnectionPool

from pglevel.interfaces.connection_pool import Connection, ConnectionPool
from pglevel.models.dialect import POSTGRES

logger = logging.getLogger(__name__)


class PostgresConnection(Connection):
    """
    Checked-out psycopg connection.

    Connections run in autocommit mode, so every statement outside an
    explicit begin() commits on its own.
    """

    def __init__(self, conn: psycopg.AsyncConnection) -> None:
        self._conn = conn

    async def execute(self, query: str, params: Sequence[Any] = ()) -> list[tuple]:
        cursor = await self._conn.execute(query, params)
        if cursor.description is None:
            return []
        return await cursor.fetchall()

    async def begin(self) -> None:
        await self._conn.execute("BEGIN")

    async def commit(self) -> None:
        await self._conn.execute("COMMIT")

    async def rollback(self) -> None:
        await self._conn.execute("ROLLBACK")


class PostgresPool(ConnectionPool):
    """
    Pool of PostgreSQL connections.

    Acquire timeouts and idle eviction come from psycopg_pool; its
    PoolTimeout and the driver's OperationalError reach callers unchanged.
    """

    dialect = POSTGRES

    def __init__(
        self,
        conninfo: str,
        min_size: int = 1,
        max_size: int = 10,
        idle_timeout: float = 600.0,
        acquire_timeout: float = 30.0,
    ) -> None:
        """
        Initialize the pool without connecting.

        Args:
            conninfo: libpq connection string or postgresql:// URL.
            min_size: Connections kept open.
            max_size: Upper bound on open connections.
            idle_timeout: Seconds before an idle connection above min_size is closed.
            acquire_timeout: Seconds to wait for a free connection.
        """
        super().__init__()
        self._pool = AsyncConnectionPool(
            conninfo,
            min_size=min_size,
            max_size=max_size,
            max_idle=idle_timeout,
            timeout=acquire_timeout,
            kwargs={"autocommit": True},
            open=False,
        )

    @property
    def closed(self) -> bool:
        return self._pool.closed

    async def open(self) -> None:
        await self._pool.open()
        logger.info("Postgres pool opened (max %d connections)", self._pool.max_size)

    async def close(self) -> None:
        await self._pool.close()
        logger.info("Postgres pool closed")

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[PostgresConnection]:
        async with self._pool.connection() as conn:
            yield PostgresConnection(conn)

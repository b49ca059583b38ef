"""
SchemaManager - one-time creation of the backing table.
"""

import asyncio
import logging

from pglevel.interfaces.connection_pool import ConnectionPool
from pglevel.models.exceptions import SchemaInitError
from pglevel.store import queries

logger = logging.getLogger(__name__)


class SchemaManager:
    """
    Gates store operations behind a one-time DDL barrier.

    The first successful ensure_ready() creates the table and index if they
    are missing; later calls return without I/O. A failed attempt leaves the
    manager un-initialized so the next call tries again.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool
        self._ready = False
        self._lock = asyncio.Lock()

    @property
    def is_ready(self) -> bool:
        return self._ready

    async def ensure_ready(self) -> None:
        """
        Create the backing table and index once.

        Safe to call from concurrent operations: the first caller runs the
        DDL while the others wait on the lock and then see the ready flag.

        Raises:
            SchemaInitError: If any DDL statement fails.
        """
        if self._ready:
            return

        async with self._lock:
            if self._ready:
                return

            try:
                for statement in queries.schema_statements(self._pool.dialect):
                    await self._pool.execute(statement)
            except Exception as e:
                logger.error(f"Failed to create table {queries.TABLE}: {e}")
                raise SchemaInitError(queries.TABLE, e) from e

            self._ready = True
            logger.debug("Table %s and index %s created/verified", queries.TABLE, queries.INDEX)

    def reset(self) -> None:
        """Forget the ready state so the next operation re-checks the schema."""
        self._ready = False

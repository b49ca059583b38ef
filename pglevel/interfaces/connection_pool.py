"""
ConnectionPool and Connection abstract base classes.

The store talks to its backend only through this contract: parameterized
statements, connection checkout/release, and explicit transactions on a
checked-out connection.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Sequence
from contextlib import AbstractAsyncContextManager
from typing import Any

from pglevel.models.dialect import Dialect


class Connection(ABC):
    """A connection checked out of a pool."""

    @abstractmethod
    async def execute(self, query: str, params: Sequence[Any] = ()) -> list[tuple]:
        """
        Run one statement.

        Args:
            query: SQL text using the pool dialect's placeholder.
            params: Positional parameters.

        Returns:
            Result rows as tuples (empty for statements without a result).
        """
        pass

    @abstractmethod
    async def begin(self) -> None:
        pass

    @abstractmethod
    async def commit(self) -> None:
        pass

    @abstractmethod
    async def rollback(self) -> None:
        pass


class ConnectionPool(ABC):
    """
    Abstract base class for pools of backend connections.

    Pools are shared by reference count: every holder calls acquire() once
    and release() once. The pool opens on the first acquire and closes when
    the last holder releases it, so it can outlive any single store.
    """

    dialect: Dialect

    def __init__(self) -> None:
        self._refs = 0
        self._ref_lock = asyncio.Lock()

    @property
    def refs(self) -> int:
        """Number of holders currently sharing the pool."""
        return self._refs

    async def acquire(self) -> None:
        """Register a holder, opening the pool if it is the first one."""
        async with self._ref_lock:
            if self._refs == 0:
                await self.open()
            self._refs += 1

    async def release(self) -> None:
        """Drop a holder, closing the pool when none remain."""
        async with self._ref_lock:
            if self._refs == 0:
                return
            self._refs -= 1
            if self._refs == 0:
                await self.close()

    @abstractmethod
    async def open(self) -> None:
        pass

    @abstractmethod
    async def close(self) -> None:
        pass

    @abstractmethod
    def connection(self) -> AbstractAsyncContextManager[Connection]:
        """
        Check out a connection for exclusive use.

        The connection goes back to the pool when the context exits,
        whether or not the body raised. A transaction left open is
        rolled back on return.
        """
        pass

    async def execute(self, query: str, params: Sequence[Any] = ()) -> list[tuple]:
        """Run one statement on any free connection."""
        async with self.connection() as conn:
            return await conn.execute(query, params)

    async def __aenter__(self) -> "ConnectionPool":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.release()

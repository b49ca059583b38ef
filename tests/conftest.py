"""
Shared pytest fixtures for async store tests.
"""

import os
import sqlite3
import tempfile
from collections.abc import Callable, Sequence
from contextlib import asynccontextmanager
from typing import Any

import pytest
import pytest_asyncio

from pglevel.interfaces.connection_pool import Connection, ConnectionPool
from pglevel.pools.sqlite import SqlitePool
from pglevel.store.store import Store


class FlakyConnection(Connection):
    """Connection wrapper that fails statements chosen by a predicate."""

    def __init__(self, inner: Connection, pool: "FlakyPool") -> None:
        self._inner = inner
        self._pool = pool

    async def execute(self, query: str, params: Sequence[Any] = ()) -> list[tuple]:
        self._pool.statements.append(query)
        if self._pool.fail_on(query, params):
            raise sqlite3.OperationalError(f"injected failure: {query.split()[0]}")
        return await self._inner.execute(query, params)

    async def begin(self) -> None:
        await self._inner.begin()

    async def commit(self) -> None:
        await self._inner.commit()

    async def rollback(self) -> None:
        if self._pool.fail_on("ROLLBACK", ()):
            raise sqlite3.OperationalError("injected failure: ROLLBACK")
        await self._inner.rollback()


class FlakyPool(ConnectionPool):
    """
    Pool wrapper that injects backend failures.

    fail_on(query, params) is consulted for every statement and for
    rollbacks (as "ROLLBACK" with no params); returning True
    makes that statement raise sqlite3.OperationalError.
    """

    def __init__(
        self,
        inner: ConnectionPool,
        fail_on: Callable[[str, Sequence[Any]], bool] = lambda query, params: False,
    ) -> None:
        super().__init__()
        self.dialect = inner.dialect
        self.inner = inner
        self.fail_on = fail_on
        self.statements: list[str] = []

    async def open(self) -> None:
        await self.inner.acquire()

    async def close(self) -> None:
        await self.inner.release()

    @asynccontextmanager
    async def connection(self):
        async with self.inner.connection() as conn:
            yield FlakyConnection(conn, self)


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def db_path(temp_dir):
    """Provide a path for the SQLite database file."""
    return os.path.join(temp_dir, "store.db")


@pytest.fixture
def pool(db_path):
    """Provide an unopened SqlitePool; stores open and close it."""
    return SqlitePool(db_path)


@pytest_asyncio.fixture
async def store(pool):
    """Provide an open Store on the default namespace."""
    async with Store(pool) as s:
        yield s


@pytest.fixture
def make_flaky_pool(db_path):
    """Provide a factory for FlakyPools over the test database."""

    def make(**pool_kwargs) -> FlakyPool:
        return FlakyPool(SqlitePool(db_path, **pool_kwargs))

    return make


@pytest.fixture
def flaky_pool(make_flaky_pool):
    """Provide a FlakyPool over a fresh SqlitePool; set fail_on in the test."""
    return make_flaky_pool()


@pytest_asyncio.fixture
async def flaky_store(flaky_pool):
    """Provide an open Store whose statements can be made to fail."""
    async with Store(flaky_pool) as s:
        yield s


@pytest.fixture
def alphabet():
    """Provide the keys a..e used by range tests."""
    return ["a", "b", "c", "d", "e"]


@pytest.fixture
def row_count():
    """Provide a coroutine counting the physical rows stored for a key."""

    async def count(store: Store, key: str) -> int:
        p = store.pool.dialect.placeholder
        rows = await store.pool.execute(
            f"SELECT COUNT(*) FROM store_kv WHERE namespace = {p} AND key = {p}",
            [store.namespace, key],
        )
        return rows[0][0]

    return count

"""
Store - ordered key-value store API over a single shared table.
"""

import logging
import weakref
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from pglevel.interfaces.connection_pool import ConnectionPool
from pglevel.models.batch_operation import BatchOperation, OperationType
from pglevel.models.exceptions import NotFoundError, StoreNotOpenError
from pglevel.models.range_options import RangeOptions
from pglevel.store import queries
from pglevel.store.chained_batch import ChainedBatch
from pglevel.store.range_iterator import DEFAULT_PAGE_SIZE, RangeIterator
from pglevel.store.schema import SchemaManager

if TYPE_CHECKING:
    from pglevel.config import StoreConfig

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "level"

RangeArg = RangeOptions | Mapping[str, Any] | None


class Store:
    """
    Ordered key-value store scoped to one namespace of the store_kv table.

    Provides:
    - get(key) / get_many(keys): Point lookups
    - put(key, value): Upsert
    - delete(key): Idempotent delete
    - batch(operations): Atomic multi-key writes
    - clear(range): Range deletion, optionally limited in scan order
    - iterator(range): Lazy ordered range scan

    Architecture:
    - Every statement filters by (namespace, key); keys sort byte-wise
    - The table is created lazily on the first operation (SchemaManager)
    - Point operations are single statements on the shared pool
    - Batches run in one transaction on a dedicated connection
    - The pool is shared by reference count and may outlive the store
    """

    def __init__(
        self,
        pool: ConnectionPool,
        namespace: str = DEFAULT_NAMESPACE,
        page_size: int = DEFAULT_PAGE_SIZE,
        debug: bool = False,
    ) -> None:
        """
        Initialize the store. Nothing is opened until open().

        Args:
            pool: Connection pool for the backing database.
            namespace: Logical partition all operations are scoped to.
            page_size: Default rows per page for iterators.
            debug: Log every statement and its parameters at DEBUG level.
                   Do not enable when values may hold secrets.
        """
        if not isinstance(namespace, str) or not namespace:
            raise ValueError("namespace must be a non-empty string")
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")

        self._pool = pool
        self._namespace = namespace
        self._page_size = page_size
        self._debug = debug
        self._schema = SchemaManager(pool)
        self._status = "closed"
        self._iterators: weakref.WeakSet[RangeIterator] = weakref.WeakSet()

    @classmethod
    def from_config(cls, config: "StoreConfig") -> "Store":
        """Build a store and its pool from a StoreConfig."""
        return cls(
            config.create_pool(),
            namespace=config.namespace,
            page_size=config.page_size,
            debug=config.debug,
        )

    @property
    def pool(self) -> ConnectionPool:
        return self._pool

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def status(self) -> str:
        """One of "opening", "open", "closing", "closed"."""
        return self._status

    @property
    def type(self) -> str:
        return self._pool.dialect.name

    async def open(self) -> None:
        """Take a reference on the pool. The schema is checked on first use."""
        if self._status == "open":
            return
        self._status = "opening"
        try:
            await self._pool.acquire()
        except Exception:
            self._status = "closed"
            raise
        self._status = "open"
        logger.debug(f"Store opened on namespace {self._namespace!r}")

    async def close(self) -> None:
        """Close open iterators and release this store's reference on the pool."""
        if self._status != "open":
            return
        self._status = "closing"
        try:
            for iterator in list(self._iterators):
                await iterator.aclose()
            await self._pool.release()
        finally:
            self._schema.reset()
            self._status = "closed"
        logger.debug(f"Store closed on namespace {self._namespace!r}")

    async def get(self, key: str) -> str:
        """
        Retrieve the value of a key.

        Args:
            key: The key to look up.

        Returns:
            The stored value.

        Raises:
            NotFoundError: If the key is absent from the namespace.
        """
        _check_key(key)
        await self._ensure_ready()
        rows = await self._execute(*queries.select_value(self._pool.dialect, self._namespace, key))
        if not rows:
            raise NotFoundError(key)
        return rows[0][0]

    async def get_many(self, keys: Iterable[str]) -> list[str | None]:
        """
        Retrieve several values in one round trip.

        Args:
            keys: Keys to look up.

        Returns:
            Values in the order of keys, with None for every absent key.
        """
        keys = list(keys)
        for key in keys:
            _check_key(key)
        if not keys:
            return []

        await self._ensure_ready()
        unique = list(dict.fromkeys(keys))
        rows = await self._execute(
            *queries.select_many(self._pool.dialect, self._namespace, unique)
        )
        found = dict(rows)
        return [found.get(key) for key in keys]

    async def has(self, key: str) -> bool:
        """Check whether a key exists without raising on a miss."""
        _check_key(key)
        await self._ensure_ready()
        rows = await self._execute(*queries.select_exists(self._pool.dialect, self._namespace, key))
        return bool(rows)

    async def put(self, key: str, value: str) -> None:
        """
        Insert or overwrite a key in a single statement.

        Args:
            key: The key to write.
            value: The value to store.
        """
        _check_key(key)
        _check_value(value)
        await self._ensure_ready()
        await self._execute(*queries.upsert(self._pool.dialect, self._namespace, key, value))

    async def delete(self, key: str) -> None:
        """Remove a key. Deleting an absent key is not an error."""
        _check_key(key)
        await self._ensure_ready()
        await self._execute(*queries.delete_key(self._pool.dialect, self._namespace, key))

    async def batch(self, operations: Iterable[BatchOperation | Mapping[str, Any]]) -> None:
        """
        Apply put/delete operations atomically, in order.

        All operations run in one transaction on a dedicated connection.
        If any of them fails the transaction is rolled back, nothing is
        visible, and the original error is raised.

        Args:
            operations: BatchOperation instances or {"type", "key", "value"} mappings.
        """
        self._check_open()
        ops = [BatchOperation.coerce(op) for op in operations]
        if not ops:
            return

        await self._ensure_ready()
        dialect = self._pool.dialect
        async with self._pool.connection() as conn:
            await conn.begin()
            try:
                for op in ops:
                    if op.type is OperationType.PUT:
                        sql, params = queries.upsert(dialect, self._namespace, op.key, op.value)
                    else:
                        sql, params = queries.delete_key(dialect, self._namespace, op.key)
                    self._trace(sql, params)
                    await conn.execute(sql, params)
            except Exception as e:
                logger.error(
                    f"Batch of {len(ops)} operations on namespace {self._namespace!r} "
                    f"failed, rolling back: {e}"
                )
                try:
                    await conn.rollback()
                except Exception as rollback_error:
                    logger.error(
                        f"Rollback of batch on namespace {self._namespace!r} "
                        f"failed: {rollback_error}"
                    )
                raise
            await conn.commit()

    def chained_batch(self) -> ChainedBatch:
        """Return a builder whose write() applies its operations via batch()."""
        self._check_open()
        return ChainedBatch(self)

    async def clear(self, options: RangeArg = None, **kwargs: Any) -> None:
        """
        Delete every key in a range.

        With a limit, exactly the first `limit` keys in scan order (honoring
        reverse) are deleted, the same keys an iterator would yield first.

        Args:
            options: RangeOptions or mapping; keyword arguments override it.
        """
        self._check_open()
        range_options = RangeOptions.coerce(options, **kwargs)
        if range_options.limit == 0:
            return
        await self._ensure_ready()
        await self._execute(
            *queries.clear_range(self._pool.dialect, self._namespace, range_options)
        )

    def iterator(
        self, options: RangeArg = None, *, page_size: int | None = None, **kwargs: Any
    ) -> RangeIterator:
        """
        Open a lazy scan over a range.

        Args:
            options: RangeOptions or mapping; keyword arguments override it.
            page_size: Rows per page query (defaults to the store's page size).

        Returns:
            A RangeIterator; use with `async for` and close with aclose().
        """
        self._check_open()
        iterator = RangeIterator(
            self._pool,
            self._namespace,
            RangeOptions.coerce(options, **kwargs),
            page_size=self._page_size if page_size is None else page_size,
            debug=self._debug,
            before_fetch=self._schema.ensure_ready,
            on_close=self._iterators.discard,
        )
        self._iterators.add(iterator)
        return iterator

    def keys(self, options: RangeArg = None, **kwargs: Any) -> RangeIterator:
        """Scan yielding bare keys."""
        return self.iterator(options, **{**kwargs, "keys": True, "values": False})

    def values(self, options: RangeArg = None, **kwargs: Any) -> RangeIterator:
        """Scan yielding bare values."""
        return self.iterator(options, **{**kwargs, "keys": False, "values": True})

    async def _ensure_ready(self) -> None:
        self._check_open()
        await self._schema.ensure_ready()

    def _check_open(self) -> None:
        if self._status != "open":
            raise StoreNotOpenError(self._status)

    async def _execute(self, sql: str, params: list[Any]) -> list[tuple]:
        self._trace(sql, params)
        return await self._pool.execute(sql, params)

    def _trace(self, sql: str, params: list[Any]) -> None:
        if self._debug:
            logger.debug("Query: %s %s", sql, params)

    async def __aenter__(self) -> "Store":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def _check_key(key: Any) -> None:
    if not isinstance(key, str):
        raise TypeError(f"key must be a string, got {type(key).__name__}")


def _check_value(value: Any) -> None:
    if not isinstance(value, str):
        raise TypeError(f"value must be a string, got {type(value).__name__}")

"""
RangeIterator - lazy, paged, ordered scan over one namespace.
"""

import logging
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any

from pglevel.interfaces.connection_pool import ConnectionPool
from pglevel.interfaces.range_iterable import RangeIterable
from pglevel.models.exceptions import IterationError
from pglevel.models.range_options import RangeOptions
from pglevel.store import queries

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50


class RangeIterator(RangeIterable):
    """
    Streams the entries of a range in key order, one page at a time.

    Pages are fetched with keyset pagination: each page continues strictly
    past the last key already fetched, using the same comparison as the
    scan direction. A key is therefore delivered at most once, and keys
    that exist for the whole scan are never skipped, even when other rows
    are written or deleted between pages.

    Pages are independent statements, so the scan holds no lock and no
    snapshot: writes that land mid-scan past the cursor are observed.

    Entries are (key, value) tuples, bare keys, or bare values depending on
    the keys/values flags of the options.
    """

    def __init__(
        self,
        pool: ConnectionPool,
        namespace: str,
        options: RangeOptions | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        debug: bool = False,
        before_fetch: Callable[[], Awaitable[None]] | None = None,
        on_close: Callable[["RangeIterator"], None] | None = None,
    ) -> None:
        """
        Initialize the iterator. No query runs until the first entry is pulled.

        Args:
            pool: Pool the page queries run on.
            namespace: Namespace being scanned.
            options: Range bounds, direction, limit and projection.
            page_size: Maximum rows fetched per query.
            debug: Log each page query and its parameters.
            before_fetch: Awaited before every page fetch (schema barrier).
            on_close: Called once when the iterator is closed.
        """
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")

        self._pool = pool
        self._namespace = namespace
        self._options = options or RangeOptions()
        self._page_size = page_size
        self._debug = debug
        self._before_fetch = before_fetch
        self._on_close = on_close

        self._buffer: deque[tuple] = deque()
        self._cursor: str | None = None
        self._cursor_inclusive = False
        self._remaining = self._options.limit
        self._finished = self._remaining == 0
        self._closed = False
        self._count = 0
        self._pages_fetched = 0

    @property
    def options(self) -> RangeOptions:
        return self._options

    @property
    def count(self) -> int:
        """Number of entries delivered so far."""
        return self._count

    @property
    def pages_fetched(self) -> int:
        """Number of page queries issued so far."""
        return self._pages_fetched

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> "RangeIterator":
        return self

    async def __anext__(self) -> Any:
        if not self._buffer:
            if self._finished:
                raise StopAsyncIteration
            await self._fetch_page()
            if not self._buffer:
                self._finished = True
                raise StopAsyncIteration

        row = self._buffer.popleft()
        self._count += 1
        return self._project(row)

    async def next(self) -> Any:
        """Return the next entry, or None once the range is exhausted."""
        try:
            return await self.__anext__()
        except StopAsyncIteration:
            return None

    async def next_many(self, size: int) -> list[Any]:
        """
        Return up to size entries.

        Args:
            size: Maximum number of entries to return.

        Returns:
            List of entries; shorter than size only when the range is exhausted.
        """
        entries = []
        while len(entries) < size:
            try:
                entries.append(await self.__anext__())
            except StopAsyncIteration:
                break
        return entries

    async def all(self) -> list[Any]:
        """Drain the remaining entries and close the iterator."""
        try:
            return [entry async for entry in self]
        finally:
            await self.aclose()

    def seek(self, target: str) -> None:
        """
        Reposition the scan.

        The next entry is the first key >= target (or <= target in reverse),
        still restricted to the outer bounds. Buffered entries are dropped.

        Args:
            target: Key to resume from.
        """
        if self._closed:
            raise IterationError("Cannot seek a closed iterator")
        if not isinstance(target, str):
            raise TypeError(f"seek target must be a string, got {type(target).__name__}")

        self._buffer.clear()
        self._cursor = target
        self._cursor_inclusive = True
        self._finished = self._remaining == 0

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._finished = True
        self._buffer.clear()
        if self._on_close is not None:
            self._on_close(self)

    async def _fetch_page(self) -> None:
        """Fetch the next page into the buffer and advance the keyset cursor."""
        if self._before_fetch is not None:
            await self._before_fetch()

        size = self._page_size
        if self._remaining is not None:
            size = min(size, self._remaining)

        sql, params = queries.select_page(
            self._pool.dialect,
            self._namespace,
            self._options,
            self._cursor,
            self._cursor_inclusive,
            size,
        )
        if self._debug:
            logger.debug("Range page query: %s %s", sql, params)

        try:
            rows = await self._pool.execute(sql, params)
        except Exception as e:
            self._finished = True
            logger.error(f"Range scan over namespace {self._namespace!r} failed: {e}")
            raise IterationError(
                f"Range scan over namespace {self._namespace!r} failed after "
                f"{self._count} entries: {e}"
            ) from e

        self._pages_fetched += 1
        self._buffer.extend(rows)

        if rows:
            self._cursor = rows[-1][0]
            self._cursor_inclusive = False
        if self._remaining is not None:
            self._remaining -= len(rows)

        # A short page means the range has no more rows
        if len(rows) < size or self._remaining == 0:
            self._finished = True

    def _project(self, row: tuple) -> Any:
        if not self._options.values:
            return row[0]
        if not self._options.keys:
            return row[1]
        return (row[0], row[1])

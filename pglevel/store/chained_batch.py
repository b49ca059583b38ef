"""
ChainedBatch - builder that collects writes and applies them as one batch.
"""

from typing import TYPE_CHECKING

from pglevel.models.batch_operation import BatchOperation
from pglevel.models.exceptions import BatchWrittenError

if TYPE_CHECKING:
    from pglevel.store.store import Store


class ChainedBatch:
    """
    Accumulates put/delete operations for a later atomic write.

    Usage:
        await store.chained_batch().put("a", "1").delete("b").write()

    or as an async context manager, which writes on clean exit:
        async with store.chained_batch() as batch:
            batch.put("a", "1")
    """

    def __init__(self, store: "Store") -> None:
        self._store = store
        self._operations: list[BatchOperation] = []
        self._written = False

    @property
    def operations(self) -> list[BatchOperation]:
        return list(self._operations)

    def __len__(self) -> int:
        return len(self._operations)

    def put(self, key: str, value: str) -> "ChainedBatch":
        self._check_not_written()
        self._operations.append(BatchOperation.put(key, value))
        return self

    def delete(self, key: str) -> "ChainedBatch":
        self._check_not_written()
        self._operations.append(BatchOperation.delete(key))
        return self

    def clear(self) -> "ChainedBatch":
        """Drop every queued operation."""
        self._check_not_written()
        self._operations.clear()
        return self

    async def write(self) -> None:
        """
        Apply the queued operations atomically.

        The batch is spent afterwards, whether or not the write succeeded.
        """
        self._check_not_written()
        self._written = True
        await self._store.batch(self._operations)

    def _check_not_written(self) -> None:
        if self._written:
            raise BatchWrittenError()

    async def __aenter__(self) -> "ChainedBatch":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is None and not self._written:
            await self.write()

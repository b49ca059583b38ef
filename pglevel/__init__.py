"""
Ordered key-value store on a single relational table.

This package provides a sorted key-value store with:
- get(key) / get_many(keys) - Point lookups scoped to a namespace
- put(key, value) - Single-statement upsert
- delete(key) - Idempotent delete
- batch(operations) - Atomic multi-key writes
- clear(range) - Range deletion in scan order
- iterator(range) - Lazy, keyset-paged ordered scans
"""

from pglevel.config import StoreConfig
from pglevel.models import BatchOperation, OperationType, RangeOptions
from pglevel.models.exceptions import (
    BatchWrittenError,
    InvalidRangeError,
    IterationError,
    NotFoundError,
    PoolExhaustedError,
    SchemaInitError,
    StoreError,
    StoreNotOpenError,
)
from pglevel.pools import PostgresPool, SqlitePool
from pglevel.store import ChainedBatch, RangeIterator, Store

__all__ = [
    "BatchOperation",
    "BatchWrittenError",
    "ChainedBatch",
    "InvalidRangeError",
    "IterationError",
    "NotFoundError",
    "OperationType",
    "PoolExhaustedError",
    "PostgresPool",
    "RangeIterator",
    "RangeOptions",
    "SchemaInitError",
    "SqlitePool",
    "Store",
    "StoreConfig",
    "StoreError",
    "StoreNotOpenError",
]

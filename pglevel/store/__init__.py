"""
Store engine: façade, range iterator, schema barrier and SQL builders.
"""

from pglevel.store.chained_batch import ChainedBatch
from pglevel.store.range_iterator import DEFAULT_PAGE_SIZE, RangeIterator
from pglevel.store.schema import SchemaManager
from pglevel.store.store import DEFAULT_NAMESPACE, Store

__all__ = [
    "ChainedBatch",
    "DEFAULT_NAMESPACE",
    "DEFAULT_PAGE_SIZE",
    "RangeIterator",
    "SchemaManager",
    "Store",
]

"""
Data models for the key-value store.
"""

from pglevel.models.batch_operation import BatchOperation, OperationType
from pglevel.models.dialect import POSTGRES, SQLITE, Dialect
from pglevel.models.range_options import RangeOptions

__all__ = [
    "BatchOperation",
    "Dialect",
    "OperationType",
    "POSTGRES",
    "RangeOptions",
    "SQLITE",
]

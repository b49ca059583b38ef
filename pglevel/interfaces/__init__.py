"""
Abstract base classes and protocols for the key-value store.
"""

from pglevel.interfaces.connection_pool import Connection, ConnectionPool
from pglevel.interfaces.range_iterable import RangeIterable

__all__ = ["Connection", "ConnectionPool", "RangeIterable"]

"""
Connection pools for the supported backends.
"""

from pglevel.pools.postgres import PostgresPool
from pglevel.pools.sqlite import SqlitePool

__all__ = ["PostgresPool", "SqlitePool"]

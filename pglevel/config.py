"""
StoreConfig - connection target, pool sizing and store options.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass

from pglevel.interfaces.connection_pool import ConnectionPool
from pglevel.pools.postgres import PostgresPool
from pglevel.pools.sqlite import SqlitePool
from pglevel.store.range_iterator import DEFAULT_PAGE_SIZE
from pglevel.store.store import DEFAULT_NAMESPACE

POSTGRES_SCHEMES = ("postgres://", "postgresql://")
SQLITE_SCHEME = "sqlite:///"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class StoreConfig:
    """
    Everything needed to build a Store and its pool.

    Attributes:
        url: postgres(ql)://... for PostgreSQL, sqlite:///path for SQLite.
        namespace: Logical partition of the shared table.
        min_size: Connections kept open (PostgreSQL only).
        max_size: Upper bound on open connections.
        idle_timeout: Seconds before idle connections above min_size close.
        acquire_timeout: Seconds to wait for a free connection.
        page_size: Rows per iterator page query.
        debug: Log every statement and its parameters.
    """

    url: str
    namespace: str = DEFAULT_NAMESPACE
    min_size: int = 1
    max_size: int = 10
    idle_timeout: float = 600.0
    acquire_timeout: float = 30.0
    page_size: int = DEFAULT_PAGE_SIZE
    debug: bool = False

    def __post_init__(self) -> None:
        if not self.url or not self.url.strip():
            raise ValueError("url cannot be empty")
        if not self.url.startswith(POSTGRES_SCHEMES + (SQLITE_SCHEME,)):
            raise ValueError(
                f"Unsupported url scheme: {self.url.split(':', 1)[0]!r}. "
                f"Use postgresql:// or sqlite:///"
            )
        if not self.namespace:
            raise ValueError("namespace cannot be empty")
        if self.min_size < 0:
            raise ValueError(f"min_size must be >= 0, got {self.min_size}")
        if self.max_size <= 0:
            raise ValueError(f"max_size must be positive, got {self.max_size}")
        if self.min_size > self.max_size:
            raise ValueError(
                f"min_size ({self.min_size}) cannot exceed max_size ({self.max_size})"
            )
        if self.idle_timeout <= 0:
            raise ValueError(f"idle_timeout must be positive, got {self.idle_timeout}")
        if self.acquire_timeout <= 0:
            raise ValueError(f"acquire_timeout must be positive, got {self.acquire_timeout}")
        if self.page_size <= 0:
            raise ValueError(f"page_size must be positive, got {self.page_size}")

    @property
    def backend(self) -> str:
        return "sqlite" if self.url.startswith(SQLITE_SCHEME) else "postgres"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "StoreConfig":
        """
        Read configuration from environment variables.

        PGLEVEL_URL (falling back to POSTGRES_URL) is required; every other
        setting falls back to its default when unset.

        Args:
            environ: Mapping to read instead of os.environ.
        """
        env = os.environ if environ is None else environ

        url = env.get("PGLEVEL_URL") or env.get("POSTGRES_URL")
        if not url:
            raise ValueError("PGLEVEL_URL (or POSTGRES_URL) environment variable is not set")

        return cls(
            url=url,
            namespace=env.get("PGLEVEL_NAMESPACE", DEFAULT_NAMESPACE),
            min_size=int(env.get("PGLEVEL_POOL_MIN", "1")),
            max_size=int(env.get("PGLEVEL_POOL_MAX", "10")),
            idle_timeout=float(env.get("PGLEVEL_IDLE_TIMEOUT", "600")),
            acquire_timeout=float(env.get("PGLEVEL_ACQUIRE_TIMEOUT", "30")),
            page_size=int(env.get("PGLEVEL_PAGE_SIZE", str(DEFAULT_PAGE_SIZE))),
            debug=env.get("PGLEVEL_DEBUG", "").strip().lower() in _TRUE_VALUES,
        )

    def create_pool(self) -> ConnectionPool:
        """Build an unopened pool for the configured backend."""
        if self.backend == "sqlite":
            return SqlitePool(
                self.url[len(SQLITE_SCHEME):],
                max_size=self.max_size,
                acquire_timeout=self.acquire_timeout,
            )
        return PostgresPool(
            self.url,
            min_size=self.min_size,
            max_size=self.max_size,
            idle_timeout=self.idle_timeout,
            acquire_timeout=self.acquire_timeout,
        )

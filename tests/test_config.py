"""
Tests for StoreConfig.
"""

import os

import pytest

from pglevel.config import StoreConfig
from pglevel.pools.postgres import PostgresPool
from pglevel.pools.sqlite import SqlitePool
from pglevel.store.store import Store


class TestStoreConfig:
    """Tests for validation, environment parsing and pool creation."""

    def test_defaults(self):
        config = StoreConfig(url="postgresql://localhost/db")
        assert config.namespace == "level"
        assert config.page_size == 50
        assert config.backend == "postgres"
        assert not config.debug

    def test_sqlite_backend(self):
        assert StoreConfig(url="sqlite:///tmp/store.db").backend == "sqlite"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"url": ""},
            {"url": "mysql://localhost/db"},
            {"url": "postgresql://x/db", "namespace": ""},
            {"url": "postgresql://x/db", "max_size": 0},
            {"url": "postgresql://x/db", "min_size": 5, "max_size": 2},
            {"url": "postgresql://x/db", "min_size": -1},
            {"url": "postgresql://x/db", "idle_timeout": 0},
            {"url": "postgresql://x/db", "acquire_timeout": -1},
            {"url": "postgresql://x/db", "page_size": 0},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            StoreConfig(**kwargs)

    def test_from_env(self):
        config = StoreConfig.from_env(
            {
                "PGLEVEL_URL": "postgresql://u:p@db:5432/app",
                "PGLEVEL_NAMESPACE": "content",
                "PGLEVEL_POOL_MIN": "2",
                "PGLEVEL_POOL_MAX": "20",
                "PGLEVEL_IDLE_TIMEOUT": "30",
                "PGLEVEL_ACQUIRE_TIMEOUT": "2.5",
                "PGLEVEL_PAGE_SIZE": "100",
                "PGLEVEL_DEBUG": "true",
            }
        )
        assert config == StoreConfig(
            url="postgresql://u:p@db:5432/app",
            namespace="content",
            min_size=2,
            max_size=20,
            idle_timeout=30.0,
            acquire_timeout=2.5,
            page_size=100,
            debug=True,
        )

    def test_from_env_falls_back_to_postgres_url(self):
        config = StoreConfig.from_env({"POSTGRES_URL": "postgres://localhost/db"})
        assert config.url == "postgres://localhost/db"
        assert not config.debug

    def test_from_env_requires_url(self):
        with pytest.raises(ValueError, match="PGLEVEL_URL"):
            StoreConfig.from_env({})

    async def test_create_pool(self, db_path):
        assert isinstance(StoreConfig(url=f"sqlite:///{db_path}").create_pool(), SqlitePool)
        assert isinstance(StoreConfig(url="postgresql://x/db").create_pool(), PostgresPool)

    async def test_store_from_config(self, temp_dir):
        """Test a full round trip through a config-built store."""
        path = os.path.join(temp_dir, "configured.db")
        config = StoreConfig(url=f"sqlite:///{path}", namespace="cfg", page_size=2, debug=True)

        async with Store.from_config(config) as store:
            assert store.namespace == "cfg"
            await store.put("a", "1")
            await store.put("b", "2")
            await store.put("c", "3")

            iterator = store.keys()
            assert await iterator.all() == ["a", "b", "c"]
            assert iterator.pages_fetched == 2

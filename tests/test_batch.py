"""
Tests for atomic batches and chained batches.
"""

import sqlite3

import pytest

from pglevel.models.batch_operation import BatchOperation
from pglevel.models.exceptions import BatchWrittenError, NotFoundError
from pglevel.store.store import Store


class TestBatch:
    """Tests for Store.batch."""

    async def test_batch_put_and_delete(self, store):
        """Test a mixed batch applied in order."""
        await store.put("stale", "x")

        await store.batch(
            [
                BatchOperation.put("key1", "value1"),
                BatchOperation.put("key2", "value2"),
                BatchOperation.delete("stale"),
            ]
        )

        assert await store.get("key1") == "value1"
        assert await store.get("key2") == "value2"
        with pytest.raises(NotFoundError):
            await store.get("stale")

    async def test_batch_accepts_mappings(self, store):
        """Test batch operations given as plain dicts."""
        await store.batch(
            [
                {"type": "put", "key": "a", "value": "1"},
                {"type": "put", "key": "b", "value": "2"},
                {"type": "del", "key": "a"},
            ]
        )

        assert await store.get_many(["a", "b"]) == [None, "2"]

    async def test_later_operations_win(self, store, row_count):
        """Test that later operations on the same key override earlier ones."""
        await store.batch(
            [
                BatchOperation.put("key", "first"),
                BatchOperation.put("key", "second"),
                BatchOperation.delete("gone"),
                BatchOperation.put("gone", "back"),
            ]
        )

        assert await store.get("key") == "second"
        assert await row_count(store, "key") == 1
        assert await store.get("gone") == "back"

    async def test_empty_batch_is_noop(self, flaky_store, flaky_pool):
        """Test that an empty batch makes no round trip."""
        flaky_pool.statements.clear()
        await flaky_store.batch([])
        assert flaky_pool.statements == []

    async def test_failed_batch_leaves_no_partial_writes(self, flaky_store, flaky_pool):
        """Test rollback when the third operation fails."""
        flaky_pool.fail_on = lambda query, params: query.startswith("DELETE")

        with pytest.raises(sqlite3.OperationalError, match="injected failure"):
            await flaky_store.batch(
                [
                    BatchOperation.put("a", "1"),
                    BatchOperation.put("b", "2"),
                    BatchOperation.delete("a"),
                ]
            )

        flaky_pool.fail_on = lambda query, params: False
        assert await flaky_store.get_many(["a", "b"]) == [None, None]

    async def test_failed_batch_preserves_existing_values(self, flaky_store, flaky_pool):
        """Test that an aborted batch does not clobber earlier data."""
        await flaky_store.put("a", "original")
        flaky_pool.fail_on = lambda query, params: "bad" in params

        with pytest.raises(sqlite3.OperationalError):
            await flaky_store.batch(
                [
                    BatchOperation.put("a", "changed"),
                    BatchOperation.put("bad", "x"),
                ]
            )

        flaky_pool.fail_on = lambda query, params: False
        assert await flaky_store.get("a") == "original"
        with pytest.raises(NotFoundError):
            await flaky_store.get("bad")

    async def test_connection_released_after_failure(self, make_flaky_pool):
        """Test that a failing batch does not leak its connection."""
        flaky = make_flaky_pool(max_size=1, acquire_timeout=1.0)
        async with Store(flaky) as s:
            flaky.fail_on = lambda query, params: "boom" in params
            for _ in range(3):
                with pytest.raises(sqlite3.OperationalError):
                    await s.batch([BatchOperation.put("boom", "x")])

            flaky.fail_on = lambda query, params: False
            await s.put("after", "ok")
            assert await s.get("after") == "ok"

    async def test_rollback_failure_keeps_original_error(self, flaky_store, flaky_pool, caplog):
        """Test that a failing rollback does not mask the batch error."""
        flaky_pool.fail_on = lambda query, params: query.startswith("DELETE") or query == "ROLLBACK"

        with pytest.raises(sqlite3.OperationalError, match="injected failure: DELETE"):
            await flaky_store.batch([BatchOperation.put("a", "1"), BatchOperation.delete("a")])

        assert "Rollback of batch" in caplog.text
        flaky_pool.fail_on = lambda query, params: False
        assert await flaky_store.get_many(["a"]) == [None]

    async def test_invalid_operation_rejected_before_io(self, flaky_store, flaky_pool):
        """Test that validation errors happen before any statement runs."""
        flaky_pool.statements.clear()

        with pytest.raises(ValueError):
            await flaky_store.batch([{"type": "merge", "key": "a", "value": "1"}])
        with pytest.raises(TypeError):
            await flaky_store.batch([{"type": "put", "key": "a"}])
        with pytest.raises(TypeError):
            await flaky_store.batch([("put", "a", "1")])

        assert flaky_pool.statements == []


class TestChainedBatch:
    """Tests for the chained batch builder."""

    async def test_chained_write(self, store):
        """Test building and writing a chained batch."""
        batch = store.chained_batch().put("a", "1").put("b", "2").delete("a")
        assert len(batch) == 3

        await batch.write()

        assert await store.get_many(["a", "b"]) == [None, "2"]

    async def test_clear_drops_queued_operations(self, store):
        """Test that clear() empties the builder."""
        batch = store.chained_batch().put("a", "1")
        batch.clear()
        assert len(batch) == 0

        await batch.write()
        assert await store.has("a") is False

    async def test_write_twice_raises(self, store):
        """Test that a written batch is spent."""
        batch = store.chained_batch().put("a", "1")
        await batch.write()

        with pytest.raises(BatchWrittenError):
            await batch.write()
        with pytest.raises(BatchWrittenError):
            batch.put("b", "2")

    async def test_context_manager_writes_on_exit(self, store):
        """Test that the async context manager writes on clean exit."""
        async with store.chained_batch() as batch:
            batch.put("a", "1")
            batch.put("b", "2")

        assert await store.get_many(["a", "b"]) == ["1", "2"]

    async def test_context_manager_skips_write_on_error(self, store):
        """Test that an exception inside the block discards the batch."""
        with pytest.raises(RuntimeError):
            async with store.chained_batch() as batch:
                batch.put("a", "1")
                raise RuntimeError("abort")

        assert await store.has("a") is False

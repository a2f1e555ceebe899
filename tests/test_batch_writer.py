"""
Tests for chunked batch writes.
"""

import threading

import pytest

from services.database.memory_store import MemoryDocumentStore, MemoryWriteBatch
from services.database.store import PartialCommitError, TransientStoreError, StoreError
from services.reseed.batch_writer import BatchWriter
from services.reseed.errors import WriteError, PipelineCancelled
from services.reseed.retry_handler import RetryHandler, RetryConfig


def items(count, prefix='p'):
    return [(f'{prefix}{i}', {'n': i}) for i in range(count)]


class TestChunking:

    def test_250_records_commit_in_three_batches(self, store):
        result = BatchWriter(store, chunk_size=100).write('products', items(250))
        assert store.commit_count == 3
        assert result.processed == 250
        assert result.chunks_committed == 3
        assert result.ok
        assert store.count('products') == 250

    def test_second_commit_failure_stops_the_write(self, flaky_store_factory):
        store = flaky_store_factory(fail_on={2})
        result = BatchWriter(store, chunk_size=100).write('products', items(250))

        assert store.commit_attempts == 2
        assert result.processed == 100
        assert result.chunks_committed == 1
        assert result.failed_chunk == 1
        assert not result.ok
        assert store.count('products') == 100

        with pytest.raises(WriteError) as exc_info:
            result.raise_for_error()
        assert exc_info.value.processed == 100
        assert exc_info.value.chunk_index == 1

    def test_empty_write(self, store):
        result = BatchWriter(store).write('products', [])
        assert result.ok
        assert store.commit_count == 0

    def test_progress_callback(self, store):
        seen = []
        writer = BatchWriter(store, chunk_size=2, progress_callback=lambda *a: seen.append(a))
        writer.write('products', items(5), label='file.json')
        assert seen == [('file.json', 2, 5), ('file.json', 4, 5), ('file.json', 5, 5)]

    @pytest.mark.parametrize("size", [0, 501])
    def test_chunk_size_bounds(self, store, size):
        with pytest.raises(ValueError):
            BatchWriter(store, chunk_size=size)


class TestRetry:

    def test_transient_failure_is_retried(self, flaky_store_factory):
        store = flaky_store_factory(fail_on={2}, error_factory=lambda: TransientStoreError("busy"))
        retry = RetryHandler(RetryConfig(max_attempts=3), sleep=lambda s: None)
        result = BatchWriter(store, chunk_size=100, retry_handler=retry).write('products', items(250))

        assert result.ok
        assert result.processed == 250
        assert store.commit_attempts == 4

    def test_permanent_failure_is_not_retried(self, flaky_store_factory):
        store = flaky_store_factory(fail_on={1})
        retry = RetryHandler(RetryConfig(max_attempts=3), sleep=lambda s: None)
        result = BatchWriter(store, retry_handler=retry).write('products', items(10))

        assert store.commit_attempts == 1
        assert isinstance(result.error, StoreError)


class NonAtomicBatch(MemoryWriteBatch):
    atomic = False

    def _commit(self):
        applied = 0
        for op in self.ops:
            if op.doc_id == 'p3':
                raise PartialCommitError(applied, StoreError("bad document"))
            self.store._apply([op])
            applied += 1
        return applied


class NonAtomicStore(MemoryDocumentStore):
    def batch(self):
        return NonAtomicBatch(self)


class TestPartialCommit:

    def test_partial_progress_is_recorded(self):
        store = NonAtomicStore()
        result = BatchWriter(store, chunk_size=5).write('products', items(10))

        assert result.processed == 3
        assert result.partial_writes == 3
        assert result.failed_chunk == 0
        assert store.count('products') == 3


class TestCancellation:

    def test_cancel_between_chunks(self, store):
        cancel = threading.Event()

        def on_progress(label, processed, total):
            if processed >= 100:
                cancel.set()

        writer = BatchWriter(store, chunk_size=100, cancel_event=cancel, progress_callback=on_progress)
        result = writer.write('products', items(250))

        assert result.cancelled
        assert result.processed == 100
        with pytest.raises(PipelineCancelled):
            result.raise_for_error()


class TestDeleteAll:

    def test_clears_in_chunks(self, store):
        for doc_id, data in items(7):
            store.set('products', doc_id, data)
        deleted = BatchWriter(store, chunk_size=3).delete_all('products')
        assert deleted == 7
        assert store.count('products') == 0
        assert store.commit_count == 3

    def test_empty_collection(self, store):
        assert BatchWriter(store).delete_all('products') == 0

    def test_failure_raises(self, flaky_store_factory):
        store = flaky_store_factory(fail_on={1})
        store.set('products', 'a', {})
        with pytest.raises(WriteError):
            BatchWriter(store).delete_all('products')

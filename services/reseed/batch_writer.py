"""
Batch Writer

Writes documents in bounded chunks, one store batch per chunk, committed
strictly one after another. The first failed chunk stops the write;
chunks already committed stay committed.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple, Dict, Any

from services.database.store import (
    DocumentStore,
    StoreError,
    PartialCommitError,
    MAX_BATCH_WRITES,
)
from .errors import WriteError, PipelineCancelled
from .rate_limiter import WriteRateLimiter
from .retry_handler import RetryHandler

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 100

COMMIT_ERRORS = (StoreError, ConnectionError, TimeoutError)


@dataclass
class WriteResult:
    """Outcome of one BatchWriter.write call"""
    collection: str
    label: str
    total: int
    processed: int = 0
    chunks_committed: int = 0
    partial_writes: int = 0
    failed_chunk: Optional[int] = None
    error: Optional[Exception] = None
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.cancelled

    def raise_for_error(self):
        """Raise PipelineCancelled or WriteError if the write did not finish."""
        if self.cancelled:
            raise PipelineCancelled(
                f"{self.label}: cancelled after {self.processed}/{self.total} writes"
            )
        if self.error is not None:
            raise WriteError(
                f"{self.label}: chunk {self.failed_chunk} failed after "
                f"{self.processed}/{self.total} writes: {self.error}",
                processed=self.processed,
                chunk_index=self.failed_chunk,
            ) from self.error


class BatchWriter:
    """
    Chunked document writer.

    Args:
        store: Target document store
        chunk_size: Writes per batch (1..500)
        retry_handler: Retries transient failures of atomic batches
        rate_limiter: Paces commits
        cancel_event: Checked before every chunk
        progress_callback: Called as (label, processed, total) after each chunk
    """

    def __init__(
        self,
        store: DocumentStore,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        retry_handler: Optional[RetryHandler] = None,
        rate_limiter: Optional[WriteRateLimiter] = None,
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[Callable[[str, int, int], None]] = None,
    ):
        if not 1 <= chunk_size <= MAX_BATCH_WRITES:
            raise ValueError(f"chunk_size must be between 1 and {MAX_BATCH_WRITES}")
        self.store = store
        self.chunk_size = chunk_size
        self.retry_handler = retry_handler
        self.rate_limiter = rate_limiter
        self.cancel_event = cancel_event or threading.Event()
        self.progress_callback = progress_callback

    def _chunks(self, items: Sequence) -> List[Sequence]:
        return [items[i:i + self.chunk_size] for i in range(0, len(items), self.chunk_size)]

    def _commit(self, batch) -> int:
        if self.rate_limiter:
            self.rate_limiter.acquire(len(batch))
        if batch.atomic and self.retry_handler:
            return self.retry_handler.execute(batch.commit)
        return batch.commit()

    def write(
        self,
        collection: str,
        items: Sequence[Tuple[str, Dict[str, Any]]],
        label: Optional[str] = None,
    ) -> WriteResult:
        """
        Upsert ``(doc_id, data)`` pairs into ``collection``.

        Never raises for commit failures; inspect the returned WriteResult
        (or call ``raise_for_error``).
        """
        label = label or collection
        items = list(items)
        total = len(items)
        result = WriteResult(collection=collection, label=label, total=total)

        for index, chunk in enumerate(self._chunks(items)):
            if self.cancel_event.is_set():
                logger.warning(f"[{label}] Cancelled before chunk {index} ({result.processed}/{total})")
                result.cancelled = True
                break

            batch = self.store.batch()
            for doc_id, data in chunk:
                batch.set(collection, doc_id, data)

            try:
                self._commit(batch)
            except PartialCommitError as e:
                result.processed += e.applied
                result.partial_writes += e.applied
                result.failed_chunk = index
                result.error = e
                logger.error(f"[{label}] Chunk {index} partially applied ({e.applied}/{len(chunk)}): {e.cause}")
                break
            except COMMIT_ERRORS as e:
                result.failed_chunk = index
                result.error = e
                logger.error(f"[{label}] Chunk {index} failed: {e}")
                break

            result.processed += len(chunk)
            result.chunks_committed += 1
            pct = result.processed / total * 100
            logger.info(f"[{label}] {result.processed}/{total} ({pct:.0f}%)")
            if self.progress_callback:
                self.progress_callback(label, result.processed, total)

        if result.failed_chunk is not None:
            skipped = len(self._chunks(items)) - result.failed_chunk - 1
            if skipped:
                logger.warning(f"[{label}] Skipped {skipped} remaining chunks")

        return result

    def delete_all(self, collection: str) -> int:
        """
        Delete every document in a collection, chunk by chunk.

        Raises:
            WriteError: a delete batch failed
            PipelineCancelled: the cancel event was set
        """
        doc_ids = [doc.id for doc in self.store.get(collection)]
        if not doc_ids:
            logger.info(f"[{collection}] Nothing to clear")
            return 0

        deleted = 0
        for index, chunk in enumerate(self._chunks(doc_ids)):
            if self.cancel_event.is_set():
                raise PipelineCancelled(f"Clearing {collection} cancelled after {deleted} deletes")

            batch = self.store.batch()
            for doc_id in chunk:
                batch.delete(collection, doc_id)
            try:
                self._commit(batch)
            except PartialCommitError as e:
                deleted += e.applied
                raise WriteError(
                    f"Clearing {collection}: chunk {index} failed: {e.cause}",
                    processed=deleted, chunk_index=index,
                ) from e
            except COMMIT_ERRORS as e:
                raise WriteError(
                    f"Clearing {collection}: chunk {index} failed: {e}",
                    processed=deleted, chunk_index=index,
                ) from e
            deleted += len(chunk)

        logger.info(f"[{collection}] Cleared {deleted} documents")
        return deleted

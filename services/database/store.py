"""
Document Store Interface

Minimal document-store contract the reseed pipeline runs against:
collection scans, equality queries, upserts by id, store-generated ids and
bounded write batches. Backends live in memory_store, sqlite_store and
firestore_store.
"""

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Iterator

logger = logging.getLogger(__name__)

# Hard cap on writes in one batch (Firestore limit)
MAX_BATCH_WRITES = 500


class StoreError(Exception):
    """Base error for document store failures"""


class TransientStoreError(StoreError):
    """Failure that may succeed on retry (timeouts, contention)"""


class DocumentNotFound(StoreError):
    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"Document not found: {collection}/{doc_id}")


class PartialCommitError(StoreError):
    """
    Raised by non-atomic batches when a commit stops part-way.
    ``applied`` writes landed before the failure.
    """
    def __init__(self, applied: int, cause: Exception):
        self.applied = applied
        self.cause = cause
        super().__init__(f"Batch commit stopped after {applied} writes: {cause}")


class RunLockError(StoreError):
    """Raised when a second pipeline run tries to use the same store"""


@dataclass
class Document:
    """A stored document: its collection, id and data."""
    collection: str
    id: str
    data: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.data)


@dataclass
class WriteOp:
    kind: str  # "set" | "delete"
    collection: str
    doc_id: str
    data: Optional[Dict[str, Any]] = None


class WriteBatch(ABC):
    """
    Bounded group of writes committed together.

    Atomic batches apply all writes or none. Non-atomic batches apply writes
    in order and raise PartialCommitError if they stop part-way.
    """

    atomic: bool = True

    def __init__(self, max_writes: int = MAX_BATCH_WRITES):
        self.max_writes = max_writes
        self.ops: List[WriteOp] = []
        self.committed = False

    def _add(self, op: WriteOp):
        if self.committed:
            raise StoreError("Batch already committed")
        if len(self.ops) >= self.max_writes:
            raise StoreError(f"Batch is full ({self.max_writes} writes)")
        self.ops.append(op)

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> "WriteBatch":
        self._add(WriteOp("set", collection, str(doc_id), dict(data)))
        return self

    def delete(self, collection: str, doc_id: str) -> "WriteBatch":
        self._add(WriteOp("delete", collection, str(doc_id)))
        return self

    def __len__(self) -> int:
        return len(self.ops)

    def commit(self) -> int:
        """Apply all queued writes. Returns the number of writes applied."""
        if self.committed:
            raise StoreError("Batch already committed")
        applied = self._commit()
        self.committed = True
        return applied

    @abstractmethod
    def _commit(self) -> int:
        pass


class DocumentStore(ABC):
    """Base class for document store backends"""

    def __init__(self):
        self._run_lock = threading.Lock()

    @abstractmethod
    def get(self, collection: str) -> List[Document]:
        """Full scan of a collection"""
        pass

    @abstractmethod
    def where(
        self,
        collection: str,
        field_name: str,
        value: Any,
        limit: Optional[int] = None,
    ) -> List[Document]:
        """Documents whose field equals value, capped at limit"""
        pass

    @abstractmethod
    def get_document(self, collection: str, doc_id: str) -> Optional[Document]:
        pass

    @abstractmethod
    def set(self, collection: str, doc_id: str, data: Dict[str, Any]):
        """Create or replace a document by id"""
        pass

    @abstractmethod
    def update(self, collection: str, doc_id: str, data: Dict[str, Any]):
        """Merge fields into an existing document"""
        pass

    @abstractmethod
    def add(self, collection: str, data: Dict[str, Any]) -> str:
        """Create a document with a store-generated id, return the id"""
        pass

    @abstractmethod
    def batch(self) -> WriteBatch:
        pass

    def count(self, collection: str) -> int:
        return len(self.get(collection))

    def close(self):
        """Release backend resources"""
        pass

    @contextmanager
    def run_lock(self) -> Iterator[None]:
        """
        Hold the store for one pipeline run.

        Raises:
            RunLockError: another run already holds this store
        """
        if not self._run_lock.acquire(blocking=False):
            raise RunLockError("Another reseed run is already using this store")
        try:
            yield
        finally:
            self._run_lock.release()

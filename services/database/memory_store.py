"""
In-Memory Document Store

Process-local backend used by tests and dry runs. Batches are atomic:
writes are staged and applied together under the store lock.
"""

import copy
import uuid
from threading import Lock
from typing import Optional, List, Dict, Any

from .store import (
    DocumentStore,
    Document,
    WriteBatch,
    DocumentNotFound,
    MAX_BATCH_WRITES,
)


class MemoryWriteBatch(WriteBatch):
    def __init__(self, store: "MemoryDocumentStore", max_writes: int = MAX_BATCH_WRITES):
        super().__init__(max_writes)
        self.store = store

    def _commit(self) -> int:
        return self.store._apply(self.ops)


class MemoryDocumentStore(DocumentStore):
    """
    Dict-backed store: collection -> {doc_id: data}.

    Data is deep-copied on the way in and out so callers cannot mutate
    stored documents by accident.
    """

    def __init__(self):
        super().__init__()
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.commit_count = 0
        self._lock = Lock()

    def _collection(self, name: str) -> Dict[str, Dict[str, Any]]:
        return self.collections.setdefault(name, {})

    def get(self, collection: str) -> List[Document]:
        with self._lock:
            return [
                Document(collection, doc_id, copy.deepcopy(data))
                for doc_id, data in self._collection(collection).items()
            ]

    def where(
        self,
        collection: str,
        field_name: str,
        value: Any,
        limit: Optional[int] = None,
    ) -> List[Document]:
        results = []
        with self._lock:
            for doc_id, data in self._collection(collection).items():
                if field_name in data and data[field_name] == value:
                    results.append(Document(collection, doc_id, copy.deepcopy(data)))
                    if limit is not None and len(results) >= limit:
                        break
        return results

    def get_document(self, collection: str, doc_id: str) -> Optional[Document]:
        with self._lock:
            data = self._collection(collection).get(str(doc_id))
            if data is None:
                return None
            return Document(collection, str(doc_id), copy.deepcopy(data))

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]):
        with self._lock:
            self._collection(collection)[str(doc_id)] = copy.deepcopy(data)

    def update(self, collection: str, doc_id: str, data: Dict[str, Any]):
        with self._lock:
            docs = self._collection(collection)
            if str(doc_id) not in docs:
                raise DocumentNotFound(collection, str(doc_id))
            docs[str(doc_id)].update(copy.deepcopy(data))

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex[:20]
        self.set(collection, doc_id, data)
        return doc_id

    def batch(self) -> MemoryWriteBatch:
        return MemoryWriteBatch(self)

    def _apply(self, ops) -> int:
        with self._lock:
            for op in ops:
                docs = self._collection(op.collection)
                if op.kind == "set":
                    docs[op.doc_id] = copy.deepcopy(op.data)
                else:
                    docs.pop(op.doc_id, None)
            self.commit_count += 1
        return len(ops)

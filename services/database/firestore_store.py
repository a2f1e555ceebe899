"""
Firestore Document Store

Adapter over a google-cloud-firestore client. The client is created lazily
so the rest of the pipeline (and its tests) never needs Firestore
credentials; pass an existing client to reuse one.
"""

import logging
from contextlib import contextmanager
from typing import Optional, List, Dict, Any

from .store import (
    DocumentStore,
    Document,
    WriteBatch,
    StoreError,
    TransientStoreError,
    DocumentNotFound,
    MAX_BATCH_WRITES,
)

logger = logging.getLogger(__name__)


@contextmanager
def _translate_errors():
    """Map google-api-core errors onto the store error hierarchy."""
    from google.api_core import exceptions as gexc

    try:
        yield
    except (gexc.ServiceUnavailable, gexc.DeadlineExceeded, gexc.Aborted,
            gexc.TooManyRequests) as e:
        raise TransientStoreError(str(e)) from e
    except gexc.NotFound as e:
        raise StoreError(str(e)) from e
    except gexc.GoogleAPICallError as e:
        raise StoreError(str(e)) from e
    except ValueError as e:
        # the client rejects malformed paths (e.g. ids containing '/') locally
        raise StoreError(f"Invalid document path: {e}") from e


class FirestoreWriteBatch(WriteBatch):
    def __init__(self, store: "FirestoreDocumentStore", max_writes: int = MAX_BATCH_WRITES):
        super().__init__(max_writes)
        self.store = store

    def _commit(self) -> int:
        client = self.store.client
        with _translate_errors():
            batch = client.batch()
            for op in self.ops:
                ref = client.collection(op.collection).document(op.doc_id)
                if op.kind == "set":
                    batch.set(ref, op.data)
                else:
                    batch.delete(ref)
            batch.commit()
        return len(self.ops)


class FirestoreDocumentStore(DocumentStore):
    """
    Document store backed by Cloud Firestore.

    Args:
        client: Existing ``google.cloud.firestore.Client`` (optional)
        project: GCP project id used when creating a client
    """

    def __init__(self, client=None, project: Optional[str] = None):
        super().__init__()
        self._client = client
        self.project = project

    @property
    def client(self):
        if self._client is None:
            from google.cloud import firestore
            self._client = firestore.Client(project=self.project)
            logger.info(f"Firestore client initialised (project={self._client.project})")
        return self._client

    @staticmethod
    def _to_document(collection: str, snapshot) -> Document:
        return Document(collection, snapshot.id, snapshot.to_dict() or {})

    def get(self, collection: str) -> List[Document]:
        with _translate_errors():
            return [
                self._to_document(collection, snap)
                for snap in self.client.collection(collection).stream()
            ]

    def where(
        self,
        collection: str,
        field_name: str,
        value: Any,
        limit: Optional[int] = None,
    ) -> List[Document]:
        from google.cloud.firestore_v1.base_query import FieldFilter

        with _translate_errors():
            query = self.client.collection(collection).where(
                filter=FieldFilter(field_name, "==", value)
            )
            if limit is not None:
                query = query.limit(limit)
            return [self._to_document(collection, snap) for snap in query.stream()]

    def get_document(self, collection: str, doc_id: str) -> Optional[Document]:
        with _translate_errors():
            snap = self.client.collection(collection).document(str(doc_id)).get()
        if not snap.exists:
            return None
        return self._to_document(collection, snap)

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]):
        with _translate_errors():
            self.client.collection(collection).document(str(doc_id)).set(data)

    def update(self, collection: str, doc_id: str, data: Dict[str, Any]):
        from google.api_core import exceptions as gexc

        try:
            with _translate_errors():
                self.client.collection(collection).document(str(doc_id)).update(data)
        except StoreError as e:
            if isinstance(e.__cause__, gexc.NotFound):
                raise DocumentNotFound(collection, str(doc_id)) from e
            raise

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        with _translate_errors():
            _, ref = self.client.collection(collection).add(data)
        return ref.id

    def batch(self) -> FirestoreWriteBatch:
        return FirestoreWriteBatch(self)

    def close(self):
        if self._client is not None:
            self._client.close()
            self._client = None

# Document store module
from .store import (
    DocumentStore,
    Document,
    WriteBatch,
    StoreError,
    TransientStoreError,
    PartialCommitError,
    DocumentNotFound,
    RunLockError,
    MAX_BATCH_WRITES,
)
from .memory_store import MemoryDocumentStore
from .sqlite_store import SqliteDocumentStore
from .firestore_store import FirestoreDocumentStore
from .monitor import CatalogVerifier, VerificationReport
from .models import Category, Vendor, AdminUser

__all__ = [
    'DocumentStore', 'Document', 'WriteBatch', 'MAX_BATCH_WRITES',
    'StoreError', 'TransientStoreError', 'PartialCommitError',
    'DocumentNotFound', 'RunLockError',
    'MemoryDocumentStore', 'SqliteDocumentStore', 'FirestoreDocumentStore',
    'CatalogVerifier', 'VerificationReport',
    'Category', 'Vendor', 'AdminUser',
]

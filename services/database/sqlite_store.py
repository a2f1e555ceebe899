"""
SQLite Document Store

Local document backend: one ``documents`` table holding JSON bodies keyed by
(collection, id). Each write batch commits in a single transaction.
"""

import json
import logging
import re
import sqlite3
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, date, timezone
from pathlib import Path
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

# Default paths
DEFAULT_DB_PATH = Path(__file__).parent.parent.parent / "data" / "catalog.db"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS documents (
    collection TEXT NOT NULL,
    id TEXT NOT NULL,
    data TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    PRIMARY KEY (collection, id)
);
CREATE INDEX IF NOT EXISTS idx_documents_collection ON documents (collection);
"""

_FIELD_NAME = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


def _encode_value(value: Any) -> Any:
    """JSON fallback for values the json module cannot serialize."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, tuple)):
        return list(value)
    raise TypeError(f"Cannot store value of type {type(value).__name__}")


def _dumps(data: Dict[str, Any]) -> str:
    return json.dumps(data, ensure_ascii=False, default=_encode_value)


def _store_error(e: sqlite3.Error) -> StoreError:
    if isinstance(e, sqlite3.OperationalError) and 'locked' in str(e).lower():
        return TransientStoreError(str(e))
    return StoreError(str(e))


class SqliteWriteBatch(WriteBatch):
    def __init__(self, store: "SqliteDocumentStore", max_writes: int = MAX_BATCH_WRITES):
        super().__init__(max_writes)
        self.store = store

    def _commit(self) -> int:
        now = datetime.now(timezone.utc).isoformat()
        try:
            with self.store.transaction() as conn:
                for op in self.ops:
                    if op.kind == "set":
                        conn.execute("""
                            INSERT INTO documents (collection, id, data, created_at, updated_at)
                            VALUES (?, ?, ?, ?, ?)
                            ON CONFLICT (collection, id) DO UPDATE SET
                                data = excluded.data,
                                updated_at = excluded.updated_at
                        """, (op.collection, op.doc_id, _dumps(op.data), now, now))
                    else:
                        conn.execute(
                            "DELETE FROM documents WHERE collection = ? AND id = ?",
                            (op.collection, op.doc_id)
                        )
        except sqlite3.Error as e:
            raise _store_error(e) from e
        return len(self.ops)


class SqliteDocumentStore(DocumentStore):
    """
    SQLite-backed document store.

    Values come back as plain JSON types: datetimes are stored as ISO-8601
    strings.
    """

    def __init__(self, db_path: Optional[str] = None):
        super().__init__()
        self.db_path = Path(db_path) if db_path else DEFAULT_DB_PATH
        if str(self.db_path) != ':memory:':
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    def connect(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,  # Resolver lookups run on worker threads
                timeout=30.0
            )
            self._connection.row_factory = sqlite3.Row
            if str(self.db_path) != ':memory:':
                self._connection.execute("PRAGMA journal_mode = WAL")
            self._connection.executescript(SCHEMA_SQL)
            self._connection.commit()
            logger.debug(f"Document store opened: {self.db_path}")
        return self._connection

    def close(self):
        """Close database connection."""
        if self._connection:
            self._connection.close()
            self._connection = None

    @contextmanager
    def transaction(self):
        """Context manager for transactions."""
        with self._lock:
            conn = self.connect()
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    def _fetchall(self, query: str, params: tuple = ()) -> List[sqlite3.Row]:
        try:
            with self._lock:
                return self.connect().execute(query, params).fetchall()
        except sqlite3.Error as e:
            raise _store_error(e) from e

    @staticmethod
    def _to_document(row: sqlite3.Row) -> Document:
        return Document(row['collection'], row['id'], json.loads(row['data']))

    # ========================================
    # Reads
    # ========================================

    def get(self, collection: str) -> List[Document]:
        rows = self._fetchall(
            "SELECT collection, id, data FROM documents WHERE collection = ? ORDER BY rowid",
            (collection,)
        )
        return [self._to_document(row) for row in rows]

    def where(
        self,
        collection: str,
        field_name: str,
        value: Any,
        limit: Optional[int] = None,
    ) -> List[Document]:
        if not _FIELD_NAME.match(field_name):
            raise StoreError(f"Unsupported field name: {field_name!r}")

        path = f"$.{field_name}"
        if value is None:
            query = ("SELECT collection, id, data FROM documents "
                     "WHERE collection = ? AND json_type(data, ?) = 'null'")
            params: tuple = (collection, path)
        else:
            if isinstance(value, (datetime, date)):
                value = value.isoformat()
            query = ("SELECT collection, id, data FROM documents "
                     "WHERE collection = ? AND json_extract(data, ?) = ?")
            params = (collection, path, value)

        query += " ORDER BY rowid"
        if limit is not None:
            query += " LIMIT ?"
            params = params + (int(limit),)

        return [self._to_document(row) for row in self._fetchall(query, params)]

    def get_document(self, collection: str, doc_id: str) -> Optional[Document]:
        rows = self._fetchall(
            "SELECT collection, id, data FROM documents WHERE collection = ? AND id = ?",
            (collection, str(doc_id))
        )
        return self._to_document(rows[0]) if rows else None

    def count(self, collection: str) -> int:
        rows = self._fetchall(
            "SELECT COUNT(*) AS cnt FROM documents WHERE collection = ?",
            (collection,)
        )
        return rows[0]['cnt'] if rows else 0

    # ========================================
    # Writes
    # ========================================

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]):
        batch = self.batch()
        batch.set(collection, doc_id, data)
        batch.commit()

    def update(self, collection: str, doc_id: str, data: Dict[str, Any]):
        existing = self.get_document(collection, doc_id)
        if existing is None:
            raise DocumentNotFound(collection, str(doc_id))
        merged = existing.to_dict()
        merged.update(data)
        self.set(collection, doc_id, merged)

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex[:20]
        self.set(collection, doc_id, data)
        return doc_id

    def batch(self) -> SqliteWriteBatch:
        return SqliteWriteBatch(self)

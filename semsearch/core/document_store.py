"""
Document store: canonical owner of documents and their embedding vectors.

The vector index is derived from this store and can always be rebuilt from
all_pairs(). Only documents with an attached vector are ever exposed there.
"""

from contextlib import contextmanager
import sqlite3
from typing import Iterator, Optional, Tuple

import numpy as np

from .config import EMBED_DIM
from .db import connect, health_check, init_db
from .errors import DimensionMismatch, IngestError, UnknownId
from ..util.logging import logger
from ..vector.types import Document, EmbeddingVector

_VECTOR_DTYPE = np.dtype("<f4")


def _encode_vector(vector: EmbeddingVector) -> bytes:
    return np.asarray(vector.values, dtype=_VECTOR_DTYPE).tobytes()


def _decode_vector(doc_id: int, blob: bytes) -> EmbeddingVector:
    return EmbeddingVector(owner_id=doc_id, values=np.frombuffer(blob, dtype=_VECTOR_DTYPE).copy())


class DocumentStore:
    """SQLite-backed store of (document, embedding) pairs keyed by document id."""

    def __init__(self, dimension: int = None, db_path: str = None):
        self.dimension = dimension or EMBED_DIM
        self._conn = connect(db_path)
        init_db(self._conn)

        # Ids inserted in the open unit of work that still lack a vector
        self._pending: Optional[set] = None

    @contextmanager
    def unit_of_work(self):
        """Commit the enclosed inserts only if every one has its vector attached.

        Any exception, or a document left without a vector, rolls the whole
        unit back so no dangling id survives.
        """
        if self._pending is not None:
            raise IngestError("Nested units of work are not supported")

        self._conn.execute("BEGIN")
        self._pending = set()
        try:
            yield self
            if self._pending:
                raise IngestError(f"Documents without vectors at commit: {sorted(self._pending)}")
        except BaseException:
            if self._conn.in_transaction:
                self._conn.execute("ROLLBACK")
            raise
        else:
            self._conn.execute("COMMIT")
        finally:
            self._pending = None

    def insert(self, content: str) -> int:
        """Store content under the next sequential id and return that id."""
        cursor = self._conn.execute("INSERT INTO documents (content) VALUES (?)", (content,))
        doc_id = cursor.lastrowid
        if self._pending is not None:
            self._pending.add(doc_id)
        return doc_id

    def attach_vector(self, doc_id: int, vector: EmbeddingVector) -> None:
        """Associate an embedding with a previously inserted document."""
        if not self._exists(doc_id):
            raise UnknownId(doc_id)
        if len(vector) != self.dimension:
            raise DimensionMismatch(self.dimension, len(vector))

        try:
            self._conn.execute(
                "INSERT INTO embeddings (doc_id, vec) VALUES (?, ?)",
                (doc_id, _encode_vector(vector))
            )
        except sqlite3.IntegrityError as e:
            raise IngestError(f"Document {doc_id} already has a vector attached") from e

        if self._pending is not None:
            self._pending.discard(doc_id)

    def get_content(self, doc_id: int) -> str:
        """Return document content for result joining."""
        row = self._conn.execute("SELECT content FROM documents WHERE id = ?", (doc_id,)).fetchone()
        if row is None:
            raise UnknownId(doc_id)
        return row[0]

    def get_document(self, doc_id: int) -> Document:
        return Document(id=doc_id, content=self.get_content(doc_id))

    def all_pairs(self) -> Iterator[Tuple[int, EmbeddingVector]]:
        """Yield (id, vector) for every document with a vector, ascending id.

        Each call starts a fresh pass over the store.
        """
        cursor = self._conn.execute(
            "SELECT e.doc_id, e.vec FROM embeddings e JOIN documents d ON e.doc_id = d.id ORDER BY e.doc_id"
        )
        for doc_id, blob in cursor:
            yield doc_id, _decode_vector(doc_id, blob)

    def count(self) -> int:
        """Number of documents visible to search (those with a vector)."""
        row = self._conn.execute(
            "SELECT COUNT(*) FROM embeddings e JOIN documents d ON e.doc_id = d.id"
        ).fetchone()
        return row[0]

    def reset(self) -> None:
        """Discard every document and vector and restart the id sequence."""
        if self._conn.in_transaction:
            self._conn.execute("ROLLBACK")
        self._conn.execute("DELETE FROM embeddings")
        self._conn.execute("DELETE FROM documents")
        self._conn.execute("DELETE FROM sqlite_sequence WHERE name = 'documents'")
        logger.log_operation("store.reset", "success")

    def health_check(self) -> bool:
        return health_check(self._conn)

    def close(self) -> None:
        self._conn.close()

    def _exists(self, doc_id: int) -> bool:
        row = self._conn.execute("SELECT 1 FROM documents WHERE id = ?", (doc_id,)).fetchone()
        return row is not None

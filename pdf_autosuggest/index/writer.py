"""
Single-writer access to the index.

Documents added to a writer are buffered in memory and become visible to
new snapshots only when commit() publishes them as a new generation. A
lock marker in the index directory keeps a second writer out.
"""

import os
import sqlite3
import time
from typing import List

from ..core import get_logger, IndexWriteError, InvalidDocumentError, LockContentionError
from .document import Document
from .schema import VALUE_SEPARATOR, insert_document_sql

logger = get_logger(__name__)


class IndexWriter:
    """
    Buffers documents and commits them atomically.

    Obtain one through Index.writer(). Usable as a context manager: leaving
    the block on an exception discards uncommitted documents, and the lock
    is always released.
    """

    def __init__(self, index):
        self.index = index
        self._pending: List[Document] = []
        self._closed = False

        self._acquire_lock()

        try:
            self._conn = index.connect()
            self._conn.execute("PRAGMA journal_mode=WAL")
        except sqlite3.Error as e:
            self._release_lock()
            raise IndexWriteError(f"Failed to open index for writing: {e}")

        logger.debug(f"Writer opened on {index.directory}")

    def _acquire_lock(self) -> None:
        lock_path = self.index.lock_path

        try:
            fd = os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            try:
                holder = lock_path.read_text(encoding="utf-8").strip()
            except OSError:
                holder = ""
            raise LockContentionError(
                "Index is locked by another writer",
                lock_path=str(lock_path),
                details={"holder": holder}
            )

        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(f"pid={os.getpid()} since={int(time.time())}\n")

    def _release_lock(self) -> None:
        try:
            self.index.lock_path.unlink()
        except FileNotFoundError:
            logger.warning(f"Lock marker already removed: {self.index.lock_path}")

    @property
    def pending(self) -> int:
        """Number of buffered, uncommitted documents."""
        return len(self._pending)

    def _check_open(self) -> None:
        if self._closed:
            raise IndexWriteError("Writer is closed")

    def add_document(self, document: Document) -> int:
        """
        Buffer a document for the next commit.

        Returns:
            Number of buffered documents.

        Raises:
            InvalidDocumentError: If the document has no title or uses a
                field outside the schema.
        """
        self._check_open()

        unknown = [name for name in document.fields if not self.index.schema.has_field(name)]
        if unknown:
            raise InvalidDocumentError(
                f"Unknown field(s): {', '.join(unknown)}",
                {"fields": unknown}
            )

        if not any(value.strip() for value in document.get_all("title")):
            raise InvalidDocumentError("Document has no title")

        self._pending.append(document)
        return len(self._pending)

    def commit(self) -> int:
        """
        Publish all buffered documents as one new generation.

        A commit with nothing buffered changes nothing.

        Returns:
            The committed generation.

        Raises:
            IndexWriteError: If the transaction fails; buffered documents
                are kept so the caller may retry or roll back.
        """
        self._check_open()
        conn = self._conn

        try:
            if not self._pending:
                row = conn.execute(
                    "SELECT value FROM index_meta WHERE key = 'generation'"
                ).fetchone()
                return int(row["value"])

            conn.execute("BEGIN IMMEDIATE")

            row = conn.execute(
                "SELECT value FROM index_meta WHERE key = 'generation'"
            ).fetchone()
            generation = int(row["value"]) + 1

            field_names = self.index.schema.field_names
            conn.executemany(
                insert_document_sql(self.index.schema),
                [
                    tuple(VALUE_SEPARATOR.join(doc.get_all(name)) for name in field_names)
                    + (doc.to_json(), generation)
                    for doc in self._pending
                ]
            )

            conn.execute(
                "UPDATE index_meta SET value = ? WHERE key = 'generation'",
                (str(generation),)
            )
            conn.execute("COMMIT")

        except sqlite3.Error as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise IndexWriteError(
                f"Commit failed: {e}",
                {"pending": len(self._pending)}
            )

        logger.debug(f"Committed {len(self._pending)} document(s) as generation {generation}")
        self._pending.clear()

        return generation

    def rollback(self) -> int:
        """Discard buffered documents. Returns how many were dropped."""
        dropped = len(self._pending)
        self._pending.clear()
        return dropped

    def close(self) -> None:
        """Release the lock. Uncommitted documents are discarded."""
        if self._closed:
            return

        if self._pending:
            logger.warning(f"Closing writer with {len(self._pending)} uncommitted document(s)")
            self._pending.clear()

        self._conn.close()
        self._release_lock()
        self._closed = True

    def __enter__(self) -> "IndexWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback()
        self.close()

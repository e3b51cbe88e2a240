"""
Snapshot readers for the index.

A Searcher pins one committed generation by holding a read transaction
open; documents committed later stay invisible to it. The IndexReader
hands out the current Searcher and replaces it according to its reload
policy, closing superseded snapshots once nobody uses them.
"""

import sqlite3
import threading
import time
from contextlib import contextmanager
from enum import Enum
from typing import Generator, List, Optional

from ..core import get_logger, SearchError
from .document import Document

logger = get_logger(__name__)


class ReloadPolicy(str, Enum):
    """When an IndexReader picks up new commits."""
    MANUAL = "manual"
    ON_COMMIT_WITH_DELAY = "on_commit_with_delay"


class Searcher:
    """
    Immutable point-in-time view of the index.

    Shared by concurrent query handlers over a single connection, so their
    statements run one at a time: a handler waits while another handler's
    statement executes on the same snapshot.
    """

    def __init__(self, index):
        self.index = index
        self.schema = index.schema
        self._lock = threading.Lock()
        self._refs = 0
        self._retired = False
        self._closed = False

        self._conn = index.connect()

        try:
            self._conn.execute("BEGIN")
            row = self._conn.execute(
                "SELECT value FROM index_meta WHERE key = 'generation'"
            ).fetchone()
        except sqlite3.Error:
            self._conn.close()
            raise

        self.generation = int(row["value"])

    def execute(self, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        """
        Run a read-only statement against this snapshot.

        Raises:
            SearchError: If the snapshot has been closed.
            sqlite3.Error: Propagated for the caller to classify.
        """
        with self._lock:
            if self._closed:
                raise SearchError("Snapshot is closed")
            return self._conn.execute(sql, params).fetchall()

    def num_docs(self) -> int:
        rows = self.execute("SELECT COUNT(*) AS count FROM documents")
        return rows[0]["count"]

    def doc(self, doc_id: int) -> Optional[Document]:
        """Fetch the stored fields of a document."""
        rows = self.execute("SELECT stored FROM documents WHERE id = ?", (doc_id,))
        if not rows:
            return None
        return Document.from_json(rows[0]["stored"])

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            try:
                self._conn.execute("ROLLBACK")
            except sqlite3.Error as e:
                logger.debug(f"Ignoring rollback failure on snapshot close: {e}")
            self._conn.close()


class IndexReader:
    """
    Source of Searcher snapshots for one index.

    With ReloadPolicy.ON_COMMIT_WITH_DELAY the committed generation is
    checked at most once per ``reload_delay_ms`` when a searcher is
    acquired, so a new commit becomes visible after that delay. With
    ReloadPolicy.MANUAL only reload() moves the reader forward.
    """

    def __init__(
        self,
        index,
        reload_policy: ReloadPolicy = ReloadPolicy.ON_COMMIT_WITH_DELAY,
        reload_delay_ms: int = 500
    ):
        self.index = index
        self.reload_policy = ReloadPolicy(reload_policy)
        self.reload_delay = reload_delay_ms / 1000.0

        self._lock = threading.Lock()
        self._current = Searcher(index)
        self._last_check = time.monotonic()

    @property
    def generation(self) -> int:
        """Generation of the current snapshot."""
        return self._current.generation

    @contextmanager
    def searcher(self) -> Generator[Searcher, None, None]:
        """
        Acquire the current snapshot for the duration of a block.

        Yields:
            Searcher pinned to the generation current at acquisition.
        """
        with self._lock:
            if self.reload_policy == ReloadPolicy.ON_COMMIT_WITH_DELAY:
                self._maybe_reload()
            snapshot = self._current
            snapshot._refs += 1

        try:
            yield snapshot
        finally:
            with self._lock:
                snapshot._refs -= 1
                if snapshot._retired and snapshot._refs == 0:
                    snapshot.close()

    def reload(self) -> int:
        """
        Replace the current snapshot with one of the latest commit.

        Returns:
            The generation now visible.
        """
        with self._lock:
            self._swap()
            return self._current.generation

    def _maybe_reload(self) -> None:
        now = time.monotonic()
        if now - self._last_check < self.reload_delay:
            return

        self._last_check = now

        try:
            committed = self.index.committed_generation()
        except sqlite3.Error as e:
            logger.warning(f"Could not check committed generation: {e}")
            return

        if committed != self._current.generation:
            logger.debug(
                f"Reloading snapshot: generation {self._current.generation} -> {committed}"
            )
            try:
                self._swap()
            except sqlite3.Error as e:
                logger.warning(
                    f"Could not open snapshot of generation {committed}, "
                    f"keeping generation {self._current.generation}: {e}"
                )

    def _swap(self) -> None:
        previous = self._current
        self._current = Searcher(self.index)
        self._last_check = time.monotonic()

        previous._retired = True
        if previous._refs == 0:
            previous.close()

    def close(self) -> None:
        with self._lock:
            self._current._retired = True
            if self._current._refs == 0:
                self._current.close()

"""
Index directory management.

An index lives in its own directory holding the SQLite database and the
writer lock marker. Neither file should be edited by hand.
"""

import sqlite3
from pathlib import Path
from typing import Union

from ..core import get_logger, IndexOpenError, LockContentionError
from ..utils import ensure_directory
from .connection import open_connection
from .schema import (
    DEFAULT_SCHEMA,
    META_TABLE,
    Schema,
    documents_table_sql,
    fts_table_sql,
    fts_trigger_sql
)

logger = get_logger(__name__)


class Index:
    """
    Handle on an on-disk full-text index.

    Create instances through open_or_create(), open() or create(). The
    handle itself is immutable and safe to share between threads; writers
    and readers are obtained from it.
    """

    DB_FILENAME = "index.db"
    LOCK_FILENAME = "writer.lock"

    def __init__(self, directory: Path, schema: Schema, tokenizer: str):
        self.directory = Path(directory)
        self.schema = schema
        self.tokenizer = tokenizer

    @property
    def db_path(self) -> Path:
        return self.directory / self.DB_FILENAME

    @property
    def lock_path(self) -> Path:
        return self.directory / self.LOCK_FILENAME

    @classmethod
    def exists(cls, directory: Union[str, Path]) -> bool:
        return (Path(directory) / cls.DB_FILENAME).exists()

    @classmethod
    def open_or_create(
        cls,
        directory: Union[str, Path],
        schema: Schema = DEFAULT_SCHEMA,
        tokenizer: str = "unicode61"
    ) -> "Index":
        """
        Open the index at ``directory``, creating it when none exists.

        Raises:
            IndexOpenError: If an existing index is corrupt or its schema
                differs from ``schema``.
        """
        if cls.exists(directory):
            logger.info(f"Index already exists, opening: {directory}")
            return cls.open(directory, schema)

        logger.info(f"Index does not exist, creating: {directory}")
        return cls.create(directory, schema, tokenizer)

    @classmethod
    def create(
        cls,
        directory: Union[str, Path],
        schema: Schema = DEFAULT_SCHEMA,
        tokenizer: str = "unicode61"
    ) -> "Index":
        directory = Path(directory)

        if cls.exists(directory):
            raise IndexOpenError("Index already exists", path=str(directory))

        try:
            ensure_directory(directory)
            conn = open_connection(directory / cls.DB_FILENAME)
        except (OSError, sqlite3.Error) as e:
            raise IndexOpenError(f"Failed to create index: {e}", path=str(directory))

        try:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("BEGIN IMMEDIATE")
            conn.execute(META_TABLE)
            conn.execute(documents_table_sql(schema))
            conn.execute(fts_table_sql(schema, tokenizer))
            conn.execute(fts_trigger_sql(schema))
            conn.executemany(
                "INSERT INTO index_meta (key, value) VALUES (?, ?)",
                [
                    ("schema", schema.to_json()),
                    ("tokenizer", tokenizer),
                    ("generation", "0"),
                ]
            )
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise IndexOpenError(f"Failed to create index schema: {e}", path=str(directory))
        finally:
            conn.close()

        return cls(directory, schema, tokenizer)

    @classmethod
    def open(cls, directory: Union[str, Path], schema: Schema = None) -> "Index":
        """
        Open an existing index.

        Args:
            directory: Index directory.
            schema: Expected schema; None accepts whatever is stored.

        Raises:
            IndexOpenError: If the index is missing, corrupt or incompatible.
        """
        directory = Path(directory)

        if not cls.exists(directory):
            raise IndexOpenError("No index found", path=str(directory))

        try:
            conn = open_connection(directory / cls.DB_FILENAME)
            try:
                rows = conn.execute("SELECT key, value FROM index_meta").fetchall()
                conn.execute("SELECT COUNT(*) FROM documents_fts").fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise IndexOpenError(
                f"Index is corrupt or not a full-text index: {e}",
                path=str(directory)
            )

        meta = {row["key"]: row["value"] for row in rows}

        if "schema" not in meta:
            raise IndexOpenError("Index metadata is missing its schema", path=str(directory))

        stored_schema = Schema.from_json(meta["schema"])

        if schema is not None and stored_schema != schema:
            raise IndexOpenError(
                "Index schema does not match the expected schema",
                path=str(directory),
                details={
                    "stored": stored_schema.field_names,
                    "expected": schema.field_names
                }
            )

        return cls(directory, stored_schema, meta.get("tokenizer", "unicode61"))

    def connect(self) -> sqlite3.Connection:
        """Open a new connection to the index database."""
        return open_connection(self.db_path)

    def committed_generation(self) -> int:
        """Return the generation of the most recent commit."""
        conn = self.connect()
        try:
            row = conn.execute(
                "SELECT value FROM index_meta WHERE key = 'generation'"
            ).fetchone()
        finally:
            conn.close()
        return int(row["value"])

    def writer(self, force_unlock: bool = False):
        """
        Open the single writer for this index.

        Args:
            force_unlock: When the lock is held, remove the lock marker and
                retry once. Nothing verifies that the previous holder is
                gone, so two live writers can end up sharing the index.

        Raises:
            LockContentionError: If the lock is held (and, with
                force_unlock, still cannot be taken after one retry).
        """
        from .writer import IndexWriter

        try:
            return IndexWriter(self)
        except LockContentionError as e:
            if not force_unlock:
                raise

            logger.warning(
                f"{e.message}. Removing lock marker {self.lock_path} and retrying once. "
                "Operators: this does not check that the previous writer is dead; "
                "if it is still running the index may be corrupted."
            )
            self.clear_lock()
            return IndexWriter(self)

    def clear_lock(self) -> bool:
        """Remove the writer lock marker. Returns True if a marker was removed."""
        try:
            self.lock_path.unlink()
            return True
        except FileNotFoundError:
            return False

    def reader(self, reload_policy=None, reload_delay_ms: int = 500):
        """Create a reader handing out snapshots of the committed index."""
        from .reader import IndexReader, ReloadPolicy

        return IndexReader(
            self,
            reload_policy=reload_policy or ReloadPolicy.ON_COMMIT_WITH_DELAY,
            reload_delay_ms=reload_delay_ms
        )

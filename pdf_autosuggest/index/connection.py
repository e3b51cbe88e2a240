"""
SQLite connection factory for the index.

Connections run in autocommit mode so the writer and the snapshot readers
control transaction boundaries explicitly.
"""

import sqlite3
from pathlib import Path

from ..core import get_logger

logger = get_logger(__name__)


def open_connection(db_path: Path, timeout: float = 30.0) -> sqlite3.Connection:
    """
    Open a connection to the index database.

    Args:
        db_path: Path to the SQLite file.
        timeout: Seconds to wait on a busy database.

    Returns:
        Connection with Row factory and manual transaction control.

    Raises:
        sqlite3.Error: If the file cannot be opened.
    """
    conn = sqlite3.connect(
        str(db_path),
        check_same_thread=False,
        timeout=timeout,
        isolation_level=None
    )

    conn.row_factory = sqlite3.Row

    conn.execute("PRAGMA synchronous=NORMAL")
    conn.execute("PRAGMA temp_store=MEMORY")

    return conn

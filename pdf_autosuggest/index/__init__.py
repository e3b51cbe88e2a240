"""
Index module binding the full-text index to SQLite FTS5.

Provides the fixed two-field schema, multi-valued documents, the
single-writer commit protocol, and snapshot readers used by queries.
"""

from .schema import FieldSpec, Schema, DEFAULT_SCHEMA
from .document import Document
from .store import Index
from .writer import IndexWriter
from .reader import IndexReader, ReloadPolicy, Searcher

__all__ = [
    "FieldSpec",
    "Schema",
    "DEFAULT_SCHEMA",
    "Document",
    "Index",
    "IndexWriter",
    "IndexReader",
    "ReloadPolicy",
    "Searcher"
]

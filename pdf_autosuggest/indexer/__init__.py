"""
Indexer module orchestrating the ingestion pipeline.

Coordinates file location, text extraction, document building and
committing to the full-text index.
"""

from .document_builder import DocumentBuilder
from .index_builder import IndexBuilder, IndexingStats, bootstrap_index

__all__ = [
    "DocumentBuilder",
    "IndexBuilder",
    "IndexingStats",
    "bootstrap_index"
]

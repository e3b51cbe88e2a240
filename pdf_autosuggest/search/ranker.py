"""
BM25 ranker using SQLite FTS5.

Executes a planned query against an index snapshot and returns the top
matches ordered by descending relevance.
"""

import sqlite3
import time
from typing import List

from ..core import get_logger, QueryParseError, SearchError
from ..index import Searcher
from .models import MatchResult, Query

logger = get_logger(__name__)


SYNTAX_ERROR_MARKERS = ("fts5: syntax error", "unterminated string", "unknown special query")


class Ranker:
    """
    Top-K retrieval with per-field BM25 weights.

    FTS5's bm25() is negative with better matches more negative; scores
    are reported negated so that higher is better. Equal scores keep index
    order.
    """

    def __init__(self, default_limit: int = 10, max_limit: int = 100):
        self.default_limit = default_limit
        self.max_limit = max_limit

    def search(self, query: Query, searcher: Searcher, limit: int = None) -> List[MatchResult]:
        """
        Execute a query.

        Args:
            query: Planned query.
            searcher: Snapshot to search.
            limit: Maximum results; defaults to ``default_limit`` and is
                capped at ``max_limit``.

        Returns:
            Matches ordered by descending score.

        Raises:
            QueryParseError: If the storage engine rejects the expression.
            SearchError: If query execution fails.
        """
        if query.is_empty:
            return []

        limit = min(limit or self.default_limit, self.max_limit)

        weights = ", ".join(
            repr(float(query.field_weights.get(name, 1.0)))
            for name in searcher.schema.field_names
        )

        sql = f"""
            SELECT
                rowid AS doc_id,
                bm25(documents_fts, {weights}) AS rank
            FROM documents_fts
            WHERE documents_fts MATCH ?
            ORDER BY rank, rowid
            LIMIT ?
        """

        start_time = time.time()

        try:
            rows = searcher.execute(sql, (query.expression, limit))
        except sqlite3.OperationalError as e:
            if any(marker in str(e) for marker in SYNTAX_ERROR_MARKERS):
                raise QueryParseError(f"Query rejected by the index: {e}", query=query.text)
            logger.error(f"Search failed: {e}")
            raise SearchError(f"Search execution failed: {e}", query=query.text)
        except sqlite3.Error as e:
            logger.error(f"Search failed: {e}")
            raise SearchError(f"Search execution failed: {e}", query=query.text)

        results = [MatchResult(score=-row["rank"], doc_id=row["doc_id"]) for row in rows]

        execution_time = (time.time() - start_time) * 1000
        logger.debug(
            f"Search {query.text!r} (terms: {', '.join(query.terms)}): "
            f"{len(results)} results in {execution_time:.1f}ms "
            f"(generation {searcher.generation})"
        )

        return results

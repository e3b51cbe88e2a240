"""
Snippet generation and preview formatting.

The index picks the fragment of a document's body that best covers the
query matches; format_snippet() then cuts it down to a fixed number of
words from each end around an ellipsis token.
"""

import re
import sqlite3
from typing import List, Tuple

from ..core import get_logger, SearchError
from ..index import Searcher
from .models import Query, Snippet

logger = get_logger(__name__)


ELLIPSIS = "..."

# Control characters never survive text cleaning, so they are free to
# delimit highlighted terms.
HIGHLIGHT_START = "\x02"
HIGHLIGHT_END = "\x03"

MAX_SNIPPET_TOKENS = 64


class SnippetGenerator:
    """
    Builds snippets for one query within one snapshot.

    Args:
        searcher: Snapshot the documents were ranked in.
        query: The planned query.
        field: Field the fragment is taken from.
        max_tokens: Fragment length in tokens (1-64).
    """

    def __init__(self, searcher: Searcher, query: Query, field: str = "body", max_tokens: int = 32):
        self.searcher = searcher
        self.query = query
        self.column = searcher.schema.column_index(field)
        self.max_tokens = max(1, min(max_tokens, MAX_SNIPPET_TOKENS))

    def snippet(self, doc_id: int) -> Snippet:
        """
        Fragment of a matched document around its best-scoring match.

        A document that matched only through other fields has nothing to
        center on in this field and gets an empty fragment.

        Raises:
            SearchError: If the fragment cannot be generated.
        """
        if self.query.is_empty:
            return Snippet("")

        sql = f"""
            SELECT snippet(documents_fts, {self.column}, char(2), char(3), '', {self.max_tokens}) AS fragment
            FROM documents_fts
            WHERE documents_fts MATCH ? AND rowid = ?
        """

        try:
            rows = self.searcher.execute(sql, (self.query.expression, doc_id))
        except sqlite3.Error as e:
            raise SearchError(
                f"Snippet generation failed for document {doc_id}: {e}",
                query=self.query.text
            )

        if not rows:
            return Snippet("")

        snippet = parse_highlighted(rows[0]["fragment"] or "")
        if not snippet.highlighted:
            return Snippet("")

        return snippet


def parse_highlighted(marked: str) -> Snippet:
    """Strip highlight markers, recording the byte span of each highlighted run."""
    parts: List[str] = []
    spans: List[Tuple[int, int]] = []
    offset = 0
    start = None

    for piece in re.split(f"([{HIGHLIGHT_START}{HIGHLIGHT_END}])", marked):
        if piece == HIGHLIGHT_START:
            start = offset
        elif piece == HIGHLIGHT_END:
            if start is not None:
                spans.append((start, offset))
            start = None
        else:
            parts.append(piece)
            offset += len(piece.encode("utf-8"))

    return Snippet("".join(parts), tuple(spans))


def format_snippet(fragment: str, context_words: int = 5, joiner: str = "") -> str:
    """
    Reduce a fragment to its first and last ``context_words`` words.

    The head window, the ellipsis token and the tail window are
    concatenated with ``joiner`` between tokens, which is empty by
    default, so "alpha beta ... eta theta" comes out as
    "alphabeta...etatheta". Windows overlap (and repeat words) when the
    fragment has fewer than twice ``context_words`` words.

    >>> format_snippet("alpha beta gamma delta epsilon zeta eta theta")
    'alphabetagammadeltaepsilon...deltaepsilonzetaetatheta'
    >>> format_snippet("")
    '...'
    """
    words = fragment.split()

    head = words[:context_words]
    tail = list(reversed(list(reversed(words))[:context_words]))

    return joiner.join(head + [ELLIPSIS] + tail)

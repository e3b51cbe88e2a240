"""
Data models for search functionality.

Defines the planned query, ranked matches and snippets passed between
the query parser, the ranker and the snippet generator.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class Query:
    """
    A planned query, built once per request.

    Attributes:
        text: The raw query string.
        expression: FTS5 MATCH expression, or None for a query that
            matches nothing (blank or purely negative input).
        field_weights: BM25 weight per field.
        terms: Lowercased terms and phrase words, for logging.
    """
    text: str
    expression: Optional[str]
    field_weights: Dict[str, float] = field(default_factory=dict)
    terms: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return self.expression is None


@dataclass(frozen=True)
class MatchResult:
    """
    A ranked hit.

    Attributes:
        score: Relevance score; higher is better.
        doc_id: Position of the document in the index.
    """
    score: float
    doc_id: int


@dataclass(frozen=True)
class Snippet:
    """
    Fragment of a document field around the best match.

    Attributes:
        fragment: Plain text of the fragment.
        highlighted: (start, end) UTF-8 byte offsets of matched terms
            within ``fragment``.
    """
    fragment: str
    highlighted: Tuple[Tuple[int, int], ...] = ()

"""
Search module: query planning, BM25 ranking and preview snippets.

Queries are parsed once per request, executed against an immutable index
snapshot, and each hit is reduced to a short word-window preview.
"""

from .models import Query, MatchResult, Snippet
from .query_parser import QueryParser
from .ranker import Ranker
from .snippets import SnippetGenerator, format_snippet, ELLIPSIS
from .service import AutosuggestService, SnippetSettings

__all__ = [
    "Query",
    "MatchResult",
    "Snippet",
    "QueryParser",
    "Ranker",
    "SnippetGenerator",
    "format_snippet",
    "ELLIPSIS",
    "AutosuggestService",
    "SnippetSettings"
]

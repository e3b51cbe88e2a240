"""
Autosuggest service shared by all request handlers.

Built once at startup from the index reader and the query configuration,
then only read from; concurrent requests each take their own snapshot.
"""

from dataclasses import dataclass
from typing import List

from ..core import get_logger, Config, SearchError
from ..index import IndexReader
from .query_parser import QueryParser
from .ranker import Ranker
from .snippets import SnippetGenerator, format_snippet

logger = get_logger(__name__)


@dataclass(frozen=True)
class SnippetSettings:
    """How previews are cut from matched documents."""
    field: str = "body"
    max_tokens: int = 32
    context_words: int = 5
    joiner: str = ""


@dataclass(frozen=True)
class AutosuggestService:
    """Plans, ranks and previews autosuggest queries."""
    reader: IndexReader
    parser: QueryParser
    ranker: Ranker
    snippets: SnippetSettings = SnippetSettings()

    @classmethod
    def from_config(cls, reader: IndexReader, config: Config) -> "AutosuggestService":
        parser = QueryParser.for_index(
            reader.index,
            default_fields=config.search.default_fields,
            field_weights=config.search.field_weights,
            conjunction_by_default=config.search.conjunction_by_default
        )
        ranker = Ranker(
            default_limit=config.search.default_limit,
            max_limit=config.search.max_limit
        )
        snippets = SnippetSettings(
            field=config.snippet.field,
            max_tokens=config.snippet.max_tokens,
            context_words=config.snippet.context_words,
            joiner=config.snippet.joiner
        )
        return cls(reader, parser, ranker, snippets)

    def suggest(self, text: str, limit: int = None) -> List[str]:
        """
        Preview strings for the best matches of ``text``.

        Internal search failures are logged and yield an empty list; a
        document whose snippet fails is left out.

        Raises:
            QueryParseError: If ``text`` is not a valid query.
        """
        query = self.parser.parse(text)

        with self.reader.searcher() as searcher:
            try:
                results = self.ranker.search(query, searcher, limit)
            except SearchError as e:
                logger.error(f"Search failed for {text!r}: {e.message}")
                return []

            generator = SnippetGenerator(
                searcher,
                query,
                field=self.snippets.field,
                max_tokens=self.snippets.max_tokens
            )

            suggestions = []
            for result in results:
                try:
                    snippet = generator.snippet(result.doc_id)
                except SearchError as e:
                    logger.warning(e.message)
                    continue

                suggestions.append(
                    format_snippet(
                        snippet.fragment,
                        self.snippets.context_words,
                        self.snippets.joiner
                    )
                )

        return suggestions

    def num_docs(self) -> int:
        with self.reader.searcher() as searcher:
            return searcher.num_docs()

    @property
    def generation(self) -> int:
        return self.reader.generation

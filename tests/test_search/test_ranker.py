"""
Tests for the BM25 ranker.

Runs planned queries against small real indexes.
"""

import sqlite3
import pytest
from unittest.mock import Mock

from pdf_autosuggest.core.exceptions import QueryParseError, SearchError
from pdf_autosuggest.index import DEFAULT_SCHEMA, Document
from pdf_autosuggest.search import MatchResult, QueryParser, Ranker
from pdf_autosuggest.search.models import Query


@pytest.fixture
def parser():
    return QueryParser(["title", "body"])


@pytest.fixture
def ranker():
    return Ranker(default_limit=10, max_limit=3)


def run(manual_reader, parser, ranker, text, limit=None):
    manual_reader.reload()
    with manual_reader.searcher() as searcher:
        return ranker.search(parser.parse(text), searcher, limit)


class TestRankerMatching:
    """Tests for recall and scoring."""

    def test_title_match_has_nonzero_score(self, manual_reader, add_documents, parser, ranker):
        add_documents(Document.of(
            "The Old Man and the Sea",
            "He was an old man who fished alone in a skiff in the Gulf Stream..."
        ))

        results = run(manual_reader, parser, ranker, "sea")

        assert len(results) == 1
        assert results[0].doc_id == 1
        assert results[0].score > 0

    def test_second_title_value_is_searchable(self, manual_reader, add_documents, parser, ranker):
        doc = Document.of("Frankenstein", "")
        doc.add_text("title", "The Modern Prometheus")
        add_documents(doc)

        results = run(manual_reader, parser, ranker, "title:Prometheus")

        assert [r.doc_id for r in results] == [1]

    def test_field_restriction_excludes_other_field(self, manual_reader, add_documents, parser, ranker):
        add_documents(Document.of("Moby Dick", "Call me Ishmael"))

        assert run(manual_reader, parser, ranker, "title:Ishmael") == []
        assert len(run(manual_reader, parser, ranker, "body:Ishmael")) == 1

    def test_every_matching_document_is_returned(self, manual_reader, add_documents, parser, ranker):
        add_documents(
            Document.of("a.pdf", "whale oil"),
            Document.of("b.pdf", "lamp oil"),
            Document.of("c.pdf", "sperm whale")
        )

        results = run(manual_reader, parser, ranker, "whale")

        assert sorted(r.doc_id for r in results) == [1, 3]

    def test_prefix_query(self, manual_reader, add_documents, parser, ranker):
        add_documents(Document.of("a.pdf", "fisherman"), Document.of("b.pdf", "farmer"))

        results = run(manual_reader, parser, ranker, "fish*")

        assert [r.doc_id for r in results] == [1]

    def test_case_insensitive_matching(self, manual_reader, add_documents, parser, ranker):
        add_documents(Document.of("a.pdf", "GULF Stream"))

        assert len(run(manual_reader, parser, ranker, "gulf")) == 1

    def test_excluded_term(self, manual_reader, add_documents, parser, ranker):
        add_documents(
            Document.of("a.pdf", "old sea"),
            Document.of("b.pdf", "old river")
        )

        results = run(manual_reader, parser, ranker, "old -river")

        assert [r.doc_id for r in results] == [1]

    def test_empty_query_returns_nothing(self, manual_reader, add_documents, parser, ranker):
        add_documents(Document.of("a.pdf", "anything"))

        assert run(manual_reader, parser, ranker, "   ") == []

    def test_empty_index_returns_nothing(self, manual_reader, parser, ranker):
        assert run(manual_reader, parser, ranker, "sea") == []


class TestRankerOrdering:
    """Tests for ordering and limits."""

    def test_better_match_ranks_first(self, manual_reader, add_documents, parser, ranker):
        add_documents(
            Document.of("one.pdf", "ship sails north"),
            Document.of("two.pdf", "whale ship sails"),
            Document.of("three.pdf", "quiet harbour town"),
            Document.of("four.pdf", "dry desert road"),
            Document.of("five.pdf", "snow covered peak")
        )

        results = run(manual_reader, parser, ranker, "whale OR ship")

        assert [r.doc_id for r in results] == [2, 1]
        assert results[0].score > results[1].score

    def test_ties_keep_index_order(self, manual_reader, add_documents, parser):
        add_documents(*[Document.of("same.pdf", "common word") for _ in range(4)])

        results = run(manual_reader, parser, Ranker(default_limit=10, max_limit=10), "common")

        assert [r.doc_id for r in results] == [1, 2, 3, 4]

    def test_limit_is_applied(self, manual_reader, add_documents, parser, ranker):
        add_documents(*[Document.of("same.pdf", "common word") for _ in range(5)])

        assert len(run(manual_reader, parser, ranker, "common", limit=2)) == 2

    def test_limit_is_capped(self, manual_reader, add_documents, parser, ranker):
        add_documents(*[Document.of("same.pdf", "common word") for _ in range(5)])

        assert len(run(manual_reader, parser, ranker, "common", limit=50)) == 3

    def test_title_weight_changes_order(self, manual_reader, add_documents):
        add_documents(
            Document.of("storm", "calm calm calm calm"),
            Document.of("calm", "storm storm storm storm"),
            Document.of("x", "filler text here"),
            Document.of("y", "more filler text")
        )
        weighted = QueryParser(["title", "body"], field_weights={"title": 50.0})

        results = run(manual_reader, weighted, Ranker(), "storm")

        assert results[0].doc_id == 1


class TestRankerErrors:
    """Tests for error classification."""

    def _searcher(self, error):
        searcher = Mock()
        searcher.schema = DEFAULT_SCHEMA
        searcher.execute.side_effect = error
        return searcher

    def test_syntax_error_is_parse_error(self, ranker):
        searcher = self._searcher(sqlite3.OperationalError('fts5: syntax error near "AND"'))

        with pytest.raises(QueryParseError):
            ranker.search(Query("x", '"x" AND'), searcher)

    def test_other_failures_are_search_errors(self, ranker):
        searcher = self._searcher(sqlite3.OperationalError("database disk image is malformed"))

        with pytest.raises(SearchError):
            ranker.search(Query("x", '"x"'), searcher)

    def test_match_result_fields(self):
        result = MatchResult(score=1.5, doc_id=7)

        assert (result.score, result.doc_id) == (1.5, 7)

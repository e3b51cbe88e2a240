"""
Tests for the ingestion pipeline.

Uses mocked extraction so no real PDF parsing is involved.
"""

import pytest
from pathlib import Path
from dataclasses import replace
from unittest.mock import Mock, patch

from pdf_autosuggest.core.exceptions import ExtractionError, LockContentionError
from pdf_autosuggest.extraction import FileLocator
from pdf_autosuggest.index import Document, Index
from pdf_autosuggest.indexer import DocumentBuilder, IndexBuilder, IndexingStats, bootstrap_index


def fake_extract(filepath):
    path = Path(filepath)
    if path.stem == "broken":
        raise ExtractionError("cannot parse", filepath=str(path))
    return [(1, f"contents of {path.stem}")]


@pytest.fixture
def document_builder():
    extractor = Mock()
    extractor.extract.side_effect = fake_extract
    return DocumentBuilder(extractor, title_source="name")


@pytest.fixture
def locator():
    """Locator returning a fixed list of paths."""
    mock = Mock(spec=FileLocator)
    mock.scan.return_value = iter([
        Path("/docs/a.pdf"),
        Path("/docs/broken.pdf"),
        Path("/docs/b.pdf")
    ])
    return mock


class TestIndexBuilder:
    """Tests for IndexBuilder."""

    def test_failed_files_are_skipped(self, index: Index, locator, document_builder):
        with index.writer() as writer:
            stats = IndexBuilder(
                writer, locator, document_builder, commit_every=1, log_every=1
            ).build()

        assert isinstance(stats, IndexingStats)
        assert stats.files_scanned == 3
        assert stats.files_indexed == 2
        assert stats.files_failed == 1
        assert stats.errors == ["broken.pdf: cannot parse"]

    def test_commits_per_document_by_default(self, index: Index, locator, document_builder):
        with index.writer() as writer:
            stats = IndexBuilder(
                writer, locator, document_builder, commit_every=1, log_every=10
            ).build()

        assert stats.commits == 2
        assert index.committed_generation() == 2

    def test_batched_commits(self, index: Index, locator, document_builder):
        with index.writer() as writer:
            stats = IndexBuilder(
                writer, locator, document_builder, commit_every=10, log_every=10
            ).build()

        assert stats.commits == 1
        assert index.committed_generation() == 1

    def test_progress_callback(self, index: Index, locator, document_builder):
        calls = []

        with index.writer() as writer:
            IndexBuilder(
                writer, locator, document_builder, commit_every=1, log_every=10,
                progress_callback=lambda current, total, name: calls.append((current, total, name))
            ).build()

        assert calls == [(1, 3, "a.pdf"), (2, 3, "broken.pdf"), (3, 3, "b.pdf")]

    def test_empty_source(self, index: Index, document_builder):
        empty = Mock(spec=FileLocator)
        empty.scan.return_value = iter([])

        with index.writer() as writer:
            stats = IndexBuilder(writer, empty, document_builder, commit_every=1, log_every=1).build()

        assert stats.files_scanned == 0
        assert stats.commits == 0
        assert index.committed_generation() == 0


class TestBootstrapIndex:
    """Tests for bootstrap_index."""

    def test_ingests_into_empty_index(self, configured, locator, document_builder):
        index, reader, stats = bootstrap_index(configured, locator, document_builder)
        try:
            assert stats.files_indexed == 2
            assert reader.generation == 2
            with reader.searcher() as searcher:
                assert searcher.num_docs() == 2
            assert not index.lock_path.exists()
        finally:
            reader.close()

    def test_skips_non_empty_index(self, configured, document_builder):
        existing = Index.open_or_create(configured.paths.index_directory)
        with existing.writer() as writer:
            writer.add_document(Document.of("already.pdf", "indexed"))
            writer.commit()

        locator = Mock(spec=FileLocator)
        index, reader, stats = bootstrap_index(configured, locator, document_builder)
        try:
            assert stats is None
            locator.scan.assert_not_called()
            with reader.searcher() as searcher:
                assert searcher.num_docs() == 1
        finally:
            reader.close()

    def test_scans_configured_source(self, configured, sample_pdf_collection, document_builder):
        """Test that the default locator reads the configured directory."""
        index, reader, stats = bootstrap_index(configured, document_builder=document_builder)
        try:
            assert stats.files_scanned == 4
            assert stats.files_indexed == 4
        finally:
            reader.close()

    def test_held_lock_aborts(self, configured, locator, document_builder):
        index = Index.open_or_create(configured.paths.index_directory)
        index.lock_path.write_text("pid=99999")

        with pytest.raises(LockContentionError):
            bootstrap_index(configured, locator, document_builder)


class TestEndToEnd:
    """Ingestion with real PDF extraction."""

    def test_sample_pdf_text_is_searchable(self, configured, sample_pdf_collection):
        from pdf_autosuggest.search import AutosuggestService

        index, reader, stats = bootstrap_index(configured)
        try:
            assert stats.files_indexed == 4
            service = AutosuggestService.from_config(reader, configured)
            suggestions = service.suggest("hello")
        finally:
            reader.close()

        assert len(suggestions) == 4
        assert all("Hello" in suggestion for suggestion in suggestions)


class TestBootstrapLockRecovery:
    """Tests for the opt-in lock recovery during bootstrap."""

    def test_stale_lock_is_cleared_when_allowed(self, configured, locator, document_builder):
        config = replace(configured, indexing=replace(configured.indexing, force_unlock=True))
        Index.open_or_create(config.paths.index_directory).lock_path.write_text("pid=99999")

        index, reader, stats = bootstrap_index(config, locator, document_builder)
        try:
            assert stats.files_indexed == 2
            assert not index.lock_path.exists()
        finally:
            reader.close()

    def test_failed_retry_is_fatal(self, configured, locator, document_builder):
        config = replace(configured, indexing=replace(configured.indexing, force_unlock=True))
        Index.open_or_create(config.paths.index_directory).lock_path.write_text("pid=99999")

        with patch.object(Index, "clear_lock", return_value=False):
            with pytest.raises(LockContentionError):
                bootstrap_index(config, locator, document_builder)

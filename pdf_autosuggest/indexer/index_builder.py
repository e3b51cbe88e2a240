"""
Main ingestion pipeline for PDF Autosuggest.

Orchestrates the indexing workflow: locating files, extracting text,
building documents, and committing them to the index. Failures on
individual files are logged and skipped; the run continues.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from ..core import get_config, get_logger, Config, ExtractionError
from ..extraction import FileLocator, PDFExtractor
from ..index import DEFAULT_SCHEMA, Index, IndexReader, IndexWriter, ReloadPolicy
from .document_builder import DocumentBuilder

logger = get_logger(__name__)


@dataclass
class IndexingStats:
    """Statistics from an ingestion run."""
    files_scanned: int = 0
    files_indexed: int = 0
    files_failed: int = 0
    pages_indexed: int = 0
    commits: int = 0
    errors: List[str] = field(default_factory=list)


class IndexBuilder:
    """
    Feeds located PDFs through the document builder into an index writer.

    With ``commit_every=1`` (the default) every document is committed as
    soon as it is added, so an interrupted run leaves all earlier
    documents durably visible at the price of one commit per file.
    """

    def __init__(
        self,
        writer: IndexWriter,
        locator: FileLocator = None,
        document_builder: DocumentBuilder = None,
        commit_every: int = None,
        log_every: int = None,
        progress_callback: Callable[[int, int, str], None] = None
    ):
        """
        Initialize the index builder.

        Args:
            writer: Open writer holding the index lock.
            locator: Source of file paths. Defaults to config.
            document_builder: Document builder. Defaults to config.
            commit_every: Commit after this many added documents.
            log_every: Log progress every N files.
            progress_callback: Optional callback(current, total, filename).
        """
        if locator is None or document_builder is None or commit_every is None or log_every is None:
            config = get_config()
            if commit_every is None:
                commit_every = config.indexing.commit_every
            if log_every is None:
                log_every = config.indexing.log_progress_every
            if document_builder is None:
                document_builder = DocumentBuilder(
                    PDFExtractor(), title_source=config.indexing.title_source
                )
            locator = locator or FileLocator()

        self.writer = writer
        self.locator = locator
        self.document_builder = document_builder
        self.commit_every = max(1, commit_every)
        self.log_every = max(1, log_every)
        self.progress_callback = progress_callback

    def build(self) -> IndexingStats:
        """
        Run the ingestion pipeline over every located file.

        Returns:
            IndexingStats with counts and any errors encountered.

        Raises:
            IndexWriteError: If a commit fails; this is not per-file.
        """
        stats = IndexingStats()

        logger.info("Starting ingestion pipeline")

        pdf_files = list(self.locator.scan())
        stats.files_scanned = len(pdf_files)

        logger.info(f"Found {stats.files_scanned} PDF files to process")

        for i, filepath in enumerate(pdf_files):
            if self.progress_callback:
                self.progress_callback(i + 1, stats.files_scanned, filepath.name)

            if self._process_file(filepath, stats) and self.writer.pending >= self.commit_every:
                self.writer.commit()
                stats.commits += 1

            if (i + 1) % self.log_every == 0:
                logger.info(
                    f"Progress: {i + 1}/{stats.files_scanned} files "
                    f"({stats.files_indexed} indexed, {stats.files_failed} failed)"
                )

        if self.writer.pending:
            self.writer.commit()
            stats.commits += 1

        logger.info(
            f"Ingestion complete: {stats.files_indexed} files indexed, "
            f"{stats.pages_indexed} pages, {stats.files_failed} failures, "
            f"{stats.commits} commits"
        )

        return stats

    def _process_file(self, filepath: Path, stats: IndexingStats) -> bool:
        """Build and add one document. Returns False if the file was skipped."""
        logger.debug(f"Parsing {filepath}")

        try:
            document, page_count = self.document_builder.build(filepath)
            self.writer.add_document(document)

        except ExtractionError as e:
            stats.files_failed += 1
            error_msg = f"{filepath.name}: {e.message}"
            stats.errors.append(error_msg)
            logger.warning(f"Failed to extract: {error_msg}")
            return False

        except OSError as e:
            stats.files_failed += 1
            error_msg = f"{filepath.name}: {e}"
            stats.errors.append(error_msg)
            logger.warning(f"Cannot read file: {error_msg}")
            return False

        stats.files_indexed += 1
        stats.pages_indexed += page_count
        return True


def open_index(config: Config) -> Index:
    """
    Open or create the configured index.

    Raises:
        IndexOpenError: If an existing index is corrupt or incompatible.
    """
    return Index.open_or_create(
        config.paths.index_directory,
        schema=DEFAULT_SCHEMA,
        tokenizer=config.search.tokenizer
    )


def bootstrap_index(
    config: Config = None,
    locator: FileLocator = None,
    document_builder: DocumentBuilder = None,
    progress_callback: Callable[[int, int, str], None] = None
) -> Tuple[Index, IndexReader, Optional[IndexingStats]]:
    """
    Prepare the index for serving.

    Opens (or creates) the index and runs ingestion only when it holds no
    documents; a non-empty index is served as-is for the whole process
    lifetime. The writer is released before returning.

    Returns:
        Tuple of (index, reader, stats); stats is None when ingestion was
        skipped.

    Raises:
        IndexOpenError: If the index cannot be opened.
        LockContentionError: If the writer lock cannot be taken.
    """
    config = config or get_config()

    index = open_index(config)
    reader = IndexReader(
        index,
        reload_policy=ReloadPolicy(config.search.reload_policy),
        reload_delay_ms=config.search.reload_delay_ms
    )

    with reader.searcher() as searcher:
        num_docs = searcher.num_docs()

    if num_docs > 0:
        logger.info(f"Index already contains {num_docs} documents, skipping ingestion")
        return index, reader, None

    logger.info("Index is empty. Indexing PDFs...")

    locator = locator or FileLocator(
        source=config.paths.source,
        extensions=config.extraction.supported_extensions,
        max_file_size_mb=config.extraction.max_file_size_mb,
        case_sensitive=config.extraction.case_sensitive,
        recursive=config.extraction.recursive
    )
    document_builder = document_builder or DocumentBuilder(
        PDFExtractor(
            config.extraction.primary_backend,
            config.extraction.fallback_backend
        ),
        title_source=config.indexing.title_source
    )

    with index.writer(force_unlock=config.indexing.force_unlock) as writer:
        stats = IndexBuilder(
            writer,
            locator=locator,
            document_builder=document_builder,
            commit_every=config.indexing.commit_every,
            log_every=config.indexing.log_progress_every,
            progress_callback=progress_callback
        ).build()

    generation = reader.reload()
    with reader.searcher() as searcher:
        logger.info(f"Index holds {searcher.num_docs()} documents (generation {generation})")

    return index, reader, stats

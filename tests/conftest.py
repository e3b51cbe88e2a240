"""
Pytest fixtures and configuration for the test suite.

Provides temporary directories, sample PDFs, temporary configurations and
ready-made indexes so tests never touch real data.
"""

import json
import pytest
import tempfile
import shutil
from pathlib import Path
from typing import Generator

import sys
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from pdf_autosuggest.index import Document, Index, IndexReader, ReloadPolicy


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """
    Create a temporary directory for test files.

    Yields:
        Path to temporary directory, cleaned up after test.
    """
    tmp = tempfile.mkdtemp(prefix="pdf_autosuggest_test_")
    yield Path(tmp)
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def temp_config(temp_dir: Path) -> Generator[Path, None, None]:
    """
    Create a temporary config.json for testing.

    Args:
        temp_dir: Temporary directory fixture.

    Yields:
        Path to temporary config file.
    """
    config_dir = temp_dir / "config"
    config_dir.mkdir()

    data_dir = temp_dir / "data"
    data_dir.mkdir()

    output_dir = temp_dir / "output"
    output_dir.mkdir()

    logs_dir = output_dir / "logs"
    logs_dir.mkdir()

    config_data = {
        "paths": {
            "source": str(data_dir),
            "index_directory": str(output_dir / "index"),
            "logs_directory": str(logs_dir)
        },
        "extraction": {
            "primary_backend": "pypdf",
            "fallback_backend": "pdfplumber",
            "max_file_size_mb": 100,
            "supported_extensions": [".pdf"]
        },
        "indexing": {
            "commit_every": 1,
            "title_source": "path",
            "force_unlock": False,
            "log_progress_every": 5
        },
        "search": {
            "default_limit": 10,
            "max_limit": 50,
            "reload_policy": "on_commit_with_delay",
            "reload_delay_ms": 0
        },
        "snippet": {
            "context_words": 5,
            "joiner": ""
        },
        "logging": {
            "level": "DEBUG",
            "format": "%(levelname)s - %(message)s",
            "max_file_size_mb": 1,
            "backup_count": 1
        }
    }

    config_path = config_dir / "config.json"
    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(config_data, f)

    yield config_path


def build_pdf(text: str) -> bytes:
    """
    Assemble a one-page PDF showing ``text`` in Helvetica.

    Object offsets are computed, so the cross-reference table is exact.
    """
    content = f"BT /F1 12 Tf 72 720 Td ({text}) Tj ET".encode("latin-1")
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length %d >>\nstream\n" % len(content) + content + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"

    xref_offset = len(out)
    out += b"xref\n0 %d\n0000000000 65535 f \n" % (len(objects) + 1)
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (
        len(objects) + 1, xref_offset
    )
    return bytes(out)


@pytest.fixture
def sample_pdf_content() -> bytes:
    """One-page PDF reading "Hello World"."""
    return build_pdf("Hello World")


@pytest.fixture
def sample_pdf(temp_dir: Path, sample_pdf_content: bytes) -> Path:
    """Create a sample PDF file for testing."""
    pdf_path = temp_dir / "sample.pdf"
    pdf_path.write_bytes(sample_pdf_content)
    return pdf_path


@pytest.fixture
def sample_pdf_collection(temp_dir: Path, sample_pdf_content: bytes) -> Path:
    """
    Create multiple sample PDF files in a directory structure.

    Returns:
        Path to the data directory containing PDFs.
    """
    data_dir = temp_dir / "data"
    data_dir.mkdir(exist_ok=True)

    subdir1 = data_dir / "folder1"
    subdir1.mkdir()

    subdir2 = data_dir / "folder2"
    subdir2.mkdir()

    (data_dir / "root_doc.pdf").write_bytes(sample_pdf_content)
    (subdir1 / "doc1.pdf").write_bytes(sample_pdf_content)
    (subdir1 / "doc2.PDF").write_bytes(sample_pdf_content)
    (subdir2 / "doc3.pdf").write_bytes(sample_pdf_content)

    # Not a PDF, should be ignored
    (data_dir / "readme.txt").write_text("Not a PDF")

    return data_dir


@pytest.fixture
def index_dir(temp_dir: Path) -> Path:
    """Path where a test index should be created."""
    return temp_dir / "index"


@pytest.fixture
def index(index_dir: Path) -> Index:
    """A freshly created, empty index."""
    return Index.open_or_create(index_dir)


@pytest.fixture
def manual_reader(index: Index) -> Generator[IndexReader, None, None]:
    """Reader that only moves forward on reload()."""
    reader = index.reader(reload_policy=ReloadPolicy.MANUAL)
    yield reader
    reader.close()


@pytest.fixture
def add_documents(index: Index):
    """Commit documents to the test index; returns the committed generation."""

    def _add(*documents: Document) -> int:
        with index.writer() as writer:
            for document in documents:
                writer.add_document(document)
            return writer.commit()

    return _add


@pytest.fixture
def reset_config_singleton():
    """
    Reset the config singleton between tests.

    This ensures each test gets a fresh config instance.
    """
    from pdf_autosuggest.core import config_loader
    config_loader._config_instance = None
    yield
    config_loader._config_instance = None


@pytest.fixture
def reset_logger_singleton():
    """Reset the logger initialization flag between tests."""
    from pdf_autosuggest.core import logger
    logger._logger_initialized = False
    yield
    logger._logger_initialized = False


@pytest.fixture
def configured(temp_config, reset_config_singleton):
    """Load the temporary config as the active configuration."""
    from pdf_autosuggest.core.config_loader import get_config
    yield get_config(temp_config)

"""
Builds index documents from PDF files.
"""

from pathlib import Path
from typing import Tuple

from ..core import get_logger
from ..extraction import PDFExtractor
from ..index import Document
from ..utils import clean_text

logger = get_logger(__name__)


class DocumentBuilder:
    """
    Turns a PDF file into a title/body Document.

    The body is the cleaned text of every page, in page order, joined by a
    single space. The title is the file's display path, or its base name
    when ``title_source`` is "name".
    """

    def __init__(self, extractor: PDFExtractor = None, title_source: str = "path"):
        self.extractor = extractor or PDFExtractor()
        self.title_source = title_source

    def title_for(self, filepath: Path) -> str:
        if self.title_source == "name":
            return filepath.name
        return str(filepath)

    def build(self, filepath: Path) -> Tuple[Document, int]:
        """
        Extract and assemble a document.

        Returns:
            Tuple of (document, page count).

        Raises:
            ExtractionError: If the file cannot be read by any backend.
        """
        filepath = Path(filepath)
        pages = self.extractor.extract(filepath)

        body = " ".join(clean_text(text) for _, text in pages)

        if not body.strip():
            logger.info(f"No text extracted, indexing title only: {filepath.name}")

        return Document.of(self.title_for(filepath), body), len(pages)

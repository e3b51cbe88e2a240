"""
pdfplumber-based text extraction backend.

Slower than pypdf but lays out multi-column pages more faithfully, which
makes it the usual fallback for files pypdf reads as empty.
"""

from pathlib import Path
from typing import List, Tuple, Union

import pdfplumber

from ..core import get_logger, ExtractionError

logger = get_logger(__name__)


class PDFPlumberBackend:
    """PDF text extraction using the pdfplumber library."""

    name = "pdfplumber"

    def extract(self, filepath: Union[str, Path]) -> List[Tuple[int, str]]:
        """
        Extract text from every page of a PDF, in page order.

        Returns:
            List of (page_number, text) tuples, 1-indexed.

        Raises:
            ExtractionError: If the document cannot be opened.
        """
        filepath = Path(filepath)

        try:
            with pdfplumber.open(filepath) as pdf:
                logger.debug(f"Processing {len(pdf.pages)} pages: {filepath.name}")
                return [
                    (page_num, _page_text(page, page_num, filepath))
                    for page_num, page in enumerate(pdf.pages, start=1)
                ]
        except Exception as e:
            raise ExtractionError(
                f"pdfplumber extraction failed: {e}",
                filepath=str(filepath),
                details={"backend": self.name}
            )


def _page_text(page, page_num: int, filepath: Path) -> str:
    try:
        return page.extract_text() or ""
    except Exception as e:
        logger.warning(f"Failed to extract page {page_num} from {filepath.name}: {e}")
        return ""

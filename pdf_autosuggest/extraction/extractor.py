"""
Unified PDF extraction interface with automatic fallback.

Wraps multiple extraction backends and attempts fallback when
the primary backend fails or returns no text.
"""

from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..core import get_config, get_logger, ExtractionError
from .pypdf_backend import PyPDFBackend
from .pdfplumber_backend import PDFPlumberBackend

logger = get_logger(__name__)


BACKENDS = {
    "pypdf": PyPDFBackend,
    "pdfplumber": PDFPlumberBackend
}


def _has_text(pages: List[Tuple[int, str]]) -> bool:
    return any(text.strip() for _, text in pages)


class PDFExtractor:
    """
    Unified PDF extraction with automatic backend fallback.

    Tries the primary backend first, falls back to secondary
    if extraction fails or produces no text at all.
    """

    def __init__(
        self,
        primary_backend: str = None,
        fallback_backend: Optional[str] = None
    ):
        """
        Initialize the extractor with configured backends.

        Args:
            primary_backend: Name of primary backend ("pypdf" or "pdfplumber").
            fallback_backend: Name of fallback backend, or "" for none.
        """
        if primary_backend is None or fallback_backend is None:
            config = get_config()
            primary_backend = primary_backend or config.extraction.primary_backend
            if fallback_backend is None:
                fallback_backend = config.extraction.fallback_backend

        if primary_backend not in BACKENDS:
            raise ExtractionError(f"Unknown backend: {primary_backend}")

        if fallback_backend and fallback_backend not in BACKENDS:
            raise ExtractionError(f"Unknown backend: {fallback_backend}")

        self.primary = BACKENDS[primary_backend]()
        self.fallback = BACKENDS[fallback_backend]() if fallback_backend else None

        logger.debug(
            f"Initialized extractor: primary={primary_backend}, fallback={fallback_backend}"
        )

    def extract(self, filepath: Union[str, Path]) -> List[Tuple[int, str]]:
        """
        Extract per-page text from a PDF using available backends.

        A document that opens but carries no text yields its (empty) pages
        rather than an error.

        Args:
            filepath: Path to the PDF file.

        Returns:
            List of (page_number, text) tuples in page order.

        Raises:
            ExtractionError: If every backend failed to read the file.
        """
        filepath = Path(filepath)
        primary_error = None
        results = None

        try:
            results = self.primary.extract(filepath)

            if _has_text(results):
                return results

            logger.debug(f"Primary backend returned no text: {filepath.name}")

        except ExtractionError as e:
            primary_error = e
            logger.debug(f"Primary backend failed: {e.message}")

        if self.fallback:
            try:
                logger.debug(f"Trying fallback backend for: {filepath.name}")
                fallback_results = self.fallback.extract(filepath)

                if _has_text(fallback_results) or results is None:
                    return fallback_results

            except ExtractionError as e:
                logger.debug(f"Fallback backend also failed: {e.message}")

        if results is not None:
            return results

        raise primary_error

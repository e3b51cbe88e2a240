"""
pypdf-based text extraction backend.

Fast, pure-Python extraction; the default primary backend. Encrypted
files are opened with the empty user password, which covers the common
"owner password only" case.
"""

from pathlib import Path
from typing import List, Tuple, Union

from pypdf import PasswordType, PdfReader

from ..core import get_logger, ExtractionError

logger = get_logger(__name__)


class PyPDFBackend:
    """PDF text extraction using the pypdf library."""

    name = "pypdf"

    def extract(self, filepath: Union[str, Path]) -> List[Tuple[int, str]]:
        """
        Extract text from every page of a PDF, in page order.

        Returns:
            List of (page_number, text) tuples, 1-indexed. A page whose
            text cannot be read is kept with an empty string.

        Raises:
            ExtractionError: If the document cannot be opened.
        """
        filepath = Path(filepath)

        try:
            reader = PdfReader(filepath)
            if reader.is_encrypted:
                self._unlock(reader, filepath)
            pages = list(reader.pages)
        except ExtractionError:
            raise
        except Exception as e:
            raise ExtractionError(
                f"pypdf extraction failed: {e}",
                filepath=str(filepath),
                details={"backend": self.name}
            )

        logger.debug(f"Processing {len(pages)} pages: {filepath.name}")

        return [
            (page_num, self._page_text(page, page_num, filepath))
            for page_num, page in enumerate(pages, start=1)
        ]

    def _unlock(self, reader: PdfReader, filepath: Path) -> None:
        try:
            result = reader.decrypt("")
        except Exception as e:
            raise ExtractionError(
                f"PDF is encrypted and cannot be decrypted: {e}",
                filepath=str(filepath)
            )

        if result == PasswordType.NOT_DECRYPTED:
            raise ExtractionError(
                "PDF is encrypted and cannot be decrypted",
                filepath=str(filepath)
            )

    @staticmethod
    def _page_text(page, page_num: int, filepath: Path) -> str:
        try:
            return page.extract_text() or ""
        except Exception as e:
            logger.warning(f"Failed to extract page {page_num} from {filepath.name}: {e}")
            return ""
